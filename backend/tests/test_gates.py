"""
Tests for the claim-detail and approval-rule gates.
"""

import json

import pytest
from langchain_core.messages import HumanMessage, ToolMessage

from claim_assistant.agents.gates import (
    ApprovalPolicy,
    Gate,
    rejection_turn,
    validate_claim_details,
    validate_payment_approval,
)
from claim_assistant.agents.router import ProposedAction
from claim_assistant.core.errors import ValidationRejection


def claim_action(**args) -> ProposedAction:
    return ProposedAction("create_or_update_claim", "call-claim", args)


def payment_action(**args) -> ProposedAction:
    return ProposedAction("approve_payment", "call-pay", args)


def result(name: str, payload: dict, status: str = "success") -> ToolMessage:
    return ToolMessage(content=json.dumps(payload), name=name, tool_call_id=f"call-{name}", status=status)


def claim_record(claim_id="CLM-1", status="submitted", amount=4000.0) -> ToolMessage:
    return result(
        "create_or_update_claim",
        {"claim_id": claim_id, "user_id": "u-1001", "description": "hail", "amount": amount, "status": status},
    )


def fraud_result(claim_id="CLM-1", flagged=False, amount=4000.0) -> ToolMessage:
    return result("fraud_check", {"claim_id": claim_id, "amount": amount, "risk_score": 0.2, "flagged": flagged})


class TestClaimDetailGate:
    def test_update_with_claim_id_and_description_passes(self):
        approved = validate_claim_details([], claim_action(claimId=123, description="car accident"))
        assert approved.args == {"claim_id": "123", "description": "car accident"}
        assert approved.call_id == "call-claim"

    def test_new_claim_needs_amount(self):
        with pytest.raises(ValidationRejection) as exc_info:
            validate_claim_details([], claim_action(user_id="u-1001", description="hail damage"))
        assert exc_info.value.field == "amount"
        assert exc_info.value.reason == "requested amount missing"

    def test_missing_description_rejected(self):
        with pytest.raises(ValidationRejection, match="incident description missing"):
            validate_claim_details([], claim_action(claim_id="CLM-1", description="   "))

    def test_missing_identity_rejected(self):
        with pytest.raises(ValidationRejection, match="claimant identity missing"):
            validate_claim_details([], claim_action(description="hail", amount=100))

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationRejection, match="invalid amount"):
            validate_claim_details([], claim_action(user_id="u-1", description="hail", amount=-5))

    def test_user_and_open_claim_resolved_from_history(self):
        history = [
            HumanMessage(content="I'm u-1001, please add to my claim"),
            result("get_user_details", {"user_id": "u-1001", "open_claim_id": "CLM-7", "claims": ["CLM-7"]}),
        ]
        approved = validate_claim_details(history, claim_action(description="more damage found"))
        assert approved.args == {"claim_id": "CLM-7", "user_id": "u-1001", "description": "more damage found"}

    def test_failed_lookup_is_ignored(self):
        history = [result("get_user_details", {"user_id": "u-9"}, status="error")]
        with pytest.raises(ValidationRejection, match="claimant identity missing"):
            validate_claim_details(history, claim_action(description="hail", amount=10))


class TestApprovalGate:
    def test_missing_fraud_check_rejected(self):
        with pytest.raises(ValidationRejection) as exc_info:
            validate_payment_approval([], payment_action(amount=5000))
        assert exc_info.value.reason == "fraud check missing"

    def test_flagged_fraud_check_rejected(self):
        history = [claim_record(), fraud_result(flagged=True)]
        with pytest.raises(ValidationRejection, match="flagged"):
            validate_payment_approval(history, payment_action(claim_id="CLM-1", amount=100))

    def test_amount_above_ceiling_rejected(self):
        history = [claim_record(amount=9000.0), fraud_result()]
        with pytest.raises(ValidationRejection, match="auto-approval limit"):
            validate_payment_approval(history, payment_action(claim_id="CLM-1", amount=6000))

    def test_ceiling_comes_from_policy(self):
        history = [claim_record(amount=9000.0), fraud_result(amount=9000.0)]
        policy = ApprovalPolicy(auto_approval_limit=10_000.0)
        approved = validate_payment_approval(history, payment_action(claim_id="CLM-1", amount=6000), policy)
        assert approved.args == {"claim_id": "CLM-1", "amount": 6000.0}

    def test_claim_id_resolved_from_latest_claim_record(self):
        history = [claim_record(), fraud_result()]
        approved = validate_payment_approval(history, payment_action(amount=4000))
        assert approved.args == {"claim_id": "CLM-1", "amount": 4000.0}

    def test_fraud_check_for_other_claim_does_not_count(self):
        history = [claim_record(), fraud_result(claim_id="CLM-2")]
        with pytest.raises(ValidationRejection, match="fraud check missing"):
            validate_payment_approval(history, payment_action(claim_id="CLM-1", amount=100))

    def test_no_claim_on_record_rejected(self):
        with pytest.raises(ValidationRejection, match="no claim on record"):
            validate_payment_approval([fraud_result()], payment_action(claim_id="CLM-1", amount=100))

    def test_paid_claim_not_eligible(self):
        history = [
            claim_record(),
            fraud_result(),
            result("approve_payment", {"payment_id": "PAY-1", "claim_id": "CLM-1", "amount": 100, "status": "paid"}),
        ]
        with pytest.raises(ValidationRejection, match="not eligible"):
            validate_payment_approval(history, payment_action(claim_id="CLM-1", amount=100))

    def test_amount_above_claimed_amount_rejected(self):
        history = [claim_record(amount=1000.0), fraud_result()]
        with pytest.raises(ValidationRejection, match="claimed amount"):
            validate_payment_approval(history, payment_action(claim_id="CLM-1", amount=1500))

    def test_amount_above_fraud_checked_amount_rejected(self):
        history = [claim_record(amount=None), fraud_result(amount=1.0)]
        with pytest.raises(ValidationRejection) as exc_info:
            validate_payment_approval(history, payment_action(claim_id="CLM-1", amount=5000))
        assert exc_info.value.reason == "amount exceeds fraud-checked amount"
        assert exc_info.value.field == "amount"

    @pytest.mark.parametrize("args", [{}, {"amount": 0}, {"amount": "lots"}])
    def test_bad_amount_rejected(self, args):
        with pytest.raises(ValidationRejection) as exc_info:
            validate_payment_approval([], payment_action(**args))
        assert exc_info.value.field == "amount"


class TestRejectionTurn:
    def test_rejection_turn_records_gate_decision(self):
        action = payment_action(amount=5000)
        turn = rejection_turn(action, Gate.APPROVAL, ValidationRejection("fraud check missing"))
        assert turn.tool_call_id == "call-pay"
        assert turn.status == "error"
        assert turn.content == "Rejected approve_payment: fraud check missing"
        assert turn.additional_kwargs == {
            "gate": "approval",
            "gate_decision": "rejected",
            "reason": "fraud check missing",
        }
