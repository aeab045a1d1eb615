"""
Validation gates.

Two pre-execution checks guarding side-effecting tools:

  claim-detail gate   create_or_update_claim  required fields + enrichment
  approval-rule gate  approve_payment         fraud check, ceiling, claim status, amounts

Both are pure: they read only the message history handed to them and either
return the (possibly enriched) action or raise ValidationRejection. The graph
node turns a rejection into a tool-result turn; the tool is never called.
"""

import json
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from langchain_core.messages import BaseMessage, ToolMessage
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from claim_assistant.agents.router import ProposedAction
from claim_assistant.agents.tools import APPROVE_PAYMENT, CREATE_OR_UPDATE_CLAIM, FRAUD_CHECK, USER_DETAILS
from claim_assistant.core.errors import ValidationRejection


class Gate(str, Enum):
    CLAIM_DETAIL = "claim_detail"
    APPROVAL = "approval"


@dataclass(frozen=True)
class ApprovalPolicy:
    auto_approval_limit: float = 5000.0
    eligible_statuses: frozenset[str] = frozenset({"submitted", "under_review"})


# ── Typed payloads ────────────────────────────────────────────────────────────

def _identifier(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class ClaimDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    claim_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("claim_id", "claimId"))
    user_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("user_id", "userId"))
    description: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("description", "incident_description")
    )
    amount: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("amount", "requested_amount")
    )

    @field_validator("claim_id", "user_id", "description", mode="before")
    @classmethod
    def strip_identifier(cls, value: Any) -> Optional[str]:
        return _identifier(value)


class PaymentApproval(BaseModel):
    model_config = ConfigDict(extra="ignore")

    claim_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("claim_id", "claimId"))
    amount: float = Field(gt=0)

    @field_validator("claim_id", mode="before")
    @classmethod
    def strip_identifier(cls, value: Any) -> Optional[str]:
        return _identifier(value)


def _decode(model: type[BaseModel], action: ProposedAction) -> Any:
    try:
        return model.model_validate(dict(action.args))
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        if error["type"] == "missing":
            raise ValidationRejection(f"{field} missing", field=field) from exc
        raise ValidationRejection(f"invalid {field}: {error['msg']}", field=field) from exc


# ── History scanning ──────────────────────────────────────────────────────────

def tool_results(history: Sequence[BaseMessage], *names: str) -> Iterator[dict[str, Any]]:
    """Yield successful structured results of the named tools, newest first."""
    for message in reversed(history):
        if not isinstance(message, ToolMessage) or message.name not in names:
            continue
        if message.status == "error" or not isinstance(message.content, str):
            continue
        try:
            payload = json.loads(message.content)
        except ValueError:
            continue
        if isinstance(payload, dict):
            yield payload


def latest_claim_record(history: Sequence[BaseMessage], claim_id: Optional[str]) -> Optional[dict[str, Any]]:
    for record in tool_results(history, CREATE_OR_UPDATE_CLAIM, APPROVE_PAYMENT):
        if "claim_id" not in record:
            continue
        if claim_id is None or str(record["claim_id"]) == claim_id:
            return record
    return None


# ── Gates ─────────────────────────────────────────────────────────────────────

def validate_claim_details(history: Sequence[BaseMessage], action: ProposedAction) -> ProposedAction:
    """
    Check a create_or_update_claim call and fill in what the history knows.

    A claim needs a claimant (claim id or user id) and an incident
    description; a new claim also needs the requested amount.
    """
    details = _decode(ClaimDetails, action)

    profile = next(tool_results(history, USER_DETAILS), None)
    if profile is not None:
        if details.user_id is None:
            details.user_id = _identifier(profile.get("user_id"))
        if details.claim_id is None and details.user_id == _identifier(profile.get("user_id")):
            details.claim_id = _identifier(profile.get("open_claim_id"))

    if details.claim_id is None and details.user_id is None:
        raise ValidationRejection("claimant identity missing (claim_id or user_id)", field="user_id")
    if details.description is None:
        raise ValidationRejection("incident description missing", field="description")
    if details.claim_id is None and details.amount is None:
        raise ValidationRejection("requested amount missing", field="amount")

    return action.with_args(details.model_dump(exclude_none=True))


def validate_payment_approval(
    history: Sequence[BaseMessage],
    action: ProposedAction,
    policy: ApprovalPolicy = ApprovalPolicy(),
) -> ProposedAction:
    """Check an approve_payment call against the auto-approval rules."""
    approval = _decode(PaymentApproval, action)
    record = latest_claim_record(history, approval.claim_id)
    claim_id = approval.claim_id or (_identifier(record.get("claim_id")) if record else None)

    fraud = next(
        (r for r in tool_results(history, FRAUD_CHECK)
         if claim_id is None or _identifier(r.get("claim_id")) == claim_id),
        None,
    )
    if fraud is None:
        raise ValidationRejection("fraud check missing")
    if fraud.get("flagged"):
        raise ValidationRejection("fraud check flagged the claim")

    if approval.amount > policy.auto_approval_limit:
        raise ValidationRejection(
            f"amount exceeds auto-approval limit of {policy.auto_approval_limit:.2f}", field="amount"
        )
    if record is None or claim_id is None:
        raise ValidationRejection("no claim on record", field="claim_id")
    if record.get("status") not in policy.eligible_statuses:
        raise ValidationRejection(
            f"claim status {record.get('status')!r} is not eligible for payment", field="claim_id"
        )
    claimed = record.get("amount")
    if claimed is not None and approval.amount > float(claimed):
        raise ValidationRejection("amount exceeds claimed amount", field="amount")
    checked = fraud.get("amount")
    if checked is not None and approval.amount > float(checked):
        raise ValidationRejection("amount exceeds fraud-checked amount", field="amount")

    return action.with_args({"claim_id": claim_id, "amount": approval.amount})


def rejection_turn(action: ProposedAction, gate: Gate, rejection: ValidationRejection) -> ToolMessage:
    """Tool-result turn telling the reasoner why the gate declined."""
    return ToolMessage(
        content=f"Rejected {action.name}: {rejection.reason}",
        name=action.name,
        tool_call_id=action.call_id,
        status="error",
        additional_kwargs={"gate": gate.value, "gate_decision": "rejected", "reason": rejection.reason},
    )
