"""
Tests for the in-memory claims backend behind the tools.
"""

import pytest

from claim_assistant.core.errors import ToolExecutionFailure


class TestClaims:
    def test_new_claim_gets_generated_id(self, claims_service):
        record = claims_service.upsert_claim("hail", user_id="u-1001", amount=900.0)
        assert record["claim_id"].startswith("CLM-")
        assert record["status"] == "submitted"
        assert claims_service.get_user("u-1001")["open_claim_id"] == record["claim_id"]

    def test_update_keeps_missing_fields(self, claims_service):
        created = claims_service.upsert_claim("hail", user_id="u-1001", amount=900.0)
        updated = claims_service.upsert_claim("hail and a cracked windshield", claim_id=created["claim_id"])
        assert updated["user_id"] == "u-1001"
        assert updated["amount"] == 900.0
        assert updated["status"] == "under_review"

    def test_unknown_user_rejected(self, claims_service):
        with pytest.raises(ToolExecutionFailure):
            claims_service.upsert_claim("hail", user_id="ghost", amount=1.0)

    def test_paid_claim_is_closed(self, claims_service):
        claim = claims_service.upsert_claim("hail", user_id="u-1001", amount=900.0)
        claims_service.approve_payment(claim["claim_id"], 900.0)
        with pytest.raises(ToolExecutionFailure, match="already"):
            claims_service.approve_payment(claim["claim_id"], 900.0)
        with pytest.raises(ToolExecutionFailure, match="closed"):
            claims_service.upsert_claim("more", claim_id=claim["claim_id"])
        assert claims_service.get_user("u-1001")["open_claim_id"] is None


class TestFraudCheck:
    def test_small_first_claim_passes(self, claims_service):
        result = claims_service.fraud_check("CLM-X", 1000.0)
        assert result["flagged"] is False
        assert result["reasons"] == []

    def test_high_value_claim_flagged(self, claims_service):
        result = claims_service.fraud_check("CLM-X", 25_000.0)
        assert result["flagged"] is True
        assert "high value claim" in result["reasons"]

    def test_repeat_claimant_scores_higher(self, claims_service):
        for _ in range(3):
            paid = claims_service.upsert_claim("hail", user_id="u-1003", amount=500.0)
            claims_service.approve_payment(paid["claim_id"], 500.0)
        claim = claims_service.upsert_claim("hail again", user_id="u-1003", amount=5000.0)

        result = claims_service.fraud_check(claim["claim_id"], 5000.0)

        assert result["risk_score"] == 0.85
        assert result["flagged"] is True


def test_email_requires_address(claims_service):
    with pytest.raises(ToolExecutionFailure):
        claims_service.send_email("not-an-address", "s", "b")
    assert claims_service.send_email("a@example.com", "s", "b")["status"] == "sent"
