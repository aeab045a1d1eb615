"""
In-memory claims backend used by the agent tools.

Holds users, claims, payments and outgoing email in plain dicts. Good enough
for local runs and tests; a deployment swaps it for a client of the real
claims platform exposing the same methods.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from itertools import count
from typing import Any, Optional

from claim_assistant.core.errors import ToolExecutionFailure
from claim_assistant.core.logging import get_logger

log = get_logger(__name__)

FRAUD_FLAG_THRESHOLD = 0.7
_HIGH_VALUE_AMOUNT = 20_000.0


@dataclass
class UserRecord:
    user_id: str
    name: str
    email: str
    policy_number: str


@dataclass
class ClaimRecord:
    claim_id: str
    user_id: Optional[str]
    description: str
    amount: Optional[float]
    status: str = "submitted"
    updated_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class InMemoryClaimsService:
    """Claims, payments and notifications kept in process memory."""

    def __init__(self, users: list[UserRecord] | None = None) -> None:
        self.users: dict[str, UserRecord] = {u.user_id: u for u in users or []}
        self.claims: dict[str, ClaimRecord] = {}
        self.payments: list[dict[str, Any]] = []
        self.outbox: list[dict[str, str]] = []
        self._ids = count(1001)

    # ── Users ─────────────────────────────────────────────────────────────────

    def get_user(self, user_id: str) -> dict[str, Any]:
        user = self.users.get(user_id)
        if user is None:
            raise ToolExecutionFailure(f"No user found with id {user_id!r}")
        details = asdict(user)
        details["open_claim_id"] = self._open_claim_for(user_id)
        details["claims"] = [c.claim_id for c in self.claims.values() if c.user_id == user_id]
        return details

    def _open_claim_for(self, user_id: str) -> Optional[str]:
        for claim in reversed(list(self.claims.values())):
            if claim.user_id == user_id and claim.status != "paid":
                return claim.claim_id
        return None

    # ── Claims ────────────────────────────────────────────────────────────────

    def upsert_claim(
        self,
        description: str,
        claim_id: Optional[str] = None,
        user_id: Optional[str] = None,
        amount: Optional[float] = None,
    ) -> dict[str, Any]:
        """Create a claim, or update the one named by claim_id."""
        if user_id is not None and user_id not in self.users:
            raise ToolExecutionFailure(f"No user found with id {user_id!r}")

        existing = self.claims.get(claim_id) if claim_id else None
        if existing is None:
            record = ClaimRecord(
                claim_id=claim_id or f"CLM-{next(self._ids)}",
                user_id=user_id,
                description=description,
                amount=amount,
            )
            self.claims[record.claim_id] = record
            log.info("claim_created", claim_id=record.claim_id, user_id=user_id)
        else:
            if existing.status == "paid":
                raise ToolExecutionFailure(f"Claim {existing.claim_id} is already paid and closed")
            existing.description = description
            existing.user_id = user_id or existing.user_id
            existing.amount = amount if amount is not None else existing.amount
            existing.status = "under_review"
            existing.updated_at = datetime.now(timezone.utc).isoformat()
            record = existing
            log.info("claim_updated", claim_id=record.claim_id)
        return asdict(record)

    def fraud_check(self, claim_id: str, amount: float) -> dict[str, Any]:
        """Score the claim; higher amounts and repeat claimants score higher."""
        claim = self.claims.get(claim_id)
        prior_paid = 0
        if claim is not None and claim.user_id is not None:
            prior_paid = sum(
                1 for c in self.claims.values()
                if c.user_id == claim.user_id and c.status == "paid"
            )
        risk = min(1.0, amount / _HIGH_VALUE_AMOUNT + 0.2 * prior_paid)
        reasons = []
        if amount >= _HIGH_VALUE_AMOUNT:
            reasons.append("high value claim")
        if prior_paid:
            reasons.append(f"{prior_paid} previously paid claim(s)")
        return {
            "claim_id": claim_id,
            "amount": amount,
            "risk_score": round(risk, 2),
            "flagged": risk >= FRAUD_FLAG_THRESHOLD,
            "reasons": reasons,
        }

    # ── Payments ──────────────────────────────────────────────────────────────

    def approve_payment(self, claim_id: str, amount: float) -> dict[str, Any]:
        claim = self.claims.get(claim_id)
        if claim is None:
            raise ToolExecutionFailure(f"No claim found with id {claim_id!r}")
        if claim.status == "paid":
            raise ToolExecutionFailure(f"Claim {claim_id} has already been paid")
        payment = {
            "payment_id": f"PAY-{next(self._ids)}",
            "claim_id": claim_id,
            "amount": amount,
            "status": "paid",
        }
        claim.status = "paid"
        claim.updated_at = datetime.now(timezone.utc).isoformat()
        self.payments.append(payment)
        log.info("payment_approved", claim_id=claim_id, amount=amount)
        return payment

    # ── Notifications ─────────────────────────────────────────────────────────

    def send_email(self, to: str, subject: str, body: str) -> dict[str, str]:
        if "@" not in to:
            raise ToolExecutionFailure(f"Invalid email address {to!r}")
        message_id = f"MSG-{next(self._ids)}"
        self.outbox.append({"message_id": message_id, "to": to, "subject": subject, "body": body})
        return {"message_id": message_id, "status": "sent"}


def seeded_claims_service() -> InMemoryClaimsService:
    """A service pre-loaded with demo policyholders."""
    return InMemoryClaimsService(users=[
        UserRecord("u-1001", "Dana Whitfield", "dana.whitfield@example.com", "POL-AU-55201"),
        UserRecord("u-1002", "Sam Okafor", "sam.okafor@example.com", "POL-HO-10873"),
        UserRecord("u-1003", "Priya Raman", "priya.raman@example.com", "POL-AU-77410"),
    ])
