"""
Agent tool definitions.

Tools are registered with the LLM via bind_tools() and executed by the
ToolRegistry. Each tool closes over the claims service it talks to, so
several graphs (or tests) can run against separate backends.

Current tools:
  - get_user_details:        policyholder profile and open claim
  - fraud_check:             risk score for a claim amount
  - create_or_update_claim:  gated by the claim-detail gate
  - approve_payment:         gated by the approval-rule gate
  - send_confirmation_email: notify the policyholder
"""

from typing import Any, Optional

from langchain_core.tools import BaseTool, tool

from claim_assistant.services.claims import InMemoryClaimsService

USER_DETAILS = "get_user_details"
FRAUD_CHECK = "fraud_check"
CREATE_OR_UPDATE_CLAIM = "create_or_update_claim"
APPROVE_PAYMENT = "approve_payment"
SEND_CONFIRMATION_EMAIL = "send_confirmation_email"


def build_claim_tools(service: InMemoryClaimsService) -> list[BaseTool]:
    """Return the claim tools bound to ``service``."""

    @tool(USER_DETAILS)
    def get_user_details(user_id: str) -> dict[str, Any]:
        """
        Look up a policyholder by user id.

        Returns name, email, policy number, the ids of their claims and the id
        of their currently open claim (if any).
        """
        return service.get_user(user_id)

    @tool(FRAUD_CHECK)
    def fraud_check(claim_id: str, amount: float) -> dict[str, Any]:
        """
        Run a fraud check for a claim before any payment is approved.

        Args:
            claim_id: Claim identifier.
            amount:   Amount that would be paid out.
        """
        return service.fraud_check(claim_id, amount)

    @tool(CREATE_OR_UPDATE_CLAIM)
    def create_or_update_claim(
        description: str,
        claim_id: Optional[str] = None,
        user_id: Optional[str] = None,
        amount: Optional[float] = None,
    ) -> dict[str, Any]:
        """
        Create a new claim, or update an existing one when claim_id is given.

        Args:
            description: What happened (incident description).
            claim_id:    Existing claim to update. Omit to create a new claim.
            user_id:     Claimant. Required for new claims.
            amount:      Requested amount. Required for new claims.
        """
        return service.upsert_claim(description, claim_id=claim_id, user_id=user_id, amount=amount)

    @tool(APPROVE_PAYMENT)
    def approve_payment(claim_id: str, amount: float) -> dict[str, Any]:
        """
        Approve and release a payment for a claim.
        Only allowed after a fraud check and within the auto-approval limit.
        """
        return service.approve_payment(claim_id, amount)

    @tool(SEND_CONFIRMATION_EMAIL)
    def send_confirmation_email(to: str, subject: str, body: str) -> dict[str, str]:
        """Send a confirmation email to the policyholder."""
        return service.send_email(to, subject, body)

    return [
        get_user_details,
        fraud_check,
        create_or_update_claim,
        approve_payment,
        send_confirmation_email,
    ]
