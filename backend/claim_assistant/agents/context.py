from dataclasses import dataclass, field

from claim_assistant.agents.gates import ApprovalPolicy
from claim_assistant.agents.prompts import claim_assistant_instructions
from claim_assistant.agents.reasoner import Reasoner
from claim_assistant.agents.registry import ToolRegistry
from claim_assistant.core.config import Settings


@dataclass(frozen=True)
class AgentContext:
    """Everything one claim graph needs; no module-level singletons."""

    reasoner: Reasoner
    registry: ToolRegistry
    instructions: str
    max_steps: int = 15
    approval_policy: ApprovalPolicy = field(default_factory=ApprovalPolicy)

    @classmethod
    def from_settings(cls, settings: Settings, reasoner: Reasoner, registry: ToolRegistry) -> "AgentContext":
        return cls(
            reasoner=reasoner,
            registry=registry,
            instructions=claim_assistant_instructions(settings.auto_approval_limit),
            max_steps=settings.max_steps,
            approval_policy=ApprovalPolicy(
                auto_approval_limit=settings.auto_approval_limit,
                eligible_statuses=frozenset(settings.payment_eligible_statuses),
            ),
        )
