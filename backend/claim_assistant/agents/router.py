"""
Router: the transition policy of the claim graph.

Graph topology:

    START → agent → (should_continue) → END
              ↑          ↓ one Send per proposed action
              │     ┌────┴──────────────┬─────────────────────────┐
              │     tools      prepare_claim_detail     execute_approve_payment
              │     └────┬──────────────┴─────────────────────────┘
              └──── collect_results   (join: results in proposal order)

Every proposed action of an assistant turn is classified on its own through a
static table. Gated tools always go through their gate; every other
registered tool goes straight to the executor.
"""

from collections.abc import Container, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from langchain_core.messages import AIMessage, BaseMessage
from langgraph.graph import END

from claim_assistant.agents.tools import APPROVE_PAYMENT, CREATE_OR_UPDATE_CLAIM
from claim_assistant.core.errors import InvariantViolation, UnknownAction


class Route(str, Enum):
    """Targets of the conditional edge leaving the agent node."""

    TOOLS = "tools"
    CLAIM_DETAIL_GATE = "prepare_claim_detail"
    APPROVAL_GATE = "execute_approve_payment"
    TERMINATE = END


GATED_ACTIONS: Mapping[str, Route] = {
    CREATE_OR_UPDATE_CLAIM: Route.CLAIM_DETAIL_GATE,
    APPROVE_PAYMENT: Route.APPROVAL_GATE,
}


@dataclass(frozen=True)
class ProposedAction:
    """A tool-call intent taken from an assistant turn."""

    name: str
    call_id: str
    args: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_tool_call(cls, call: Any) -> "ProposedAction":
        """Decode a LangChain tool call, rejecting malformed shapes."""
        if not isinstance(call, Mapping):
            raise InvariantViolation("Tool call is not a mapping", call=call)
        name, call_id, args = call.get("name"), call.get("id"), call.get("args")
        if not isinstance(name, str) or not name:
            raise InvariantViolation("Tool call has no name", call=dict(call))
        if not isinstance(call_id, str) or not call_id:
            raise InvariantViolation("Tool call has no id", call=dict(call))
        if args is None:
            args = {}
        if not isinstance(args, Mapping):
            raise InvariantViolation("Tool call arguments are not an object", call=dict(call))
        return cls(name=name, call_id=call_id, args=dict(args))

    def with_args(self, args: Mapping[str, Any]) -> "ProposedAction":
        return ProposedAction(name=self.name, call_id=self.call_id, args=dict(args))

    def as_tool_call(self) -> dict[str, Any]:
        return {"name": self.name, "args": dict(self.args), "id": self.call_id, "type": "tool_call"}


@dataclass(frozen=True)
class RoutedAction:
    position: int
    action: ProposedAction
    route: Route


def route_for(name: str, known_tools: Container[str]) -> Route:
    """Static name → target mapping."""
    if name in GATED_ACTIONS:
        return GATED_ACTIONS[name]
    if name in known_tools:
        return Route.TOOLS
    raise UnknownAction(name)


def classify_turn(turn: Optional[BaseMessage], known_tools: Container[str]) -> list[RoutedAction]:
    """
    Classify every proposed action of the latest turn.

    Returns an empty list when the run should terminate: the turn is not an
    assistant turn, or it carries no tool calls. Pure function of the turn.
    """
    if not isinstance(turn, AIMessage):
        return []

    if turn.invalid_tool_calls:
        raise InvariantViolation(
            "Assistant turn carries malformed tool calls",
            invalid_tool_calls=list(turn.invalid_tool_calls),
        )
    calls = list(turn.tool_calls or [])
    if not calls:
        return []

    routed = []
    for position, call in enumerate(calls):
        action = ProposedAction.from_tool_call(call)
        routed.append(RoutedAction(position, action, route_for(action.name, known_tools)))
    return routed
