"""
LangGraph node implementations.

agent:
    - Enforces the per-run step bound
    - Reasoner with tools bound: returns AIMessage (text or tool_calls)
    - Unknown or malformed tool calls raise here, so the turn never reaches the checkpoint

should_continue (router):
    - Conditional edge from agent
    - END when the turn carries no tool calls
    - otherwise one Send per proposed action, to its gate or to tools

tools / prepare_claim_detail / execute_approve_payment:
    - Handle exactly one proposed action each (fan-out)
    - Gates validate first; a rejection becomes the tool-result turn
    - Results go to pending_results tagged with the action's position

collect_results:
    - Join after the fan-out; appends results in proposal order
    - Loops back to agent
"""

from langgraph.graph import END
from langgraph.types import Send

from claim_assistant.agents.context import AgentContext
from claim_assistant.agents.gates import (
    Gate,
    rejection_turn,
    validate_claim_details,
    validate_payment_approval,
)
from claim_assistant.agents.router import ProposedAction, Route, classify_turn
from claim_assistant.core.errors import StepBoundExceeded, ValidationRejection
from claim_assistant.core.graph_state import ActionRequest, ClaimAgentState
from claim_assistant.core.logging import get_logger

log = get_logger(__name__)


def _pending(request: ActionRequest, message) -> dict:
    return {"pending_results": [{"position": request["position"], "message": message}]}


class ClaimAgentNodes:
    def __init__(self, context: AgentContext) -> None:
        self.context = context

    # ── agent ─────────────────────────────────────────────────────────────────

    async def agent(self, state: ClaimAgentState) -> dict:
        """Main reasoning node. Raises StepBoundExceeded once the run is out of steps."""
        thread_id = state.get("thread_id", "")
        iterations = state.get("iterations", 0)
        if iterations >= self.context.max_steps:
            log.warning("step_bound_exceeded", thread_id=thread_id, limit=self.context.max_steps)
            raise StepBoundExceeded(thread_id, self.context.max_steps)

        response = await self.context.reasoner.reason(
            self.context.instructions,
            list(state["messages"]),
            self.context.registry.tools,
        )
        # a turn the router cannot place fails the run before it is persisted
        classify_turn(response, self.context.registry)

        log.debug(
            "agent_response",
            thread_id=thread_id,
            step=iterations + 1,
            tool_calls=[c["name"] for c in response.tool_calls],
        )
        return {"messages": [response], "iterations": iterations + 1}

    # ── Router (conditional edge function) ────────────────────────────────────

    def should_continue(self, state: ClaimAgentState):
        """
        Inspect the last agent message.
        Returns END to finish the graph, or a Send per proposed action.
        """
        messages = state["messages"]
        routed = classify_turn(messages[-1] if messages else None, self.context.registry)
        if not routed:
            return END

        log.debug(
            "actions_routed",
            thread_id=state.get("thread_id"),
            routes=[(r.action.name, r.route.value) for r in routed],
        )
        return [
            Send(
                r.route.value,
                ActionRequest(
                    thread_id=state.get("thread_id", ""),
                    position=r.position,
                    call=r.action.as_tool_call(),
                    messages=list(messages),
                ),
            )
            for r in routed
        ]

    # ── Executors ─────────────────────────────────────────────────────────────

    async def tools(self, request: ActionRequest) -> dict:
        action = ProposedAction.from_tool_call(request["call"])
        return _pending(request, await self.context.registry.dispatch(action))

    async def prepare_claim_detail(self, request: ActionRequest) -> dict:
        action = ProposedAction.from_tool_call(request["call"])
        try:
            approved = validate_claim_details(request["messages"], action)
        except ValidationRejection as rejection:
            log.info("gate_rejected", gate=Gate.CLAIM_DETAIL.value, thread_id=request["thread_id"],
                     reason=rejection.reason)
            return _pending(request, rejection_turn(action, Gate.CLAIM_DETAIL, rejection))
        return _pending(request, await self.context.registry.dispatch(approved, gate=Gate.CLAIM_DETAIL.value))

    async def execute_approve_payment(self, request: ActionRequest) -> dict:
        action = ProposedAction.from_tool_call(request["call"])
        try:
            approved = validate_payment_approval(request["messages"], action, self.context.approval_policy)
        except ValidationRejection as rejection:
            log.info("gate_rejected", gate=Gate.APPROVAL.value, thread_id=request["thread_id"],
                     reason=rejection.reason)
            return _pending(request, rejection_turn(action, Gate.APPROVAL, rejection))
        return _pending(request, await self.context.registry.dispatch(approved, gate=Gate.APPROVAL.value))

    # ── Join ──────────────────────────────────────────────────────────────────

    def collect_results(self, state: ClaimAgentState) -> dict:
        """Append fan-out results in the order the actions were proposed."""
        ordered = sorted(state.get("pending_results") or [], key=lambda r: r["position"])
        return {"messages": [r["message"] for r in ordered], "pending_results": None}

    def executors(self) -> dict[Route, object]:
        """Node for every non-terminal route."""
        return {
            Route.TOOLS: self.tools,
            Route.CLAIM_DETAIL_GATE: self.prepare_claim_detail,
            Route.APPROVAL_GATE: self.execute_approve_payment,
        }
