"""
Claim assistant graph.

    START → agent → (should_continue) → END
              ↑            ↓ Send per proposed action
              │   tools | prepare_claim_detail | execute_approve_payment
              │            ↓
              └──── collect_results

agent:              reasoner with tools bound, produces text or tool_calls
should_continue:    routes every proposed action to a gate or to tools
prepare_claim_detail / execute_approve_payment:
                    validate, then run the tool or record a rejection
collect_results:    barrier; appends results in proposal order
"""

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.graph import END, START, StateGraph

from claim_assistant.agents.context import AgentContext
from claim_assistant.agents.nodes import ClaimAgentNodes
from claim_assistant.agents.router import GATED_ACTIONS, Route
from claim_assistant.core.graph_state import ClaimAgentState


def build_claim_graph(context: AgentContext, checkpointer: BaseCheckpointSaver | None = None):
    """
    Compile the claim graph for ``context``.
    The compiled graph holds no per-thread state; build once and reuse.
    """
    nodes = ClaimAgentNodes(context)
    executors = nodes.executors()

    missing = [r for r in Route if r is not Route.TERMINATE and r not in executors]
    if missing:
        raise ValueError(f"No node registered for routes: {missing}")

    for name in GATED_ACTIONS:
        # gated tools are executed by their gate through the registry
        if name not in context.registry:
            raise ValueError(f"Gated tool {name!r} is not registered")

    workflow = StateGraph(ClaimAgentState)

    # Nodes
    workflow.add_node("agent", nodes.agent)
    for route, node in executors.items():
        workflow.add_node(route.value, node)
    workflow.add_node("collect_results", nodes.collect_results)

    # Edges
    workflow.add_edge(START, "agent")
    workflow.add_conditional_edges(
        "agent",
        nodes.should_continue,
        [r.value for r in executors] + [END],
    )
    for route in executors:
        workflow.add_edge(route.value, "collect_results")
    workflow.add_edge("collect_results", "agent")  # loop: results → agent reasoning

    return workflow.compile(checkpointer=checkpointer)
