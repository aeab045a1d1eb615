from typing import Annotated, Any, TypedDict
from langchain_core.messages import AnyMessage
from langgraph.graph.message import add_messages


def collect_pending(left: list | None, right: list | None) -> list:
    """Accumulate fan-out results; a ``None`` write clears the buffer."""
    if right is None:
        return []
    return list(left or []) + list(right)


class ClaimAgentState(TypedDict):
    """Shared state passed between all LangGraph nodes."""
    messages:        Annotated[list[AnyMessage], add_messages]  # append-only history
    thread_id:       str
    iterations:      int   # reasoning steps taken in the current run
    pending_results: Annotated[list[dict[str, Any]], collect_pending]  # {"position", "message"} awaiting the join


class ActionRequest(TypedDict):
    """Payload sent to a gate or the tool executor for one proposed action."""
    thread_id: str
    position:  int    # index of the action in the assistant turn
    call:      dict   # the LangChain tool call ({"name", "args", "id"})
    messages:  list[AnyMessage]
