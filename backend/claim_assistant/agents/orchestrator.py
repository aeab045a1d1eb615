"""
Entry point for running claim conversations.

ClaimAssistant drives the compiled graph for one thread at a time:
  chat     new user message → final assistant text; calls left open by an
           interrupted run are closed with error results first
  resume   continue an interrupted run from its last checkpoint
  history  the persisted messages of a thread
  cancel   abort the active run of a thread between suspend points
"""

import asyncio
from contextlib import contextmanager
from typing import Iterator

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from langgraph.errors import GraphRecursionError

from claim_assistant.core.errors import (
    ClaimAgentError,
    InvariantViolation,
    StepBoundExceeded,
    ThreadBusy,
    ThreadNotFound,
)
from claim_assistant.core.logging import get_logger

log = get_logger(__name__)


def recursion_limit(max_steps: int) -> int:
    # agent → dispatch → collect per step, plus the closing agent turn
    return max_steps * 3 + 4


def message_text(message: BaseMessage) -> str:
    """Plain text of a message; content blocks are joined."""
    if isinstance(message.content, str):
        return message.content
    parts = []
    for block in message.content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class ClaimAssistant:
    def __init__(self, graph, max_steps: int) -> None:
        self._graph = graph
        self._max_steps = max_steps
        self._active: dict[str, asyncio.Task] = {}

    def _config(self, thread_id: str) -> dict:
        return {
            "configurable": {"thread_id": thread_id},
            "recursion_limit": recursion_limit(self._max_steps),
        }

    @contextmanager
    def _active_run(self, thread_id: str) -> Iterator[None]:
        """At most one run per thread; a second one is rejected, not queued."""
        if thread_id in self._active:
            raise ThreadBusy(thread_id)
        self._active[thread_id] = asyncio.current_task()
        try:
            with structlog.contextvars.bound_contextvars(thread_id=thread_id):
                yield
        finally:
            self._active.pop(thread_id, None)

    def is_active(self, thread_id: str) -> bool:
        return thread_id in self._active

    async def _run(self, thread_id: str, graph_input) -> str:
        try:
            result = await self._graph.ainvoke(graph_input, config=self._config(thread_id))
        except GraphRecursionError as exc:
            log.warning("recursion_limit_reached", limit=recursion_limit(self._max_steps))
            raise StepBoundExceeded(thread_id, self._max_steps) from exc
        except InvariantViolation as exc:
            log.error("invariant_violation", error=str(exc), **exc.context)
            raise
        except ClaimAgentError as exc:
            log.error("run_failed", code=exc.code, error=str(exc))
            raise

        final = result["messages"][-1]
        log.info("run_complete", steps=result.get("iterations", 0), messages=len(result["messages"]))
        return message_text(final)

    async def _unanswered_calls(self, thread_id: str) -> list[ToolMessage]:
        """Error results for tool calls an interrupted run never answered."""
        snapshot = await self._graph.aget_state(self._config(thread_id))
        messages = snapshot.values.get("messages", []) if snapshot.values else []
        answered = {m.tool_call_id for m in messages if isinstance(m, ToolMessage)}
        closing = []
        for message in messages:
            if not isinstance(message, AIMessage):
                continue
            for call in message.tool_calls:
                if call.get("id") and call["id"] not in answered:
                    closing.append(ToolMessage(
                        content=f"Error: {call['name']} was interrupted before it returned a result",
                        name=call["name"],
                        tool_call_id=call["id"],
                        status="error",
                    ))
        return closing

    async def chat(self, thread_id: str, message: str) -> str:
        """Append a user message and run until the assistant gives a final answer."""
        with self._active_run(thread_id):
            closing = await self._unanswered_calls(thread_id)
            if closing:
                log.warning("unanswered_calls_closed", call_ids=[m.tool_call_id for m in closing])
            log.info("run_started", message_length=len(message))
            return await self._run(
                thread_id,
                {
                    "messages": [*closing, HumanMessage(content=message)],
                    "thread_id": thread_id,
                    "iterations": 0,
                    "pending_results": None,
                },
            )

    async def resume(self, thread_id: str) -> str:
        """
        Continue a run that stopped between steps (e.g. a process restart).
        Returns the last assistant text straight away if the run had finished.
        """
        with self._active_run(thread_id):
            snapshot = await self._graph.aget_state(self._config(thread_id))
            if not snapshot.values:
                raise ThreadNotFound(thread_id)
            if not snapshot.next:
                return self._last_answer(snapshot.values["messages"])
            log.info("run_resumed", next=list(snapshot.next))
            return await self._run(thread_id, None)

    async def history(self, thread_id: str) -> list[BaseMessage]:
        snapshot = await self._graph.aget_state(self._config(thread_id))
        if not snapshot.values:
            raise ThreadNotFound(thread_id)
        return list(snapshot.values.get("messages", []))

    def cancel(self, thread_id: str) -> bool:
        """Request cancellation of the thread's active run. Returns False if idle."""
        task = self._active.get(thread_id)
        if task is None or task.done():
            return False
        log.info("run_cancel_requested", thread_id=thread_id)
        return task.cancel()

    @staticmethod
    def _last_answer(messages: list[BaseMessage]) -> str:
        for message in reversed(messages):
            if isinstance(message, AIMessage):
                return message_text(message)
        return ""
