"""
Tool registry and dispatcher.

Holds the tool declarations advertised to the reasoner and runs validated
proposed actions. Read-only once constructed, so one registry can be shared
by every thread.
"""

import json
from collections.abc import Iterable
from types import MappingProxyType
from typing import Any, Optional

from langchain_core.messages import ToolMessage
from langchain_core.tools import BaseTool, ToolException
from pydantic import ValidationError

from claim_assistant.agents.router import ProposedAction
from claim_assistant.core.errors import InvariantViolation, ToolExecutionFailure
from claim_assistant.core.logging import get_logger

log = get_logger(__name__)


def serialize_output(output: Any) -> str:
    """Render a tool output as tool-message content."""
    if isinstance(output, str):
        return output
    return json.dumps(output, default=str)


class ToolRegistry:
    def __init__(self, tools: Iterable[BaseTool]) -> None:
        by_name: dict[str, BaseTool] = {}
        for t in tools:
            if t.name in by_name:
                raise ValueError(f"Duplicate tool name: {t.name!r}")
            by_name[t.name] = t
        self._tools = MappingProxyType(by_name)

    @property
    def tools(self) -> tuple[BaseTool, ...]:
        return tuple(self._tools.values())

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def get(self, name: str) -> BaseTool:
        try:
            return self._tools[name]
        except KeyError:
            raise InvariantViolation(f"No tool registered under {name!r}", tool=name) from None

    async def dispatch(self, action: ProposedAction, gate: Optional[str] = None) -> ToolMessage:
        """
        Run one action and return its tool-result turn.

        Tool-level failures (reported failures, bad arguments) come back as an
        error turn for the reasoner to react to; anything else propagates.
        """
        executor = self.get(action.name)
        extra = {"gate": gate, "gate_decision": "approved"} if gate else {}

        try:
            output = await executor.ainvoke(dict(action.args))
        except (ToolExecutionFailure, ToolException, ValidationError) as exc:
            log.warning("tool_failed", tool=action.name, call_id=action.call_id, error=str(exc))
            return ToolMessage(
                content=f"Error: {action.name} failed: {exc}",
                name=action.name,
                tool_call_id=action.call_id,
                status="error",
                additional_kwargs=extra,
            )

        log.debug("tool_succeeded", tool=action.name, call_id=action.call_id, gate=gate)
        return ToolMessage(
            content=serialize_output(output),
            name=action.name,
            tool_call_id=action.call_id,
            status="success",
            additional_kwargs=extra,
        )
