"""
Test configuration and fixtures for the claim assistant.

The reasoner is scripted: each step is either an AIMessage (copied so every
turn gets its own id) or a callable receiving the history so far.
"""

import itertools
from typing import Callable, Union

import pytest
from langchain_core.messages import AIMessage, BaseMessage
from langgraph.checkpoint.memory import MemorySaver

from claim_assistant.agents.claim_agent import build_claim_graph
from claim_assistant.agents.context import AgentContext
from claim_assistant.agents.gates import ApprovalPolicy
from claim_assistant.agents.orchestrator import ClaimAssistant
from claim_assistant.agents.registry import ToolRegistry
from claim_assistant.agents.tools import build_claim_tools
from claim_assistant.services.claims import seeded_claims_service

Step = Union[AIMessage, Callable[[list[BaseMessage]], AIMessage]]

_call_ids = itertools.count(1)


def tool_call(name: str, call_id: str | None = None, **args) -> dict:
    return {"name": name, "args": args, "id": call_id or f"call-{next(_call_ids)}"}


def propose(*calls: dict, content: str = "") -> AIMessage:
    return AIMessage(content=content, tool_calls=list(calls))


def answer(text: str) -> AIMessage:
    return AIMessage(content=text)


class ScriptedReasoner:
    """Replays a fixed list of steps; the last step repeats when ``repeat_last``."""

    def __init__(self, steps: list[Step], repeat_last: bool = False) -> None:
        self.steps = list(steps)
        self.repeat_last = repeat_last
        self.calls: list[list[BaseMessage]] = []
        self.instructions: list[str] = []

    async def reason(self, instructions, history, tools) -> AIMessage:
        self.calls.append(list(history))
        self.instructions.append(instructions)
        index = len(self.calls) - 1
        if index >= len(self.steps):
            if not self.repeat_last:
                raise AssertionError(f"Reasoner called {index + 1} times, script has {len(self.steps)} steps")
            index = len(self.steps) - 1
        step = self.steps[index]
        message = step(list(history)) if callable(step) else step
        return message.model_copy(update={"id": None})


@pytest.fixture
def claims_service():
    return seeded_claims_service()


@pytest.fixture
def registry(claims_service):
    return ToolRegistry(build_claim_tools(claims_service))


@pytest.fixture
def make_assistant(registry):
    """Build an assistant around a scripted reasoner."""

    def _make(reasoner, max_steps: int = 15, tool_registry: ToolRegistry | None = None,
              policy: ApprovalPolicy | None = None) -> ClaimAssistant:
        context = AgentContext(
            reasoner=reasoner,
            registry=tool_registry or registry,
            instructions="You are a test claims assistant.",
            max_steps=max_steps,
            approval_policy=policy or ApprovalPolicy(),
        )
        return ClaimAssistant(build_claim_graph(context, MemorySaver()), max_steps)

    return _make
