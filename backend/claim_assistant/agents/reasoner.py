"""
Reasoner: the LLM step of the claim graph.

Given the system instructions, the full history and the tool declarations,
returns the next assistant turn: a final answer, or tool calls.
"""

from collections.abc import Sequence
from typing import Protocol

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, SystemMessage
from langchain_core.tools import BaseTool

from claim_assistant.core.errors import InvariantViolation


class Reasoner(Protocol):
    async def reason(
        self,
        instructions: str,
        history: Sequence[BaseMessage],
        tools: Sequence[BaseTool],
    ) -> AIMessage: ...


class ChatModelReasoner:
    """LangChain chat model with the registry's tools bound."""

    def __init__(self, model: BaseChatModel) -> None:
        self._model = model

    async def reason(
        self,
        instructions: str,
        history: Sequence[BaseMessage],
        tools: Sequence[BaseTool],
    ) -> AIMessage:
        llm = self._model.bind_tools(list(tools)) if tools else self._model
        response = await llm.ainvoke([SystemMessage(content=instructions), *history])
        if not isinstance(response, AIMessage):
            raise InvariantViolation(
                "Chat model returned a non-assistant message",
                message_type=type(response).__name__,
            )
        return response
