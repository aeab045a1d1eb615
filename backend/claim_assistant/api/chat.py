"""
Chat API endpoints.

The assistant is built once at startup (see main.lifespan) and read from
app.state; every request runs against the same compiled graph.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Request
from langchain_core.messages import BaseMessage
from pydantic import BaseModel, Field

from claim_assistant.agents.orchestrator import ClaimAssistant
from claim_assistant.core.logging import get_logger

log = get_logger(__name__)
router = APIRouter(prefix="/api/chat", tags=["chat"])


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=8_000)
    thread_id: str | None = None


class ChatResponse(BaseModel):
    thread_id: str
    response: str


def get_assistant(request: Request) -> ClaimAssistant:
    return request.app.state.assistant


def _serialize_message(message: BaseMessage) -> dict:
    payload = {"role": message.type, "content": message.content}
    tool_calls = getattr(message, "tool_calls", None)
    if tool_calls:
        payload["tool_calls"] = [{"name": c["name"], "args": c["args"], "id": c["id"]} for c in tool_calls]
    if message.type == "tool":
        payload["name"] = message.name
        payload["status"] = message.status
        if message.additional_kwargs:
            payload["gate"] = message.additional_kwargs
    return payload


# ── Endpoints ─────────────────────────────────────────────────────────────────

@router.post("", response_model=ChatResponse)
async def chat(req: ChatRequest, assistant: ClaimAssistant = Depends(get_assistant)):
    """Run the conversation until the assistant answers."""
    thread_id = req.thread_id or str(uuid.uuid4())
    response = await assistant.chat(thread_id, req.message)
    log.info("chat_complete", thread_id=thread_id)
    return ChatResponse(thread_id=thread_id, response=response)


@router.get("", response_model=ChatResponse)
async def chat_query(
    message: str = Query(min_length=1, max_length=8_000),
    thread_id: str | None = None,
    assistant: ClaimAssistant = Depends(get_assistant),
):
    """Query-string form of POST /api/chat."""
    return await chat(ChatRequest(message=message, thread_id=thread_id), assistant)


@router.get("/threads/{thread_id}")
async def get_thread(thread_id: str, assistant: ClaimAssistant = Depends(get_assistant)):
    """Retrieve the persisted history of a conversation thread."""
    messages = await assistant.history(thread_id)
    return {
        "thread_id": thread_id,
        "active": assistant.is_active(thread_id),
        "messages": [_serialize_message(m) for m in messages],
    }


@router.post("/threads/{thread_id}/resume", response_model=ChatResponse)
async def resume_thread(thread_id: str, assistant: ClaimAssistant = Depends(get_assistant)):
    """Continue an interrupted run from its last checkpoint."""
    response = await assistant.resume(thread_id)
    return ChatResponse(thread_id=thread_id, response=response)


@router.post("/threads/{thread_id}/cancel")
async def cancel_thread(thread_id: str, assistant: ClaimAssistant = Depends(get_assistant)):
    """Cancel the active run of a thread, if any."""
    return {"thread_id": thread_id, "cancelled": assistant.cancel(thread_id)}
