from fastapi import APIRouter, Request

from claim_assistant.core.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    """Health check endpoint. Reports whether the assistant finished starting up."""
    ready = getattr(request.app.state, "assistant", None) is not None
    return {
        "status": "ok" if ready else "starting",
        "checkpoint_backend": get_settings().checkpoint_backend,
    }
