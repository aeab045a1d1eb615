from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

# Must come after load_dotenv so env vars are available
from claim_assistant.agents.claim_agent import build_claim_graph      # noqa: E402
from claim_assistant.agents.context import AgentContext               # noqa: E402
from claim_assistant.agents.orchestrator import ClaimAssistant        # noqa: E402
from claim_assistant.agents.reasoner import ChatModelReasoner         # noqa: E402
from claim_assistant.agents.registry import ToolRegistry              # noqa: E402
from claim_assistant.agents.tools import build_claim_tools            # noqa: E402
from claim_assistant.api import chat, health                          # noqa: E402
from claim_assistant.core.checkpointer import open_checkpointer       # noqa: E402
from claim_assistant.core.config import get_settings                  # noqa: E402
from claim_assistant.core.errors import (                             # noqa: E402
    ClaimAgentError,
    InvariantViolation,
    StepBoundExceeded,
    ThreadBusy,
    ThreadNotFound,
    UnknownAction,
)
from claim_assistant.core.llm import get_chat_model                   # noqa: E402
from claim_assistant.core.logging import configure_logging, get_logger  # noqa: E402
from claim_assistant.services.claims import seeded_claims_service     # noqa: E402

configure_logging()
log = get_logger(__name__)

_STATUS_BY_ERROR: dict[type[ClaimAgentError], int] = {
    UnknownAction: 422,
    StepBoundExceeded: 508,   # loop detected
    InvariantViolation: 500,
    ThreadBusy: 409,
    ThreadNotFound: 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    async with open_checkpointer(settings) as checkpointer:
        registry = ToolRegistry(build_claim_tools(seeded_claims_service()))
        context = AgentContext.from_settings(settings, ChatModelReasoner(get_chat_model(settings)), registry)
        app.state.assistant = ClaimAssistant(build_claim_graph(context, checkpointer), settings.max_steps)
        log.info("startup", version="0.1.0", environment=settings.environment, tools=sorted(registry.names))
        yield
    log.info("shutdown")


app = FastAPI(
    title="Claim Assistant Backend",
    description="LangGraph claim-processing assistant API",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClaimAgentError)
async def claim_agent_error_handler(request: Request, exc: ClaimAgentError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    return JSONResponse(status_code=status_code, content={"error": exc.code, "detail": str(exc)})


app.include_router(health.router)
app.include_router(chat.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("claim_assistant.main:app", host="0.0.0.0", port=8000, reload=True)
