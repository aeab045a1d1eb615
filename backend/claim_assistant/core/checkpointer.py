from contextlib import asynccontextmanager
from typing import AsyncIterator

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver

from claim_assistant.core.config import Settings
from claim_assistant.core.logging import get_logger

log = get_logger(__name__)


@asynccontextmanager
async def open_checkpointer(settings: Settings) -> AsyncIterator[BaseCheckpointSaver]:
    """
    Yield the checkpoint store for conversation threads.

    "memory"   → MemorySaver, threads live as long as the process.
    "postgres" → AsyncPostgresSaver over a shared connection pool.
                 setup() is idempotent; it creates the checkpointer tables
                 (checkpoints, checkpoint_writes, checkpoint_blobs) if missing.
    """
    if settings.checkpoint_backend == "memory":
        log.info("checkpointer_ready", backend="memory")
        yield MemorySaver()
        return

    if settings.checkpoint_backend != "postgres":
        raise ValueError(f"Unsupported checkpoint backend: {settings.checkpoint_backend!r}")

    from langgraph.checkpoint.postgres.aio import AsyncPostgresSaver
    from psycopg.rows import dict_row
    from psycopg_pool import AsyncConnectionPool

    async with AsyncConnectionPool(
        conninfo=settings.database_url,
        max_size=20,
        kwargs={"autocommit": True, "prepare_threshold": 0, "row_factory": dict_row},
        open=False,
    ) as pool:
        checkpointer = AsyncPostgresSaver(pool)
        await checkpointer.setup()
        log.info("checkpointer_ready", backend="postgres")
        yield checkpointer
