"""Health check endpoints."""
import logging
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from db.session import engine, engine_probe, store_readiness


logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    ready: bool


def get_store_probe() -> Callable[[], Awaitable[None]]:
    """Dependency returning a one-shot database probe."""
    return engine_probe(engine)


@router.get("/health", response_model=HealthResponse)
async def health_check(
    probe: Callable[[], Awaitable[None]] = Depends(get_store_probe),
) -> HealthResponse:
    """
    Check application and database health.

    Never waits on the readiness gate: `ready` reports whether the gate has
    opened, `database` whether a single probe succeeds right now.
    """
    db_status = "healthy"
    try:
        await probe()
    except (SQLAlchemyError, OSError):
        logger.exception("Database health check failed")
        db_status = "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        database=db_status,
        ready=store_readiness.is_ready,
    )
