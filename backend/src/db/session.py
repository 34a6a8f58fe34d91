"""Async SQLAlchemy session factory and store readiness gate."""
import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import Settings, get_settings
from services.exceptions import StoreError

logger = logging.getLogger(__name__)


def engine_options(settings: Settings) -> dict[str, Any]:
    """Connection pool options for the configured database (SQLite takes none)."""
    if settings.database_url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=False,
    **engine_options(settings),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class StoreReadiness:
    """
    One-shot initialization future for the database.

    The first caller of `wait()` starts a probe task; every other caller awaits
    that same task. The probe is retried `attempts` times with `delay` seconds
    in between, and raises StoreError once attempts are exhausted. A failed
    probe is discarded so the next `wait()` starts a fresh one.
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[None]],
        attempts: int,
        delay: float,
    ) -> None:
        self._probe = probe
        self._attempts = attempts
        self._delay = delay
        self._task: asyncio.Task[None] | None = None

    @property
    def is_ready(self) -> bool:
        """True once a probe has succeeded."""
        return (
            self._task is not None
            and self._task.done()
            and not self._task.cancelled()
            and self._task.exception() is None
        )

    async def wait(self) -> None:
        """Wait until the store answers, starting the probe if nobody has yet."""
        if self._task is not None and self._task.done() and not self.is_ready:
            self._task = None
        if self._task is None:
            self._task = asyncio.create_task(self._poll())
        await asyncio.shield(self._task)

    async def _poll(self) -> None:
        last_error: Exception | None = None
        for attempt in range(1, self._attempts + 1):
            try:
                await self._probe()
            except (SQLAlchemyError, OSError) as e:
                last_error = e
                logger.warning(
                    "Database not ready (attempt %d/%d): %s", attempt, self._attempts, e,
                )
                if attempt < self._attempts:
                    await asyncio.sleep(self._delay)
            else:
                logger.info("Database ready after %d attempt(s)", attempt)
                return
        raise StoreError(
            f"Database did not become ready after {self._attempts} attempts",
            cause=str(last_error),
        )


def engine_probe(target: AsyncEngine) -> Callable[[], Awaitable[None]]:
    """Build a readiness probe that runs SELECT 1 on the given engine."""
    async def probe() -> None:
        async with target.connect() as conn:
            await conn.execute(text("SELECT 1"))

    return probe


store_readiness = StoreReadiness(
    engine_probe(engine),
    attempts=settings.db_ready_attempts,
    delay=settings.db_ready_delay_seconds,
)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    Yield an async database session.

    Waits for the store readiness gate first. Uses unit-of-work pattern: services
    use flush() for refreshing objects, commit happens once here at request end.
    If anything fails, all changes are rolled back, so a failed write never
    leaves a partial update behind.
    """
    await store_readiness.wait()
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
