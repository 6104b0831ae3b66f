import asyncio
from functools import wraps

import structlog
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .settings import settings

logger = structlog.get_logger(__name__)

DATABASE_URL = settings.database_url

engine = create_async_engine(DATABASE_URL, echo=settings.db_echo, pool_pre_ping=True)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


def is_transient(exc: Exception) -> bool:
    """True for connectivity failures that are worth another attempt."""
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def retry_on_transient(max_attempts: int | None = None, backoff: float | None = None):
    """Retry an idempotent coroutine on transient store failures.

    Only wrap reads: a retried write could be applied twice.
    """
    attempts = max_attempts or settings.db_retry_attempts
    delay = settings.db_retry_backoff if backoff is None else backoff

    def deco(fn):
        @wraps(fn)
        async def wrapper(db: AsyncSession, *args, **kwargs):
            attempt = 0
            while True:
                attempt += 1
                try:
                    return await fn(db, *args, **kwargs)
                except DBAPIError as exc:
                    if attempt >= attempts or not is_transient(exc):
                        raise
                    logger.warning(
                        "db_transient_failure",
                        operation=fn.__qualname__,
                        attempt=attempt,
                        error=exc.__class__.__name__,
                    )
                    await db.rollback()
                    await asyncio.sleep(delay * attempt)
        return wrapper
    return deco


async def init_models() -> None:
    """Create all tables registered on Base (dev/test bootstrap, no migrations)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db_tables_ready", tables=sorted(Base.metadata.tables.keys()))


async def ping() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (DBAPIError, OSError) as exc:
        logger.warning("db_ping_failed", error=str(exc))
        return False
