# academy/core/database.py
"""Database connection, session management and the retryable atomic unit."""
import asyncio
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy import text
import logging

from .config import settings
from .exceptions import AcademyException, InfrastructureError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# SQLSTATE codes PostgreSQL uses for serialization failures and deadlocks
RETRYABLE_SQLSTATES = {"40001", "40P01"}
SQLITE_LOCK_MESSAGES = ("database is locked", "database table is locked")


def create_engine_for_url(database_url: str, **kwargs) -> AsyncEngine:
    """Build an async engine with driver-appropriate connection arguments."""
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            # seconds to wait on a locked database before raising
            connect_args={"timeout": 30},
            **kwargs
        )

    return create_async_engine(
        database_url,
        pool_size=15,
        max_overflow=25,
        pool_timeout=60,
        pool_recycle=1800,
        pool_pre_ping=True,
        connect_args={
            "command_timeout": 60,
            "server_settings": {
                "application_name": "academy_api",
                "idle_in_transaction_session_timeout": "60s",
                "lock_timeout": "30s",
            }
        },
        **kwargs
    )


engine = create_engine_for_url(
    settings.database_url,
    echo=(settings.environment == 'development'),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for API requests with proper error handling"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()


def _is_contention(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(lock_message in message for lock_message in SQLITE_LOCK_MESSAGES)


async def run_in_transaction(
    bind: AsyncEngine,
    work: Callable[[AsyncSession], Awaitable[T]],
    max_retries: Optional[int] = None,
) -> T:
    """Run ``work`` inside one transaction on a fresh session.

    Either every write made by ``work`` commits or none does. Contention
    reported by the database (lock timeouts, serialization failures,
    deadlocks) re-runs ``work`` from the start on a new session, so ``work``
    must re-read whatever state it decides on. Domain exceptions raised by
    ``work`` roll back and propagate unchanged; any other database failure
    is surfaced as ``InfrastructureError``.
    """
    attempts = max_retries or settings.transaction_max_retries
    session_factory = async_sessionmaker(bind, expire_on_commit=False, autoflush=False)

    for attempt in range(1, attempts + 1):
        async with session_factory() as session:
            try:
                async with session.begin():
                    return await work(session)
            except AcademyException:
                raise
            except DBAPIError as e:
                if _is_contention(e) and attempt < attempts:
                    logger.warning(f"Transaction contention (attempt {attempt}/{attempts}): {e.orig}")
                    await asyncio.sleep(settings.transaction_retry_backoff * attempt)
                    continue
                logger.error(f"Transaction failed: {e}")
                raise InfrastructureError(f"Database transaction failed: {e.orig}") from e
            except SQLAlchemyError as e:
                logger.error(f"Transaction failed: {e}")
                raise InfrastructureError(f"Database transaction failed: {e}") from e

    # Loop either returns or raises; kept for type checkers
    raise InfrastructureError("Database transaction could not complete")


async def init_models(bind: AsyncEngine = engine):
    """Create all tables (development and tests; production uses Alembic)"""
    from ..models import Base

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def health_check_db() -> bool:
    """Fast health check"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def close_db_connections():
    """Properly close all database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
