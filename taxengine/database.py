"""Optional PostgreSQL persistence for calculation audits and request timings.

Tax results themselves are never stored here (the ERP's payable, deal and
invoice records own them). When PostgreSQL is unreachable the service keeps
answering and simply skips the audit trail.
"""

from __future__ import annotations
import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from taxengine.config import settings
from taxengine.models.db_models import Base, CalculationAudit

logger = logging.getLogger(__name__)

_engine = None
_async_session_factory = None
_db_available: bool = False


async def init_db() -> None:
    """Create the engine, the session factory and the audit tables."""
    global _engine, _async_session_factory, _db_available

    try:
        _engine = create_async_engine(
            settings.DATABASE_URL,
            echo=False,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )
        _async_session_factory = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        _db_available = True
        logger.info("PostgreSQL connection established; calculation audits enabled.")
    except Exception as exc:
        _db_available = False
        logger.warning(
            "PostgreSQL unavailable — calculation audits disabled. Error: %s",
            exc,
        )


async def close_db() -> None:
    global _engine, _db_available
    if _engine is not None:
        await _engine.dispose()
        _db_available = False
        logger.info("PostgreSQL connection pool closed.")


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession | None, None]:
    """Yield an async session if DB is available, otherwise yield None."""
    if not _db_available or _async_session_factory is None:
        yield None
        return

    session = _async_session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def record_calculation(
    endpoint: str,
    calculation: str,
    request: BaseModel,
    result: BaseModel,
) -> None:
    """Append one row to the calculation audit trail.

    A failed write is logged and dropped; it never changes the answer the
    caller already computed.
    """
    try:
        async with get_session() as session:
            if session is None:
                return
            session.add(
                CalculationAudit(
                    endpoint=endpoint,
                    calculation=calculation,
                    request_payload=request.model_dump_json(),
                    result_payload=json.dumps(result.model_dump(mode="json"), sort_keys=True),
                )
            )
    except SQLAlchemyError as exc:
        logger.warning("Could not write %s audit for %s: %s", calculation, endpoint, exc)
