"""
Active metadata store selection.

The application startup hook awaits ``bootstrap_store`` before the server
accepts requests, so no request ever sees a half-initialised store. If the
database cannot be reached the in-memory store is installed for the whole
process lifetime.
"""
import asyncio
import logging
from typing import Optional
from tir_takip.core.exceptions import StoreError
from tir_takip.core.logging_utils import sanitize_log_message
from tir_takip.database import close_db, create_engine, create_session_factory, init_db
from tir_takip.storage.base import BaseStore
from tir_takip.storage.memory import MemoryStore
from tir_takip.storage.sql import SQLStore

logger = logging.getLogger(__name__)

_active_store: Optional[BaseStore] = None


async def connect_sql_store(database_url: str, timeout: float) -> SQLStore:
    """Create the engine, create tables and probe the connection."""
    engine = create_engine(database_url)
    try:
        await asyncio.wait_for(init_db(engine), timeout=timeout)
    except BaseException:
        await close_db(engine)
        raise
    return SQLStore(engine, create_session_factory(engine))


async def bootstrap_store(database_url: Optional[str], timeout: float = 10) -> BaseStore:
    """
    Select and install the process-wide store.

    Args:
        database_url: Async SQLAlchemy URL; empty or None selects the memory store
        timeout: Seconds allowed for the connection attempt

    Returns:
        The installed store
    """
    if not database_url:
        logger.info("DATABASE_URL not set, using in-memory store")
        return set_store(MemoryStore())

    try:
        store = await connect_sql_store(database_url, timeout)
    except Exception as e:
        logger.error(
            sanitize_log_message(
                "Database connection failed, falling back to in-memory store",
                ExceptionType=type(e).__name__,
                ExceptionMessage=str(e)
            )
        )
        return set_store(MemoryStore())

    logger.info("Using database store")
    return set_store(store)


def set_store(store: BaseStore) -> BaseStore:
    global _active_store
    _active_store = store
    return store


def get_active_store() -> BaseStore:
    """Return the installed store; raises StoreError before bootstrap."""
    if _active_store is None:
        raise StoreError("Metadata store is not initialised")
    return _active_store


async def close_store() -> None:
    global _active_store
    if _active_store is not None:
        await _active_store.close()
        _active_store = None
