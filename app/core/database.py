import logging
import math
from typing import Callable, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import Settings, settings

logger = logging.getLogger(__name__)


def set_driver_query_timeout(connection_record, seconds: float):
    # aioodbc only exposes a read-only view of the timeout; the pyodbc
    # connection underneath is where the server-side statement limit lives
    connection_record.driver_connection._conn.timeout = math.ceil(seconds)


def attach_query_timeout(db_engine: AsyncEngine, seconds: float) -> Optional[Callable]:
    """
    Make the ODBC driver abandon statements that run past `seconds`.

    The executor's own timeout only stops waiting; this stops the statement.
    Returns the registered listener, or None for drivers without the knob.
    """
    if db_engine.dialect.driver != "aioodbc" or seconds <= 0:
        return None

    @event.listens_for(db_engine.sync_engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        set_driver_query_timeout(connection_record, seconds)

    logger.info(f"ODBC query timeout set to {math.ceil(seconds)}s")
    return on_connect


def build_engine(config: Settings) -> AsyncEngine:
    # The driver's own pool is all the connection reuse we rely on
    db_engine = create_async_engine(
        config.DATABASE_URL, echo=config.SQL_ECHO, pool_pre_ping=True
    )
    attach_query_timeout(db_engine, config.QUERY_TIMEOUT_SECONDS)
    return db_engine


engine = build_engine(settings)


# All the models are "stored" in the Base class will be processed by the Engine
class Base(DeclarativeBase):
    pass
