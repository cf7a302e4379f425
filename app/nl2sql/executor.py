import asyncio
import logging

from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from app.core.config import Settings
from app.nl2sql.outcomes import (
    Accepted,
    Cell,
    ExecutionError,
    ExecutionFailure,
    ExecutionOutcome,
    ResultSet,
)

logger = logging.getLogger(__name__)


DRIVER_TIMEOUT_SQLSTATE = "HYT00"


def describe_store_error(error: SQLAlchemyError) -> str:
    """First line of the driver's message, without SQLAlchemy's wrapping."""
    original = error.orig if isinstance(error, DBAPIError) else error
    text = str(original).strip() or error.__class__.__name__
    return text.splitlines()[0]


def is_driver_timeout(error: SQLAlchemyError) -> bool:
    # pyodbc puts the SQLSTATE first in the error args
    original = getattr(error, "orig", None)
    args = getattr(original, "args", ())
    return bool(args) and args[0] == DRIVER_TIMEOUT_SQLSTATE


class QueryExecutor:
    """
    Runs one guarded query against the backing store.

    - one connection per query, always released (errors, timeout, cancellation)
    - the transaction is never committed, so nothing the query does persists
    - no retries
    """

    def __init__(self, engine: AsyncEngine, config: Settings):
        self.engine = engine
        self.timeout = config.QUERY_TIMEOUT_SECONDS

    def timed_out(self, query: str) -> ExecutionError:
        logger.error(f"Query timed out after {self.timeout}s: {query}")
        return ExecutionError(
            ExecutionFailure.TIMEOUT,
            f"Query timed out after {self.timeout:g} seconds",
        )

    async def execute(self, accepted: Accepted) -> ExecutionOutcome:
        # The driver enforces the same limit server side (see app.core.database)
        try:
            return await asyncio.wait_for(self._execute(accepted.query), self.timeout)
        except asyncio.TimeoutError:
            return self.timed_out(accepted.query)

    async def _execute(self, query: str) -> ExecutionOutcome:
        try:
            conn = await self.engine.connect()
        except (SQLAlchemyError, OSError) as error:
            logger.error("Could not connect to the database", exc_info=error)
            return ExecutionError(
                ExecutionFailure.CONNECTION, "Could not connect to the database"
            )

        try:
            return await self.fetch(conn, query)
        except SQLAlchemyError as error:
            if is_driver_timeout(error):
                return self.timed_out(query)
            logger.error(f"Database rejected query: {query}", exc_info=error)
            return ExecutionError(
                ExecutionFailure.STATEMENT,
                f"The database rejected the query: {describe_store_error(error)}",
            )
        finally:
            # Closing without commit rolls back whatever the statement did
            await conn.close()

    async def fetch(self, conn: AsyncConnection, query: str) -> ResultSet:
        # exec_driver_sql sends the text as-is; no bind parameter parsing
        result = await conn.exec_driver_sql(query)
        if not result.returns_rows:
            return ResultSet(columns=())

        columns = tuple(result.keys())
        rows = [
            {column: Cell.from_store(value) for column, value in zip(columns, row)}
            for row in result
        ]
        return ResultSet(columns=columns, rows=rows)
