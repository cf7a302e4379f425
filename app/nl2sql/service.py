"""
Builds the question-to-SQL pipeline from configuration.

Flow for one question (see orchestrator.py):
1. Build the prompt from the static schema
2. Generate SQL with the completion backend
3. Validate SQL safety
4. Execute the read-only query
5. Stream status, SQL and rows back to the caller
"""

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings, settings
from app.core.database import engine
from app.nl2sql.executor import QueryExecutor
from app.nl2sql.generator import QueryGenerator
from app.nl2sql.guard import QueryGuard
from app.nl2sql.orchestrator import QueryPipeline
from app.nl2sql.schema import ORDERS_SCHEMA


def build_pipeline(config: Settings, db_engine: AsyncEngine, **overrides) -> QueryPipeline:
    components = {
        "schema": ORDERS_SCHEMA,
        "generator": QueryGenerator(config),
        "guard": QueryGuard(),
        "executor": QueryExecutor(db_engine, config),
        "max_question_length": config.MAX_QUESTION_LENGTH,
    }
    components.update(overrides)
    return QueryPipeline(**components)


@lru_cache
def get_pipeline() -> QueryPipeline:
    """FastAPI dependency: one shared, read-only pipeline per process."""
    return build_pipeline(settings, engine)
