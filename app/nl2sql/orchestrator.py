import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from app.core.schemas import SessionEvent
from app.nl2sql.executor import QueryExecutor
from app.nl2sql.generator import QueryGenerator
from app.nl2sql.guard import QueryGuard
from app.nl2sql.outcomes import (
    ExecutionError,
    GenerationError,
    GuardRejection,
    ResultSet,
)
from app.nl2sql.prompt import build_prompt
from app.nl2sql.schema import EntityDescriptor


# -----------------------------------------------------------------------------
# SESSION ORCHESTRATOR
# Purpose: run one question through prompt -> generation -> guard -> execution
# and tell the caller what is happening at every step.
# One orchestrator per request; nothing is shared between requests except the
# read-only pipeline components.
# -----------------------------------------------------------------------------

logger = logging.getLogger(__name__)

Emit = Callable[[SessionEvent], Awaitable[None]]

STATUS_ANALYZING = "🤖 Analyzing your question..."
STATUS_TRANSLATING = "🔄 Translating to SQL query..."
STATUS_SQL_GENERATED = "✅ SQL Generated"
STATUS_EXECUTING = "⚡ Executing query..."
UNEXPECTED_ERROR = "Something went wrong while processing your question"


def completed_status(count: int) -> str:
    return f"✅ Query completed! Found {count} result(s)"


def error_text(message: str) -> str:
    return f"❌ Error: {message}"


class SessionState(Enum):
    """Request lifecycle. COMPLETED and FAILED are terminal."""

    IDLE = "idle"
    SCHEMA_RESOLVED = "schema_resolved"
    GENERATING = "generating"
    GENERATED = "generated"
    GUARDING = "guarding"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class QueryPipeline:
    """The stateless components every orchestrator is built from."""

    schema: EntityDescriptor
    generator: QueryGenerator
    guard: QueryGuard
    executor: QueryExecutor
    max_question_length: int


class SessionOrchestrator:
    def __init__(
        self, pipeline: QueryPipeline, emit: Emit, request_id: Optional[str] = None
    ):
        self.pipeline = pipeline
        self.emit = emit
        self.request_id = request_id or uuid.uuid4().hex[:8]
        self.state = SessionState.IDLE
        # Set once Results or Error went out; nothing terminal is sent twice
        self.finished = False

    def _move(self, state: SessionState):
        logger.debug(f"[Request {self.request_id}] {self.state.value} -> {state.value}")
        self.state = state

    async def run(self, question: str) -> SessionState:
        """
        Process one question end to end.

        Never raises (except on cancellation): any failure becomes a single
        Error event and the FAILED state.
        """
        try:
            await self._run(question)
        except Exception:
            logger.exception(
                f"[Request {self.request_id}] Unexpected failure in state {self.state.value}"
            )
            if not self.finished:
                await self._fail(UNEXPECTED_ERROR)
        return self.state

    async def _run(self, question: str):
        rejection = self.validate_question(question)
        if rejection:
            await self._fail(rejection)
            return

        logger.info(f"[Request {self.request_id}] Processing query: {question[:200]!r}")
        await self.emit(SessionEvent.status(STATUS_ANALYZING))
        schema = self.pipeline.schema
        self._move(SessionState.SCHEMA_RESOLVED)

        prompt = build_prompt(question, schema)
        await self.emit(SessionEvent.status(STATUS_TRANSLATING))
        self._move(SessionState.GENERATING)

        generated = await self.pipeline.generator.generate(prompt)
        if isinstance(generated, GenerationError):
            logger.error(
                f"[Request {self.request_id}] Generation failed ({generated.reason.value})"
            )
            await self._fail(generated.message)
            return

        logger.info(f"[Request {self.request_id}] Generated SQL: {generated.text}")
        self._move(SessionState.GENERATED)
        await self.emit(SessionEvent.status(STATUS_SQL_GENERATED))

        self._move(SessionState.GUARDING)
        decision = self.pipeline.guard.check(generated.text)
        if isinstance(decision, GuardRejection):
            logger.warning(
                f"[Request {self.request_id}] Guard rejected query "
                f"({decision.rule.value}, keyword={decision.keyword})"
            )
            await self._fail(decision.message)
            return

        # The SQL is only shown once it is allowed to run
        await self.emit(SessionEvent.sql_generated(decision.query))
        await self.emit(SessionEvent.status(STATUS_EXECUTING))
        self._move(SessionState.EXECUTING)

        executed = await self.pipeline.executor.execute(decision)
        if isinstance(executed, ExecutionError):
            logger.error(
                f"[Request {self.request_id}] Execution failed ({executed.kind.value})"
            )
            await self._fail(executed.message)
            return

        await self._complete(executed)

    def validate_question(self, question: str) -> Optional[str]:
        if not isinstance(question, str) or not question.strip():
            return "Please enter a question"
        limit = self.pipeline.max_question_length
        if limit and len(question) > limit:
            return f"Question is too long (maximum {limit} characters)"
        return None

    async def _complete(self, results: ResultSet):
        self.finished = True
        await self.emit(SessionEvent.results(results.to_json()))
        self._move(SessionState.COMPLETED)
        await self.emit(SessionEvent.status(completed_status(len(results))))
        logger.info(
            f"[Request {self.request_id}] Query completed successfully with {len(results)} results"
        )

    async def _fail(self, message: str):
        self.finished = True
        self._move(SessionState.FAILED)
        try:
            await self.emit(SessionEvent.error(error_text(message)))
        except Exception:
            # Caller is most likely gone; the request is over either way
            logger.exception(f"[Request {self.request_id}] Could not deliver error event")
