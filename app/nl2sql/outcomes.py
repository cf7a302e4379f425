"""
Result types passed between the pipeline stages.

Each stage returns either a success value or an error value instead of
raising, so the orchestrator can branch on the type of what it got back.
Every error carries a `message` that is safe to show to the caller.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


# =========================
# Generation
# =========================
@dataclass(frozen=True)
class CandidateQuery:
    """SQL text produced by the completion backend. Untrusted until guarded."""

    text: str


class GenerationFailure(str, Enum):
    UNAVAILABLE = "unavailable"
    HTTP_STATUS = "http_status"
    MALFORMED = "malformed"
    EMPTY = "empty"


@dataclass(frozen=True)
class GenerationError:
    reason: GenerationFailure
    message: str


GenerationOutcome = Union[CandidateQuery, GenerationError]


# =========================
# Guard
# =========================
class GuardRule(str, Enum):
    READ_ONLY_PREFIX = "read_only_prefix"
    FORBIDDEN_KEYWORD = "forbidden_keyword"


@dataclass(frozen=True)
class Accepted:
    """A query that passed the guard. The executor only takes this type."""

    query: str


@dataclass(frozen=True)
class GuardRejection:
    rule: GuardRule
    message: str
    keyword: Optional[str] = None


GuardDecision = Union[Accepted, GuardRejection]


# =========================
# Execution
# =========================
class ValueKind(str, Enum):
    NULL = "null"
    NUMBER = "number"
    TEXT = "text"
    TEMPORAL = "temporal"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class Cell:
    """One result value tagged with its kind so serialization is explicit."""

    kind: ValueKind
    value: Any = None

    @classmethod
    def from_store(cls, value: Any) -> "Cell":
        # bool first: it is a subclass of int
        if value is None:
            return cls(ValueKind.NULL)
        if isinstance(value, bool):
            return cls(ValueKind.BOOLEAN, value)
        if isinstance(value, (int, float, Decimal)):
            return cls(ValueKind.NUMBER, value)
        if isinstance(value, (datetime, date, time)):
            return cls(ValueKind.TEMPORAL, value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(ValueKind.TEXT, bytes(value).hex())
        return cls(ValueKind.TEXT, str(value))

    def to_json(self) -> Union[None, bool, int, float, str]:
        if self.kind is ValueKind.NULL:
            return None
        if self.kind is ValueKind.BOOLEAN:
            return bool(self.value)
        if self.kind is ValueKind.NUMBER:
            if isinstance(self.value, Decimal):
                return float(self.value)
            return self.value
        if self.kind is ValueKind.TEMPORAL:
            return self.value.isoformat()
        return self.value


ResultRow = Dict[str, Cell]


@dataclass(frozen=True)
class ResultSet:
    columns: Tuple[str, ...]
    rows: List[ResultRow] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def to_json(self) -> List[Dict[str, Any]]:
        """Rows as ordered column -> JSON value mappings."""
        return [
            {column: row[column].to_json() for column in self.columns}
            for row in self.rows
        ]


class ExecutionFailure(str, Enum):
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    STATEMENT = "statement"


@dataclass(frozen=True)
class ExecutionError:
    kind: ExecutionFailure
    message: str


ExecutionOutcome = Union[ResultSet, ExecutionError]
