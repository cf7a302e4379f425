from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict


# =========================
# Enums
# =========================
class InboundEvent(str, Enum):
    PROCESS_QUERY = "ProcessNaturalLanguageQuery"


class OutboundEvent(str, Enum):
    STATUS = "ReceiveStatus"
    SQL_QUERY = "ReceiveSqlQuery"
    RESULTS = "ReceiveResults"
    ERROR = "ReceiveError"


# =========================
# SESSION FRAMES
# =========================
class ClientMessage(BaseModel):
    """
    Frame sent by the client over /queryhub.

    Example:
        {"event": "ProcessNaturalLanguageQuery", "data": "How many orders in the last 7 days?"}
    """

    event: InboundEvent
    data: str

    model_config = ConfigDict(extra="ignore")


class SessionEvent(BaseModel):
    """Frame sent to the client."""

    event: OutboundEvent
    data: Union[str, List[Dict[str, Any]]]

    model_config = ConfigDict(frozen=True)

    @classmethod
    def status(cls, message: str) -> "SessionEvent":
        return cls(event=OutboundEvent.STATUS, data=message)

    @classmethod
    def sql_generated(cls, sql: str) -> "SessionEvent":
        return cls(event=OutboundEvent.SQL_QUERY, data=sql)

    @classmethod
    def results(cls, rows: List[Dict[str, Any]]) -> "SessionEvent":
        return cls(event=OutboundEvent.RESULTS, data=rows)

    @classmethod
    def error(cls, message: str) -> "SessionEvent":
        return cls(event=OutboundEvent.ERROR, data=message)

