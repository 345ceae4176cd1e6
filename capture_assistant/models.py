"""Data models shared by the capture assistant modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple, Union

CellValue = Union[str, int, float]
TableRow = Dict[str, CellValue]

ROWSET_TABLE = "table"
ROWSET_COUNT = "count"
ROWSET_SYNTHETIC = "synthetic"


@dataclass(frozen=True, slots=True)
class Condition:
    """Single ``field operator value`` clause from a WHERE body."""

    field: str
    operator: str
    value: Union[int, str]


@dataclass(frozen=True, slots=True)
class QueryAnalysis:
    """Shallow structural reading of a SQL query."""

    is_count_query: bool
    has_filter: bool
    tables: Tuple[str, ...] = ()
    conditions: Tuple[Condition, ...] = ()
    count_target: Optional[str] = None
    filter_field: Optional[str] = None
    filter_operator: Optional[str] = None
    filter_value: Optional[int] = None


@dataclass(slots=True)
class TableRowSet:
    """Rows recovered from captured text.

    ``kind`` separates real tables from scalar count results and from rows
    guessed by the synthetic fallback.
    """

    rows: List[TableRow]
    kind: str = ROWSET_TABLE

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[TableRow]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> TableRow:
        return self.rows[index]

    @property
    def headers(self) -> List[str]:
        return list(self.rows[0]) if self.rows else []

    @property
    def synthetic(self) -> bool:
        return self.kind == ROWSET_SYNTHETIC

    @property
    def is_count_result(self) -> bool:
        if self.kind == ROWSET_COUNT:
            return True
        return (
            len(self.rows) == 1
            and len(self.rows[0]) == 1
            and "count" in next(iter(self.rows[0])).lower()
        )

    def to_records(self) -> List[TableRow]:
        return [dict(row) for row in self.rows]


@dataclass(slots=True)
class EmailData:
    """Email fields recovered from a captured mail client window."""

    sender: str = "Unknown sender"
    recipient: str = "Unknown recipient"
    subject: str = "No subject"
    date: str = "Unknown date"
    body: str = ""


@dataclass(slots=True)
class MeetingDetails:
    """Date and time hints found in meeting-related captured text."""

    date: Optional[str]
    time: Optional[str]
    raw_text: str


@dataclass(slots=True)
class MeetingRequest:
    """A meeting the user asked to put on the calendar."""

    title: str = "Meeting"
    date: Optional[str] = None
    time: Optional[str] = None
    duration_minutes: Optional[int] = None
    participants: List[str] = field(default_factory=list)
    description: str = ""


@dataclass(slots=True)
class ChatMessage:
    """One chat turn, persisted by the session store."""

    message_id: str
    sender: str
    text: str
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def role(self) -> str:
        return "user" if self.sender == "user" else "assistant"


@dataclass(slots=True)
class CaptureAnalysis:
    """Everything derived from one piece of captured screen text."""

    raw_text: str
    cleaned_text: str
    email: Optional[EmailData] = None
    sql_query: Optional[str] = None
    query_analysis: Optional[QueryAnalysis] = None
    table: Optional[TableRowSet] = None
    meeting: Optional[MeetingDetails] = None
    has_table: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.cleaned_text.strip()
