"""Rule-based notices raised after a capture has been analysed."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from .models import CaptureAnalysis


@dataclass(slots=True)
class Notice:
    """Short message surfaced to the user about what a capture contained."""

    kind: str
    message: str


CaptureRule = Callable[[CaptureAnalysis], Optional[Notice]]


class RuleEngine:
    """Evaluates a capture analysis against an ordered rule set."""

    def __init__(self, rules: Iterable[CaptureRule]) -> None:
        self.rules = list(rules)

    def evaluate(self, analysis: CaptureAnalysis) -> List[Notice]:
        notices: List[Notice] = []
        for rule in self.rules:
            notice = rule(analysis)
            if notice:
                notices.append(notice)
        return notices


def empty_capture_rule(analysis: CaptureAnalysis) -> Notice | None:
    if not analysis.is_empty:
        return None
    return Notice("empty", "No text detected on screen. Try capturing a different area.")


def table_rule(analysis: CaptureAnalysis) -> Notice | None:
    if not analysis.has_table:
        return None
    if analysis.table is not None and analysis.table.synthetic:
        return Notice("table", "Possible student scores detected. Click 'Visualize Data' to review them.")
    return Notice("table", "Table data detected! Click the 'Visualize Data' button to see charts.")


def meeting_rule(analysis: CaptureAnalysis) -> Notice | None:
    if analysis.meeting is None:
        return None
    return Notice("meeting", "Meeting request detected! You can confirm or reschedule.")


def plain_text_rule(analysis: CaptureAnalysis) -> Notice | None:
    if analysis.is_empty or analysis.email is not None or analysis.has_table:
        return None
    return Notice("text", "Screen content captured! You can now ask questions about it.")


DEFAULT_RULES: List[CaptureRule] = [
    empty_capture_rule,
    table_rule,
    meeting_rule,
    plain_text_rule,
]
