"""Chart series prepared from extracted tables; rendering is left to the caller."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .models import QueryAnalysis, TableRow, TableRowSet

CHART_BAR = "bar"
CHART_PIE = "pie"
CHART_LINE = "line"

# Class size assumed when a COUNT result has to be shown against the rest.
COUNT_TOTAL_ESTIMATE = 80

_STUDENT_WORDS = ("student", "name", "score", "mark")
_SCORE_FILTER = re.compile(r"score|grade|mark", re.IGNORECASE)
_THRESHOLD = re.compile(r"([><=!]+)\s*(\d+)")
_SCORE_COLUMN = re.compile(r"([a-z0-9_]*(?:score|grade|mark|point)[a-z0-9_]*)", re.IGNORECASE)
_DATE_LABEL = re.compile(r"^\d{4}-\d{2}(-\d{2})?$|^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)", re.IGNORECASE)
_OPERATOR_LABELS = {">": ">", "<": "<", ">=": "≥", "<=": "≤", "=": "="}


@dataclass(slots=True)
class ChartData:
    chart_type: str
    label: str
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)


def suggest_chart_type(query: Optional[str], analysis: Optional[QueryAnalysis] = None) -> str:
    """Pick a default chart for the query that produced the table."""

    if not query:
        return CHART_BAR
    lowered = query.lower()
    if "count" in lowered:
        return CHART_PIE
    if any(word in lowered for word in _STUDENT_WORDS):
        return CHART_BAR
    if analysis and analysis.filter_field and _SCORE_FILTER.search(analysis.filter_field):
        return CHART_PIE
    return CHART_BAR


def suggest_chart_for_labels(labels: Sequence[str]) -> str:
    if any(_DATE_LABEL.search(label) for label in labels):
        return CHART_LINE
    if len(labels) <= 6:
        return CHART_PIE
    return CHART_BAR


def _as_number(value: object) -> float:
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value))
    except ValueError:
        return 0


def _count_split(rows: TableRowSet, query: str) -> ChartData:
    count = _as_number(next(iter(rows[0].values())))
    operator, threshold = ">", 0
    match = _THRESHOLD.search(query)
    if match:
        operator, threshold = match.group(1), int(match.group(2))
    column_match = _SCORE_COLUMN.search(query)
    column = column_match.group(1) if column_match else "score"
    if operator in _OPERATOR_LABELS:
        matching = f"{column} {_OPERATOR_LABELS[operator]} {threshold}"
    else:
        matching = "Matching"
    remaining = COUNT_TOTAL_ESTIMATE - count
    return ChartData(
        chart_type=CHART_PIE,
        label="SQL Query Results",
        labels=[f"{matching} ({count:g})", f"Not Matching ({remaining:g})"],
        values=[count, remaining],
    )


def _name_and_score_columns(headers: List[str]) -> tuple[str, str]:
    name_column = headers[0]
    score_column = headers[1] if len(headers) > 1 else headers[0]
    for header in headers:
        lowered = header.lower()
        if "name" in lowered or "student" in lowered:
            name_column = header
        elif any(word in lowered for word in ("score", "mark", "grade", "point")):
            score_column = header
    return name_column, score_column


def _series(rows: Sequence[TableRow], label_column: str, value_column: str) -> tuple[List[str], List[float]]:
    labels = [str(row.get(label_column, "")) for row in rows]
    values = [_as_number(row.get(value_column, 0)) for row in rows]
    return labels, values


def build_chart_data(
    rows: Optional[TableRowSet],
    *,
    chart_type: str = CHART_BAR,
    query: Optional[str] = None,
) -> Optional[ChartData]:
    """Turn a row set into labelled values for a bar, pie or line chart."""

    if not rows or not rows.headers:
        return None
    if chart_type == CHART_PIE and query and "count" in query.lower() and len(rows) == 1:
        return _count_split(rows, query)
    headers = rows.headers
    if chart_type == CHART_BAR:
        name_column, score_column = _name_and_score_columns(headers)
        labels, values = _series(rows.rows, name_column, score_column)
        return ChartData(chart_type=CHART_BAR, label=score_column, labels=labels, values=values)
    label_column = headers[0]
    value_column = headers[1] if len(headers) > 1 else headers[0]
    labels, values = _series(rows.rows, label_column, value_column)
    return ChartData(chart_type=chart_type, label=f"{value_column} by {label_column}", labels=labels, values=values)
