"""Locate SQL queries inside captured text and read their basic shape."""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional, Sequence

from .models import Condition, QueryAnalysis

logger = logging.getLogger(__name__)

SQL_KEYWORDS = re.compile(
    r"SELECT|INSERT|UPDATE|DELETE|CREATE|ALTER|DROP|TRUNCATE|JOIN|FROM|WHERE|GROUP BY|ORDER BY",
    re.IGNORECASE,
)

# Clause bodies end at the next clause keyword, a trailing semicolon or the
# end of the query.
_FROM_CLAUSE = re.compile(
    r"from\s+([a-z0-9_.,\s]+?)(?:\s+where|\s+group|\s+having|\s+order|\s+limit|\s*;|\s*\Z)"
)
_WHERE_CLAUSE = re.compile(
    r"where\s+(.+?)(?:\s+group|\s+having|\s+order|\s+limit|\s*;|\s*\Z)",
    re.DOTALL,
)
_COUNT_TARGET = re.compile(r"count\(\s*(?:distinct\s+)?([a-z0-9_.*]+)\s*\)")
_SCORE_FILTER = re.compile(
    r"([a-z0-9_]*(?:score|mark|grade|point)[a-z0-9_]*)\s*(>=|<=|!=|[><=])\s*([0-9]+)"
)
_CONDITION = re.compile(r"([a-z0-9_]+)\s*([><=!]+)\s*(['\"]?[^'\"\s]+['\"]?)")
_BOOLEAN_SPLIT = re.compile(r"\s+and\s+|\s+or\s+", re.IGNORECASE)

# A boundary check receives the lines, the query start and the current index,
# and returns the last line of the query or None when it does not apply.
BoundaryRule = Callable[[Sequence[str], int, int], Optional[int]]


def _semicolon_boundary(lines: Sequence[str], start: int, index: int) -> Optional[int]:
    return index if ";" in lines[index] else None


def _separator_boundary(lines: Sequence[str], start: int, index: int) -> Optional[int]:
    if index > start and "----" in lines[index]:
        return index - 1
    return None


def _results_boundary(lines: Sequence[str], start: int, index: int) -> Optional[int]:
    if index <= start + 2 or lines[index].strip():
        return None
    if index + 1 < len(lines) and lines[index + 1].strip():
        return index - 1
    return None


BOUNDARY_RULES: List[BoundaryRule] = [
    _semicolon_boundary,
    _separator_boundary,
    _results_boundary,
]


def find_query_start(lines: Sequence[str]) -> Optional[int]:
    for index, line in enumerate(lines):
        if SQL_KEYWORDS.search(line):
            return index
    return None


def find_query_end(lines: Sequence[str], start: int) -> int:
    for index in range(start, len(lines)):
        for rule in BOUNDARY_RULES:
            end = rule(lines, start, index)
            if end is not None:
                return end
    return len(lines) - 1


def extract_sql_query(text: Optional[str]) -> Optional[str]:
    """Return the first block of lines that looks like a SQL query.

    Any line containing a SQL keyword starts the block; it runs until a
    semicolon, a ``----`` result border or a blank line that separates the
    query from its output. Nothing is validated.
    """

    if not text:
        return None
    lines = text.split("\n")
    start = find_query_start(lines)
    if start is None:
        return None
    end = find_query_end(lines, start)
    query = "\n".join(lines[start : end + 1])
    logger.debug("SQL query found on lines %d-%d", start, end)
    return query


def _strip_quotes(value: str) -> str:
    return re.sub(r"^['\"]|['\"]$", "", value)


def _parse_conditions(where_body: str) -> tuple[List[Condition], Optional[Condition]]:
    conditions: List[Condition] = []
    score_condition: Optional[Condition] = None
    score_match = _SCORE_FILTER.search(where_body)
    if score_match:
        score_condition = Condition(
            field=score_match.group(1),
            operator=score_match.group(2),
            value=int(score_match.group(3)),
        )
        conditions.append(score_condition)
    seen = {condition.field for condition in conditions}
    for clause in _BOOLEAN_SPLIT.split(where_body):
        match = _CONDITION.search(clause)
        if not match or match.group(1) in seen:
            continue
        conditions.append(
            Condition(
                field=match.group(1),
                operator=match.group(2),
                value=_strip_quotes(match.group(3)),
            )
        )
        seen.add(match.group(1))
    return conditions, score_condition


def analyze_query(query: Optional[str]) -> Optional[QueryAnalysis]:
    """Read tables, COUNT target and WHERE conditions from ``query``."""

    if not query:
        return None
    lowered = query.lower()

    tables: tuple[str, ...] = ()
    from_match = _FROM_CLAUSE.search(lowered)
    if from_match:
        tables = tuple(part.strip() for part in from_match.group(1).split(","))

    count_match = _COUNT_TARGET.search(lowered)
    count_target = count_match.group(1) if count_match else None

    conditions: List[Condition] = []
    score_condition: Optional[Condition] = None
    where_match = _WHERE_CLAUSE.search(lowered)
    if where_match:
        conditions, score_condition = _parse_conditions(where_match.group(1))

    return QueryAnalysis(
        is_count_query="count(" in lowered,
        has_filter="where" in lowered or "having" in lowered,
        tables=tables,
        conditions=tuple(conditions),
        count_target=count_target,
        filter_field=score_condition.field if score_condition else None,
        filter_operator=score_condition.operator if score_condition else None,
        filter_value=score_condition.value if score_condition else None,
    )
