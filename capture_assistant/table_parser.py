"""Recover result tables from OCR text of terminals, spreadsheets and query tools.

The parser is a heuristic: rules are tried in order and the first one that
yields rows wins. Absence of a table is reported as ``None``; malformed input
never raises.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Callable, List, Optional, Sequence

from .models import (
    ROWSET_COUNT,
    ROWSET_SYNTHETIC,
    ROWSET_TABLE,
    CellValue,
    TableRow,
    TableRowSet,
)

logger = logging.getLogger(__name__)

MIN_LINES = 3
MIN_TABLE_ROWS = 2
HEADER_SCAN_LINES = 20
DATA_SCAN_LINES = 30
MAX_HEADER_TOKEN_LENGTH = 20

_COUNT_HINT = re.compile(r"count|rows", re.IGNORECASE)
_FIRST_INTEGER = re.compile(r"[0-9]+")

_SQL_LINE = re.compile(r"SELECT|FROM|WHERE")
_HEADER_BORDERS = ("+--", "|--", "---")
_ROW_BORDERS = ("+--", "|--", "---+", "---|")
_CANDIDATE_SPLIT = re.compile(r"\s{2,}|\|")
_COLUMN_SPLIT = re.compile(r"\s{2,}")
_OUTER_PIPES = re.compile(r"^\||\|$")
_OUTER_QUOTES = re.compile(r"^[\"'`]|[\"'`]$")
_TABLE_VOCABULARY = re.compile(r"student|name|score|grade|math|english|science", re.IGNORECASE)
_ROWS_FOOTER = re.compile(r"^\d+\s+rows?(\s+in\s+set)?", re.IGNORECASE)
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")

_NAME_LIKE = ("name", "student")
_SCORE_LIKE = ("score", "mark", "grade", "point")

_SYNTHETIC_NAME = re.compile(r"([A-Za-z]+\s+[A-Za-z]+)")
_SYNTHETIC_SCORE = re.compile(r"\b([0-9]{2,3})\b")

TableRule = Callable[[str], Optional[TableRowSet]]


def content_lines(text: str) -> List[str]:
    return [line for line in text.split("\n") if line.strip()]


def split_cells(row: str) -> List[str]:
    """Split a row on pipes when present, otherwise on runs of 2+ spaces."""

    trimmed = _OUTER_PIPES.sub("", row.strip())
    if "|" in trimmed:
        return [cell.strip() for cell in trimmed.split("|")]
    return [cell.strip() for cell in _COLUMN_SPLIT.split(trimmed) if cell.strip()]


def coerce_cell(value: str) -> CellValue:
    """Return the leading number of ``value`` (``90%`` -> 90), else the text."""

    value = value.strip()
    match = _LEADING_NUMBER.match(value)
    if not match:
        return value
    number_text = match.group(0)
    number = float(number_text)
    if not math.isfinite(number):
        return value
    if _INTEGER_TEXT.fullmatch(number_text):
        return int(number_text)
    return number


def _is_border(line: str, markers: Sequence[str] = _ROW_BORDERS) -> bool:
    return any(marker in line for marker in markers)


def _is_header_candidate(line: str) -> bool:
    line = line.strip()
    if _SQL_LINE.search(line) or _is_border(line, _HEADER_BORDERS):
        return False
    tokens = [token for token in _CANDIDATE_SPLIT.split(line) if token.strip()]
    if len(tokens) < 2:
        return False
    return bool(
        _TABLE_VOCABULARY.search(line)
        or any(token.strip().lower() == "id" for token in tokens)
        or all(len(token) < MAX_HEADER_TOKEN_LENGTH for token in tokens)
    )


def find_header_candidates(lines: Sequence[str]) -> List[int]:
    return [index for index, line in enumerate(lines[:HEADER_SCAN_LINES]) if _is_header_candidate(line)]


def _read_rows(lines: Sequence[str], header_index: int, headers: List[str], width: int) -> tuple[List[TableRow], int]:
    start = header_index + 1
    while start < len(lines) and _is_border(lines[start]):
        start += 1

    rows: List[TableRow] = []
    consecutive = 0
    for raw in lines[start : start + DATA_SCAN_LINES]:
        line = raw.strip()
        if not line or _is_border(line):
            continue
        if _SQL_LINE.search(line) or _ROWS_FOOTER.match(line):
            continue
        cells = split_cells(line)
        if abs(len(cells) - width) <= 1:
            row: TableRow = {}
            for position, header in enumerate(headers):
                row[header] = coerce_cell(cells[position]) if position < len(cells) else ""
            rows.append(row)
            consecutive += 1
        elif consecutive >= MIN_TABLE_ROWS:
            break
        else:
            consecutive = 0
    return rows, consecutive


def _promote_student_columns(rows: List[TableRow]) -> Optional[List[TableRow]]:
    keys = list(rows[0])
    name_column: Optional[str] = None
    score_column: Optional[str] = None
    for key in keys:
        lowered = key.lower()
        if any(word in lowered for word in _NAME_LIKE):
            name_column = key
        elif any(word in lowered for word in _SCORE_LIKE):
            score_column = key
    if not name_column or not score_column or len(keys) < 2:
        return None
    if keys[0] == name_column and keys[1] == score_column:
        return None
    promoted: List[TableRow] = []
    for row in rows:
        new_row: TableRow = {"Student Name": row.get(name_column, ""), "Score": row.get(score_column, "")}
        for key in keys:
            if key not in (name_column, score_column):
                new_row[key] = row.get(key, "")
        promoted.append(new_row)
    return promoted


def _finish_table(rows: List[TableRow]) -> TableRowSet:
    # Unreachable from aligned_table_rule, which accepts MIN_TABLE_ROWS or more.
    if len(rows) == 1 and len(rows[0]) == 1:
        (value,) = rows[0].values()
        if isinstance(value, (int, float)):
            return TableRowSet([{"count": value}], kind=ROWSET_COUNT)
    promoted = _promote_student_columns(rows)
    if promoted is not None:
        logger.debug("Promoted name/score columns to the front")
        return TableRowSet(promoted, kind=ROWSET_TABLE)
    return TableRowSet(rows, kind=ROWSET_TABLE)


def count_result_rule(text: str) -> Optional[TableRowSet]:
    if not _COUNT_HINT.search(text):
        return None
    match = _FIRST_INTEGER.search(text)
    if not match:
        return None
    return TableRowSet([{"count": int(match.group(0))}], kind=ROWSET_COUNT)


def aligned_table_rule(text: str) -> Optional[TableRowSet]:
    lines = content_lines(text)
    if len(lines) < MIN_LINES:
        return None
    for header_index in find_header_candidates(lines):
        headers = [_OUTER_QUOTES.sub("", cell.strip()) for cell in split_cells(lines[header_index])]
        valid_headers = [header for header in headers if header.strip()]
        if len(valid_headers) < 2:
            continue
        rows, consecutive = _read_rows(lines, header_index, valid_headers, len(headers))
        if consecutive >= MIN_TABLE_ROWS or len(rows) >= MIN_TABLE_ROWS:
            logger.debug("Table header on line %d with %d rows", header_index, len(rows))
            return _finish_table(rows)
    return None


def synthetic_student_rule(text: str) -> Optional[TableRowSet]:
    """Guess ``Student``/``Score`` pairs from lines mixing a name and a number."""

    lines = content_lines(text)
    if len(lines) < MIN_LINES:
        return None
    rows: List[TableRow] = []
    for line in lines:
        line = line.strip()
        name_match = _SYNTHETIC_NAME.search(line)
        score_match = _SYNTHETIC_SCORE.search(line)
        if name_match and score_match:
            rows.append({"Student": name_match.group(1), "Score": int(score_match.group(1))})
    if not rows:
        return None
    logger.debug("No aligned table found; built %d synthetic rows", len(rows))
    return TableRowSet(rows, kind=ROWSET_SYNTHETIC)


TABLE_RULES: List[TableRule] = [
    count_result_rule,
    aligned_table_rule,
    synthetic_student_rule,
]


def parse_table_data(text: Optional[str]) -> Optional[TableRowSet]:
    """Extract rows from ``text`` or return ``None`` when no table is found."""

    if not text:
        return None
    for rule in TABLE_RULES:
        result = rule(text)
        if result is not None:
            return result
    return None
