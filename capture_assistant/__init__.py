"""Capture assistant core: screen-text table extraction, chat and meeting scheduling."""

from .models import Condition, QueryAnalysis, TableRowSet
from .pipeline import CaptureAssistant
from .sql_parser import analyze_query, extract_sql_query
from .table_parser import parse_table_data

__all__ = [
    "CaptureAssistant",
    "extract_sql_query",
    "analyze_query",
    "parse_table_data",
    "Condition",
    "QueryAnalysis",
    "TableRowSet",
]
