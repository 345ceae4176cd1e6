import dataclasses

import pytest

from capture_assistant.models import Condition
from capture_assistant.sql_parser import analyze_query, extract_sql_query


def test_extract_returns_none_without_keywords():
    assert extract_sql_query("Alice scored well\nBob was absent") is None
    assert extract_sql_query("") is None
    assert extract_sql_query(None) is None


def test_extract_single_statement_line():
    text = "Terminal output\nSELECT * FROM students;\n+----+\n| id |"
    assert extract_sql_query(text) == "SELECT * FROM students;"


def test_extract_stops_before_result_border():
    text = "SELECT name, score\nFROM students\nWHERE score > 60\n------+------\nAlice | 90"
    assert extract_sql_query(text) == "SELECT name, score\nFROM students\nWHERE score > 60"


def test_extract_stops_at_blank_line_before_results():
    text = "SELECT name\nFROM students\nWHERE score > 60\nORDER BY score\n\nAlice 90"
    assert extract_sql_query(text) == "SELECT name\nFROM students\nWHERE score > 60\nORDER BY score"


def test_extract_ignores_blank_line_close_to_start():
    text = "SELECT name\n\nFROM students"
    assert extract_sql_query(text) == text


def test_extract_runs_to_end_without_boundary():
    assert extract_sql_query("notes\nselect name\nfrom students") == "select name\nfrom students"


def test_analyze_count_query_with_score_filter():
    analysis = analyze_query("SELECT COUNT(id) FROM students WHERE score > 60")
    assert analysis.is_count_query is True
    assert analysis.has_filter is True
    assert analysis.count_target == "id"
    assert analysis.tables == ("students",)
    assert Condition(field="score", operator=">", value=60) in analysis.conditions
    assert analysis.filter_field == "score"
    assert analysis.filter_operator == ">"
    assert analysis.filter_value == 60


def test_analyze_empty_query():
    assert analyze_query("") is None
    assert analyze_query(None) is None


def test_analyze_multiple_tables_and_join_condition():
    analysis = analyze_query("SELECT name FROM students, classes WHERE students.class_id = classes.id")
    assert analysis.tables == ("students", "classes")
    assert analysis.conditions[0].field == "class_id"
    assert analysis.conditions[0].value == "classes.id"
    assert analysis.filter_field is None


def test_analyze_distinct_count_without_filter():
    analysis = analyze_query("select count(distinct student_id) from results")
    assert analysis.count_target == "student_id"
    assert analysis.tables == ("results",)
    assert analysis.has_filter is False
    assert analysis.conditions == ()


def test_analyze_first_condition_per_field_wins():
    analysis = analyze_query("SELECT * FROM students WHERE grade = 'A' AND age > 10 AND age < 20")
    assert analysis.conditions == (
        Condition(field="grade", operator="=", value="a"),
        Condition(field="age", operator=">", value="10"),
    )


def test_analyze_trailing_semicolon_and_order_by():
    assert analyze_query("SELECT name FROM students;").tables == ("students",)
    analysis = analyze_query("select * from exams where math_score >= 75 order by math_score")
    assert analysis.filter_field == "math_score"
    assert analysis.filter_operator == ">="
    assert analysis.filter_value == 75
    assert len(analysis.conditions) == 1


def test_analysis_is_immutable():
    analysis = analyze_query("SELECT * FROM students")
    with pytest.raises(dataclasses.FrozenInstanceError):
        analysis.tables = ("other",)
