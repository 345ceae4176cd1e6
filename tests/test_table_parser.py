import math

from capture_assistant.models import ROWSET_COUNT, ROWSET_SYNTHETIC, ROWSET_TABLE, TableRowSet
from capture_assistant.table_parser import _finish_table, coerce_cell, parse_table_data, split_cells

MYSQL_TABLE = """\
+----+-------+-------+
| id | city  | total |
+----+-------+-------+
|  1 | Paris |    90 |
|  2 | Rome  |    85 |
+----+-------+-------+
"""


def test_pipe_table_with_numeric_cells():
    result = parse_table_data("Name | Score\nAlice | 90\nBob | 85")
    assert result.kind == ROWSET_TABLE
    assert result.rows == [{"Name": "Alice", "Score": 90}, {"Name": "Bob", "Score": 85}]
    assert isinstance(result[0]["Score"], int)


def test_count_footer_yields_count_result():
    result = parse_table_data("42 rows in set")
    assert result.rows == [{"count": 42}]
    assert result.kind == ROWSET_COUNT
    assert result.is_count_result


def test_empty_and_short_input():
    assert parse_table_data("") is None
    assert parse_table_data(None) is None
    assert parse_table_data("Name | Score\nAlice | 90") is None


def test_bordered_mysql_table():
    result = parse_table_data(MYSQL_TABLE)
    assert result.rows == [
        {"id": 1, "city": "Paris", "total": 90},
        {"id": 2, "city": "Rome", "total": 85},
    ]
    for row in result:
        assert set(row) <= {"id", "city", "total"}


def test_parsing_is_deterministic():
    assert parse_table_data(MYSQL_TABLE) == parse_table_data(MYSQL_TABLE)


def test_query_line_above_table_is_not_a_header():
    text = "mysql> SELECT name, score FROM students;\nname    score\nAlice   90\nBob     85"
    result = parse_table_data(text)
    assert result.rows == [{"name": "Alice", "score": 90}, {"name": "Bob", "score": 85}]


def test_name_and_score_columns_move_to_front():
    text = (
        "ID   Subject   Student Name   Math Score\n"
        "1    Algebra   Alice Smith    91\n"
        "2    Geometry  Bob Jones      78\n"
    )
    result = parse_table_data(text)
    assert result.headers == ["Student Name", "Score", "ID", "Subject"]
    assert result[0] == {"Student Name": "Alice Smith", "Score": 91, "ID": 1, "Subject": "Algebra"}
    assert result[1]["Score"] == 78


def test_short_row_is_padded_with_empty_cells():
    text = "Name  Score  City\nAlice  90  Paris\nBob  85"
    result = parse_table_data(text)
    assert result.rows == [
        {"Name": "Alice", "Score": 90, "City": "Paris"},
        {"Name": "Bob", "Score": 85, "City": ""},
    ]


def test_reading_stops_after_a_run_of_rows():
    text = (
        "Name  Score\n"
        "Alice  90\n"
        "Bob  85\n"
        "Totals for the whole class are below  x  y  z\n"
        "Carol  70\n"
    )
    result = parse_table_data(text)
    assert [row["Name"] for row in result] == ["Alice", "Bob"]


def test_synthetic_rows_from_loose_text():
    text = "Class report\nAlice Smith scored 91 today\nBob Jones got 78 marks"
    result = parse_table_data(text)
    assert result.kind == ROWSET_SYNTHETIC
    assert result.synthetic
    assert result.rows == [
        {"Student": "Alice Smith", "Score": 91},
        {"Student": "Bob Jones", "Score": 78},
    ]


def test_plain_prose_has_no_table():
    assert parse_table_data("just some words\nanother line here\nthird line") is None


def test_garbage_input_does_not_raise():
    assert parse_table_data("\x00\xff@@##\n%%%%\n&&&& ||| ~~") is None


def test_split_cells_prefers_pipes():
    assert split_cells("| a | b  c |") == ["a", "b  c"]
    assert split_cells("a   b c   d") == ["a", "b c", "d"]


def test_coerce_cell():
    assert coerce_cell("90") == 90
    assert coerce_cell("-3") == -3
    assert coerce_cell("3.5") == 3.5
    assert coerce_cell("N/A") == "N/A"
    assert coerce_cell("2024-01-05") == 2024
    assert coerce_cell("90%") == 90
    assert coerce_cell("12.5 kg") == 12.5
    assert coerce_cell(".5") == 0.5
    assert coerce_cell("1e999") == "1e999"
    assert coerce_cell("nan") == "nan"
    assert coerce_cell("inf") == "inf"
    assert not isinstance(coerce_cell("1e3"), str) and math.isclose(coerce_cell("1e3"), 1000.0)


def test_row_set_behaves_like_a_sequence():
    rows = TableRowSet([{"count(*)": 7}])
    assert len(rows) == 1
    assert rows.headers == ["count(*)"]
    assert rows.is_count_result
    assert rows.to_records() == [{"count(*)": 7}]
    assert rows.to_records()[0] is not rows[0]


def test_aliased_count_column_yields_count_result():
    text = "+-------------+\n| total_count |\n+-------------+\n|          42 |\n+-------------+\n"
    assert parse_table_data(text).rows == [{"count": 42}]
    assert parse_table_data("row_count\n3").rows == [{"count": 3}]


def test_cells_with_units_keep_their_number():
    result = parse_table_data("Name | Score\nAlice | 90%\nBob | 85 pts")
    assert result.rows == [{"Name": "Alice", "Score": 90}, {"Name": "Bob", "Score": 85}]


def test_one_extra_cell_is_dropped():
    result = parse_table_data("Name  Score\nAlice  90  late\nBob  85")
    assert result.rows == [{"Name": "Alice", "Score": 90}, {"Name": "Bob", "Score": 85}]


def test_over_wide_rows_only_use_header_keys():
    result = parse_table_data("id | name\n1 | Ann | x\n2 | Ben | y")
    assert len(result) == 2
    for row in result:
        assert set(row) <= {"id", "name"}


def test_first_accepted_header_wins():
    text = (
        "Name  Score\n"
        "Alice  90\n"
        "Bob  85\n"
        "Id  City  Total  Rank\n"
        "1  Paris  10  2\n"
        "2  Rome  20  1\n"
    )
    result = parse_table_data(text)
    assert result.headers == ["Name", "Score"]
    assert result.rows == [{"Name": "Alice", "Score": 90}, {"Name": "Bob", "Score": 85}]


def test_single_numeric_cell_becomes_count():
    result = _finish_table([{"total": 5}])
    assert result.rows == [{"count": 5}]
    assert result.kind == ROWSET_COUNT
