from __future__ import annotations

from exercise_catalog.tokenizer import rows_to_records, tokenize


def test_empty_input_yields_no_rows() -> None:
    assert tokenize("") == []
    assert tokenize("\n\n") == []


def test_quoted_field_with_doubled_quotes_and_commas() -> None:
    rows = tokenize('name,notes\nx,"a,""b"",c"\n')
    assert rows == [["name", "notes"], ["x", 'a,"b",c']]


def test_crlf_and_missing_trailing_newline_keep_last_row() -> None:
    rows = tokenize("a,b\r\n1,2\r\n3,4")
    assert rows == [["a", "b"], ["1", "2"], ["3", "4"]]


def test_quoted_field_may_span_lines() -> None:
    rows = tokenize('a,b\n"line one\nline two",2\n')
    assert rows[1] == ["line one\nline two", "2"]


def test_trailing_blank_rows_are_discarded_but_interior_rows_kept() -> None:
    rows = tokenize("a,b\n1,2\n,\n3,4\n \n,  \n\n")
    assert rows == [["a", "b"], ["1", "2"], ["", ""], ["3", "4"]]


def test_unterminated_quote_swallows_rest_of_input() -> None:
    rows = tokenize('a,b\n1,"open field\n2,3\n')
    assert rows == [["a", "b"], ["1", "open field\n2,3\n"]]


def test_bom_is_dropped_from_first_header() -> None:
    rows = tokenize("\ufefftitle,type\nx,y\n")
    assert rows[0] == ["title", "type"]


def test_text_after_closing_quote_is_kept_literally() -> None:
    assert tokenize('"ab"c,d') == [["abc", "d"]]


def test_empty_quoted_field_is_an_empty_string() -> None:
    assert tokenize('a,"",c\n') == [["a", "", "c"]]


def test_short_rows_are_padded_and_long_rows_truncated_with_warning() -> None:
    header = ["a", "b", "c"]
    records, warnings = rows_to_records(header, [["1"], ["1", "2", "3", "4", "5"], ["x", "y", "z"]])

    assert records == [
        {"a": "1", "b": "", "c": ""},
        {"a": "1", "b": "2", "c": "3"},
        {"a": "x", "b": "y", "c": "z"},
    ]
    assert len(warnings) == 1
    assert warnings[0].row_number == 3
    assert "dropped 2 extra" in warnings[0].message


def test_duplicate_header_keeps_first_column() -> None:
    records, warnings = rows_to_records(["a", "b", "a"], [["1", "2", "3"]])
    assert records == [{"a": "1", "b": "2"}]
    assert any("Duplicate column 'a'" in w.message for w in warnings)


def test_round_trip_header_plus_rows() -> None:
    text = "title,type,cv_goal\nWalk,aerobic,1\nRows,resistance\nTai Chi,none,1\n"
    table = tokenize(text)
    records, _ = rows_to_records(table[0], table[1:])

    assert len(records) == 3
    assert all(set(r) == {"title", "type", "cv_goal"} for r in records)
    assert [r["title"] for r in records] == ["Walk", "Rows", "Tai Chi"]
