from __future__ import annotations
from navigator.catalog.csv_parser import parse_csv


def test_plain_table_round_trips():
    table = [
        ["id", "title", "url"],
        ["1", "", "https://a.example"],
        ["two words", "x", "y"],
    ]
    text = "\n".join(",".join(r) for r in table)
    assert parse_csv(text) == table


def test_quoted_field_keeps_comma_newline_and_escaped_quote():
    original = 'He said "hi", then\nleft'
    quoted = '"' + original.replace('"', '""') + '"'
    rows = parse_csv(f"a,{quoted},c\nnext,row,here")
    assert rows == [["a", original, "c"], ["next", "row", "here"]]


def test_crlf_is_one_row_terminator():
    assert parse_csv("a,b\r\nc,d\r\n") == [["a", "b"], ["c", "d"]]


def test_lone_carriage_return_ends_a_row():
    assert parse_csv("a,b\rc,d") == [["a", "b"], ["c", "d"]]


def test_blank_rows_dropped_but_sparse_rows_kept():
    rows = parse_csv("a,b\n\n,\n,x\nc,d\n")
    assert rows == [["a", "b"], ["", "x"], ["c", "d"]]


def test_stray_quote_toggles_instead_of_raising():
    assert parse_csv('ab"c,d\ne') == [["abc,d\ne"]]


def test_empty_input_gives_no_rows():
    assert parse_csv("") == []
    assert parse_csv("\n\r\n") == []
