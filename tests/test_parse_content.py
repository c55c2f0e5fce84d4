"""Tests for in-memory (batch-mode) parsing of a whole upload."""

from __future__ import annotations

from cdr_ingest.ingest.content import count_non_blank_lines, parse_file_content, split_lines
from cdr_ingest.ingest.records import ParseError, UsageRecord

SAMPLE_FILE = """4,0d39f,0,495594,214
16,be833279000000c063e5e63d
9991,2935
316,0e893279227712cac0014aff
7194,b33,394,495593,192
7291,293451
"""


def test_sample_file_parses_without_errors():
    records, errors = parse_file_content(SAMPLE_FILE)

    assert errors == []
    assert records == [
        UsageRecord(id=4, mnc=0, bytes_used=495594, dmcc="0d39f", cellid=214),
        UsageRecord(id=16, mnc=48771, bytes_used=12921, cellid=192, ip="99.229.230.61"),
        UsageRecord(id=9991, bytes_used=2935),
        UsageRecord(id=316, mnc=3721, bytes_used=12921, cellid=578228938, ip="192.1.74.255"),
        UsageRecord(id=7194, mnc=394, bytes_used=495593, dmcc="b33", cellid=192),
        UsageRecord(id=7291, bytes_used=293451),
    ]


def test_partial_success_keeps_order_and_line_numbers():
    content = "1,100\n  bad line  \n\n1016,deadbeef\n2,200\n"
    records, errors = parse_file_content(content)

    assert [r.id for r in records] == [1, 2]
    assert errors == [
        ParseError(line_number=2, line="  bad line  ", message="missing comma"),
        ParseError(line_number=4, line="1016,deadbeef", message="hex: expected 24-character hex string"),
    ]


def test_every_non_blank_line_lands_in_exactly_one_output():
    content = "1,1\nx\n\n 4,a,1,2,3 \n6,zz\n   \n9,9\r\n"
    records, errors = parse_file_content(content)
    assert len(records) + len(errors) == count_non_blank_lines(content) == 5


def test_crlf_and_lf_give_same_result():
    lf = "1,1000\n\nbad\n4,a,1,2,3\n"
    crlf = lf.replace("\n", "\r\n")
    assert parse_file_content(lf) == parse_file_content(crlf)


def test_bare_cr_is_not_a_line_boundary():
    assert split_lines("1,100\r2,200") == ["1,100\r2,200"]
    records, errors = parse_file_content("1,100\r2,200")
    assert records == []
    assert len(errors) == 1
    assert errors[0].line_number == 1


def test_empty_content():
    assert parse_file_content("") == ([], [])
    assert count_non_blank_lines("") == 0
    assert count_non_blank_lines(" \n\t\n") == 0


def test_huge_id_does_not_abort_parsing():
    content = "1,100\n" + "1" * 5000 + ",5\n2,200\n"
    records, errors = parse_file_content(content)
    assert [r.id for r in records] == [1, 2]
    assert [(e.line_number, e.message) for e in errors] == [(2, "invalid id")]
