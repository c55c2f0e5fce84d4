"""Tests for line-by-line stream parsing."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from cdr_ingest.ingest.content import parse_file_content
from cdr_ingest.ingest import stream as stream_module
from cdr_ingest.ingest.stream import parse_file_path, parse_file_stream


def _outcomes(content: str):
    return list(parse_file_stream(io.BytesIO(content.encode("utf-8"))))


def test_parses_valid_lines():
    results = _outcomes("1,1000\n2,2000")
    assert len(results) == 2
    assert results[0].record.id == 1
    assert results[0].record.bytes_used == 1000
    assert results[0].line_number == 1
    assert results[1].record.id == 2
    assert results[1].line_number == 2


def test_errors_do_not_stop_the_stream():
    results = _outcomes("1,1000\ninvalid-line\n3,3000")
    assert len(results) == 3
    assert results[0].record is not None and results[0].error is None
    assert results[1].record is None
    assert results[1].error.line_number == 2
    assert results[1].error.line == "invalid-line"
    assert results[1].error.message == "missing comma"
    assert results[2].record.id == 3


def test_blank_lines_skipped_but_counted():
    results = _outcomes("1,1000\n\n\n2,2000")
    assert [r.line_number for r in results] == [1, 4]


def test_mixed_line_endings():
    results = _outcomes("1,1000\r\n2,2000\n3,3000")
    assert [r.record.id for r in results] == [1, 2, 3]


@pytest.mark.parametrize("content", ["", "   \n  \n\t\n"])
def test_nothing_to_yield(content):
    assert _outcomes(content) == []


def test_line_numbers_track_errors_and_blanks():
    results = _outcomes("1,1000\ninvalid\n\n2,2000")
    assert [r.line_number for r in results] == [1, 2, 4]
    assert results[1].error is not None


@pytest.mark.parametrize("newline", ["\n", "\r\n"])
def test_matches_batch_mode(newline):
    lines = [
        "4,0d39f,0,495594,214",
        "",
        "  1016,00b603e800007bdac0a80001  ",
        "1016,deadbeef",
        "   ",
        "nonsense",
        "7291,293451",
        "",
    ]
    content = newline.join(lines)
    batch_records, batch_errors = parse_file_content(content)

    outcomes = _outcomes(content)
    stream_records = [o.record for o in outcomes if o.record is not None]
    stream_errors = [o.error for o in outcomes if o.error is not None]

    assert stream_records == batch_records
    assert stream_errors == batch_errors
    assert [e.line_number for e in stream_errors] == [4, 6]


def test_invalid_utf8_is_replaced_not_fatal():
    results = list(parse_file_stream(io.BytesIO(b"1,100\n\xff\xfe,1\n2,200\n")))
    assert [r.line_number for r in results] == [1, 2, 3]
    assert results[1].error.message == "invalid id"


def test_single_pass():
    stream = io.BytesIO(b"1,1\n2,2\n")
    assert len(list(parse_file_stream(stream))) == 2
    assert list(parse_file_stream(stream)) == []


def test_parse_file_path_closes_file_on_early_stop(tmp_path: Path, monkeypatch):
    path = tmp_path / "cdr.txt"
    path.write_bytes(b"1,1\n2,2\n3,3\n")

    opened = []
    real_open = open

    def tracking_open(*args, **kwargs):
        f = real_open(*args, **kwargs)
        opened.append(f)
        return f

    monkeypatch.setattr(stream_module, "open", tracking_open, raising=False)

    gen = parse_file_path(path)
    first = next(gen)
    assert first.record.id == 1
    assert not opened[0].closed
    gen.close()
    assert opened[0].closed


class _FailingStream:
    """Yields one line then fails like an interrupted upload."""

    def __iter__(self):
        yield b"1,1\n"
        raise OSError("connection reset")


def test_source_error_propagates():
    gen = parse_file_stream(_FailingStream())
    assert next(gen).record.id == 1
    with pytest.raises(OSError):
        next(gen)


def test_huge_id_is_one_error_line():
    results = _outcomes("1,100\n" + "1" * 5000 + ",5\n2,200\n")
    assert [r.line_number for r in results] == [1, 2, 3]
    assert results[0].record.id == 1
    assert results[1].error.message == "invalid id"
    assert results[2].record.id == 2
