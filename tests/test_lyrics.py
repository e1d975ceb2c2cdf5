"""Test file for LRC parsing and line lookup"""
import pytest

from errors import LyricsParseError, NoLinesFoundError
from lyrics import LyricLine, find_line_index, parse_lyrics, parse_timestamp


def test_parse_basic_transcript():
    lines = parse_lyrics("[00:12.50]Hello\n[01:05.00]World")
    assert lines == (LyricLine(12.5, "Hello"), LyricLine(65.0, "World"))


def test_parse_drops_lines_without_bracket():
    lines = parse_lyrics("[00:01.00]kept\nno timestamp here\n[00:02.00]also kept")
    assert [line.text for line in lines] == ["kept", "also kept"]


def test_parse_drops_metadata_tags_and_blank_lines():
    raw = "[ar:Some Artist]\n[ti:Some Title]\n\n   \n[00:03.20]  padded text  \n"
    assert parse_lyrics(raw) == (LyricLine(3.2, "padded text"),)


def test_parse_keeps_empty_text_lines():
    lines = parse_lyrics("[00:01.00]one\n[00:04.00]\n[00:09.00]two")
    assert lines[1] == LyricLine(4.0, "")


def test_parse_keeps_source_order():
    lines = parse_lyrics("[00:05.00]late\n[00:01.00]early")
    assert [line.text for line in lines] == ["late", "early"]


def test_text_keeps_later_brackets():
    lines = parse_lyrics("[00:01.00]chorus ] again")
    assert lines[0].text == "chorus ] again"


@pytest.mark.parametrize("raw", ["", "no timestamps at all", "[ar:Artist]\n[al:Album]"])
def test_parse_without_timed_lines_raises(raw):
    with pytest.raises(NoLinesFoundError):
        parse_lyrics(raw)


def test_no_lines_found_is_a_parse_error():
    assert issubclass(NoLinesFoundError, LyricsParseError)


@pytest.mark.parametrize("ts, expected", [
    ("01:02:03.4", 3723.4),
    ("02:03", 123.0),
    ("45.678", 45.678),
    ("00:00.00", 0.0),
])
def test_parse_timestamp(ts, expected):
    assert parse_timestamp(ts) == pytest.approx(expected)


def test_parse_timestamp_rounds_to_milliseconds():
    assert parse_timestamp("00:01.23456") == 1.235


@pytest.mark.parametrize("ts", ["ab:cd", "01:xx", "", "1:2:"])
def test_parse_timestamp_rejects_non_numeric_groups(ts):
    with pytest.raises(LyricsParseError):
        parse_timestamp(ts)


def test_find_line_index():
    lines = parse_lyrics("[00:01.00]a\n[00:03.00]b\n[00:05.00]c")
    assert find_line_index(lines, 0.0) == -1
    assert find_line_index(lines, 1.0) == -1
    assert find_line_index(lines, 1.01) == 0
    assert find_line_index(lines, 4.0) == 1
    assert find_line_index(lines, 100.0) == 2


def test_find_line_index_first_line_at_zero():
    lines = parse_lyrics("[00:00.00]intro\n[00:02.00]verse")
    assert find_line_index(lines, 0.0) == -1
    assert find_line_index(lines, 0.5) == 0
