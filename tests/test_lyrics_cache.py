"""Tests for the on-disk lyrics cache"""
from lyrics import LyricLine, parse_lyrics
from lyrics_cache import CacheLookup, LyricsCache, sanitize_identity


def test_put_then_get(cache):
    lines = parse_lyrics("[00:12.50]Hello\n[01:05.00]World, again\n[01:10.00]")
    assert cache.put("track", lines)
    assert cache.get("track") == lines


def test_record_format(cache):
    cache.put("track", (LyricLine(12.5, "Hello"), LyricLine(65.0, "a, b")))
    content = (cache.cache_dir / "track.csv").read_text(encoding="utf-8")
    assert content == "12500,Hello\n65000,a, b\n"


def test_missing_record_is_a_miss(cache):
    assert cache.get("nothing") is CacheLookup.MISS


def test_empty_record_is_a_miss(cache):
    cache.cache_dir.mkdir(parents=True)
    (cache.cache_dir / "track.csv").write_text("")
    assert cache.get("track") is CacheLookup.MISS


def test_bad_timestamp_is_a_miss(cache):
    cache.cache_dir.mkdir(parents=True)
    (cache.cache_dir / "track.csv").write_text("1000,ok\nsoon,broken\n")
    assert cache.get("track") is CacheLookup.MISS


def test_lines_without_comma_are_skipped(cache):
    cache.cache_dir.mkdir(parents=True)
    (cache.cache_dir / "track.csv").write_text("garbage\n1500,kept\n")
    assert cache.get("track") == (LyricLine(1.5, "kept"),)


def test_negative_marker_wins(cache):
    cache.put("track", parse_lyrics("[00:01.00]x"))
    assert cache.put_not_found("track")
    assert cache.get("track") is CacheLookup.NOT_FOUND


def test_invalidate_removes_both_records(cache):
    cache.put("track", parse_lyrics("[00:01.00]x"))
    cache.put_not_found("track")

    assert cache.invalidate("track")
    assert cache.get("track") is CacheLookup.MISS
    assert not cache.invalidate("track")


def test_put_failure_is_reported_not_raised(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    cache = LyricsCache(blocker)

    assert not cache.put("track", parse_lyrics("[00:01.00]x"))
    assert not cache.put_not_found("track")
    assert cache.get("track") is CacheLookup.MISS


def test_no_temp_files_left_behind(cache):
    cache.put("track", parse_lyrics("[00:01.00]x"))
    assert [p.name for p in cache.cache_dir.iterdir()] == ["track.csv"]


def test_sanitize_identity():
    assert sanitize_identity("abc/def") == "abc-def"
    assert sanitize_identity("a\\b") == "a-b"
    assert sanitize_identity("") == "unknown"
    assert sanitize_identity("..") == "unknown"
