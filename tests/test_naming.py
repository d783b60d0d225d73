#!/usr/bin/env python3
"""
Tests for output file names and clip start times.
"""

from datetime import datetime, timezone
from pathlib import Path

from steamclipconverter import ClipRecord, sanitize_filename


def _clip(appid=570, date="20250828", time="124021") -> ClipRecord:
    return ClipRecord(Path("/r/fg"), appid, date, time)


def test_output_filename_uses_display_name():
    assert _clip().output_filename("Example Game") == "Example Game-20250828-124021.mp4"


def test_output_filename_with_appid_fallback():
    assert _clip(date="20250101", time="000000").output_filename("570") == "570-20250101-000000.mp4"


def test_output_filename_falls_back_when_name_sanitizes_away():
    assert _clip().output_filename('???') == "570-20250828-124021.mp4"


def test_sanitize_removes_invalid_characters_and_keeps_spaces():
    assert sanitize_filename('Half-Life 2: Episode "Two"') == "Half-Life 2 Episode Two"
    assert sanitize_filename("AC/DC <Live> | Rock?*") == "ACDC Live  Rock"
    assert sanitize_filename("a\\b") == "ab"


def test_sanitize_drops_control_characters():
    assert sanitize_filename("Tab\tNew\nLine\x7f") == "TabNewLine"


def test_sanitize_trims_trailing_dots_and_spaces():
    assert sanitize_filename("Game...  ") == "Game"


def test_sanitize_reserved_names():
    assert sanitize_filename("CON") == ""
    assert sanitize_filename("nul.txt") == ""
    assert sanitize_filename("..") == ""
    assert sanitize_filename("Console Wars") == "Console Wars"


def test_sanitize_truncates_long_names():
    name = sanitize_filename("Ω" * 200, max_bytes=101)
    assert name == "Ω" * 50
    long_name = _clip().output_filename("x" * 400)
    assert len(long_name.encode("utf-8")) <= 255
    assert long_name.endswith("-20250828-124021.mp4")


def test_sanitize_keeps_unicode():
    assert sanitize_filename("ニーア オートマタ") == "ニーア オートマタ"


def test_started_at_is_utc_and_unchanged():
    clip = _clip()
    assert clip.date == "20250828"
    assert clip.time == "124021"
    assert clip.started_at == datetime(2025, 8, 28, 12, 40, 21, tzinfo=timezone.utc)


def test_started_at_invalid_calendar_date():
    assert _clip(date="20251340").started_at is None
    assert _clip(time="256000").started_at is None
