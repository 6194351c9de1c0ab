from datetime import datetime, timedelta

import pytest

from proofbench.libs.formats.duration import (
    calculate_progress_percentage,
    calculate_total_duration,
    compute_watch_percentage,
    format_duration,
    format_relative_time,
    normalize_watch_percentage,
    parse_duration,
    should_mark_complete,
)


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0:00"),
        (-5, "0:00"),
        (None, "0:00"),
        (125, "2:05"),
        (3661, "1:01:01"),
        (59, "0:59"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2:05", 125),
        ("1:01:01", 3661),
        ("0:00", 0),
        ("", 0),
        ("abc", 0),
        ("1:2:3:4", 0),
        ("5", 0),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("seconds", [0, 1, 59, 60, 125, 3599, 3600, 3661, 86399])
def test_parse_inverts_format(seconds):
    assert parse_duration(format_duration(seconds)) == seconds


def test_normalize_watch_percentage_clamps_and_rounds():
    assert normalize_watch_percentage(150) == 100
    assert normalize_watch_percentage(-10) == 0
    assert normalize_watch_percentage(49.5) == 50
    assert normalize_watch_percentage(49.4) == 49
    assert normalize_watch_percentage(float("nan")) == 0


@pytest.mark.parametrize("value", [-3.2, 0, 12.5, 99.99, 100, 250])
def test_normalize_watch_percentage_is_idempotent(value):
    once = normalize_watch_percentage(value)
    assert isinstance(once, int)
    assert 0 <= once <= 100
    assert normalize_watch_percentage(once) == once


def test_should_mark_complete_default_threshold():
    assert should_mark_complete(95) is True
    assert should_mark_complete(94) is False
    assert should_mark_complete(80, threshold=80) is True


def test_compute_watch_percentage():
    assert compute_watch_percentage(50, 200) == 25
    assert compute_watch_percentage(500, 200) == 100
    assert compute_watch_percentage(10, None) is None
    assert compute_watch_percentage(10, 0) is None


def test_totals_and_progress_percentage():
    assert calculate_total_duration([60, None, 40]) == 100
    assert calculate_progress_percentage(2, 4) == 50
    assert calculate_progress_percentage(1, 3) == 33
    assert calculate_progress_percentage(0, 0) == 0


def test_format_relative_time():
    ref = datetime(2025, 6, 1, 12, 0, 0)
    assert format_relative_time(None) == "Never"
    assert format_relative_time(ref - timedelta(seconds=30), ref) == "Just now"
    assert format_relative_time(ref - timedelta(minutes=1), ref) == "1 minute ago"
    assert format_relative_time(ref - timedelta(hours=5), ref) == "5 hours ago"
    assert format_relative_time(ref - timedelta(days=14), ref) == "2 weeks ago"
    assert format_relative_time(ref - timedelta(days=400), ref) == "1 year ago"
