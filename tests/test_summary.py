"""Tests for the one-line summary and relative ages."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from slack_unread.summary import format_summary
from slack_unread.utils.timestamps import format_relative, parse_slack_ts
from slack_unread.watchers.state import AggregatedCounts

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def ago(seconds: int) -> datetime:
    return NOW - timedelta(seconds=seconds)


class TestFormatSummary:
    def test_all_categories(self) -> None:
        counts = AggregatedCounts(
            total_dms=4,
            total_mentions=2,
            total_channels=15,
            most_recent_dm=ago(180),
            most_recent_mention=ago(3600),
            most_recent_channel=ago(2700),
        )

        assert format_summary(counts, now=NOW) == "💬 4 (3m)  @ 2 (1h)  # 15 (45m)"

    def test_zero_categories_omitted(self) -> None:
        counts = AggregatedCounts(total_mentions=1, most_recent_mention=ago(30))

        summary = format_summary(counts, now=NOW)

        assert summary == "@ 1 (30s)"
        assert "💬" not in summary
        assert "#" not in summary

    def test_missing_timestamp_drops_age(self) -> None:
        assert format_summary(AggregatedCounts(total_channels=3), now=NOW) == "# 3"

    def test_nothing_unread(self) -> None:
        assert format_summary(AggregatedCounts(), now=NOW) == ""


class TestFormatRelative:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "0s"),
            (59, "59s"),
            (60, "1m"),
            (3599, "59m"),
            (3600, "1h"),
            (86399, "23h"),
            (86400, "1d"),
            (7 * 86400 + 5, "7d"),
        ],
    )
    def test_units(self, seconds: int, expected: str) -> None:
        assert format_relative(ago(seconds), now=NOW) == expected

    def test_future_clamps_to_zero(self) -> None:
        assert format_relative(NOW + timedelta(minutes=5), now=NOW) == "0s"


class TestParseSlackTs:
    def test_drops_fraction(self) -> None:
        assert parse_slack_ts("1771625714.453859") == datetime(
            2026, 2, 20, 22, 15, 14, tzinfo=UTC
        )

    def test_without_fraction(self) -> None:
        assert parse_slack_ts("1771625714") == datetime(2026, 2, 20, 22, 15, 14, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "garbage", ".5"])
    def test_invalid(self, value: str | None) -> None:
        assert parse_slack_ts(value) is None
