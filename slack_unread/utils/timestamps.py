"""Timestamp utilities.

Slack reports message times as dotted fixed-point strings
(``"1771625714.453859"``). Only the whole seconds matter here; everything
is converted to timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def now_iso() -> str:
    """Get the current UTC timestamp in ISO 8601 format.

    Returns:
        Current timestamp as ISO 8601 string (YYYY-MM-DDTHH:MM:SSZ).

    Examples:
        >>> ts = now_iso()
        >>> ts  # e.g., "2026-10-19T14:30:22Z"
    """
    return now_utc().strftime("%Y-%m-%dT%H:%M:%SZ")


def today_iso() -> str:
    """Get today's UTC date as YYYY-MM-DD, used for daily log file names."""
    return now_utc().strftime("%Y-%m-%d")


def parse_slack_ts(ts: str | None) -> datetime | None:
    """Parse a Slack ``"<seconds>.<fraction>"`` timestamp.

    The fraction is a message sequence suffix, not sub-second precision, so
    it is dropped.

    Args:
        ts: Timestamp string, or None.

    Returns:
        Aware UTC datetime, or None if ``ts`` is empty or malformed.

    Examples:
        >>> parse_slack_ts("1771625714.453859").isoformat()
        '2026-02-20T22:15:14+00:00'
        >>> parse_slack_ts("garbage") is None
        True
    """
    if not ts:
        return None
    seconds = ts.split(".", 1)[0]
    try:
        return datetime.fromtimestamp(int(seconds), UTC)
    except (ValueError, OverflowError, OSError):
        return None


def format_relative(when: datetime, now: datetime | None = None) -> str:
    """Compact age of ``when``: ``"30s"``, ``"3m"``, ``"1h"``, ``"2d"``.

    Each unit truncates toward zero. Future times clamp to ``"0s"``.

    Examples:
        >>> from datetime import timedelta
        >>> t = now_utc()
        >>> format_relative(t - timedelta(seconds=2700), now=t)
        '45m'
    """
    now = now or now_utc()
    seconds = max(int((now - when).total_seconds()), 0)
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h"
    return f"{hours // 24}d"
