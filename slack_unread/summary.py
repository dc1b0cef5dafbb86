"""One-line text summary of aggregated unread counts."""

from __future__ import annotations

from datetime import datetime

from slack_unread.utils.timestamps import format_relative
from slack_unread.watchers.state import AggregatedCounts

DM_SYMBOL = "💬"
MENTION_SYMBOL = "@"
CHANNEL_SYMBOL = "#"


def format_summary(counts: AggregatedCounts, now: datetime | None = None) -> str:
    """Render counts as e.g. ``"💬 4 (3m)  @ 2 (1h)  # 15 (45m)"``.

    Categories with a zero count are left out; the age is left out when the
    category has no timestamp. Returns an empty string when nothing is unread.

    Args:
        counts: Aggregated counts from the latest poll.
        now: Reference time for relative ages. Defaults to the current time.
    """
    parts = []
    for symbol, total, latest in (
        (DM_SYMBOL, counts.total_dms, counts.most_recent_dm),
        (MENTION_SYMBOL, counts.total_mentions, counts.most_recent_mention),
        (CHANNEL_SYMBOL, counts.total_channels, counts.most_recent_channel),
    ):
        if total <= 0:
            continue
        part = f"{symbol} {total}"
        if latest is not None:
            part += f" ({format_relative(latest, now)})"
        parts.append(part)
    return "  ".join(parts)
