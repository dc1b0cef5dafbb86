"""Derived state published by the unread watcher after each poll."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from slack_unread.api.models import ChannelSection, ConversationCount


class ConversationType(StrEnum):
    DM = "dm"
    MENTION = "mention"  # channel with @mentions
    CHANNEL = "channel"
    MPIM = "mpim"


DM_TYPES = frozenset({ConversationType.DM, ConversationType.MPIM})


@dataclass(frozen=True)
class ConversationItem:
    """One conversation surfaced by a poll. Rebuilt from scratch every cycle."""

    id: str
    name: str
    type: ConversationType
    team_id: str
    has_unreads: bool
    mention_count: int
    latest_timestamp: datetime | None = None
    user_id: str | None = None
    is_private: bool | None = None
    is_ext_shared: bool | None = None

    @classmethod
    def from_count(
        cls,
        count: ConversationCount,
        *,
        name: str,
        type: ConversationType,
        team_id: str,
        user_id: str | None = None,
        is_private: bool | None = None,
        is_ext_shared: bool | None = None,
    ) -> ConversationItem:
        return cls(
            id=count.id,
            name=name,
            type=type,
            team_id=team_id,
            has_unreads=count.has_unreads,
            mention_count=count.mention_count,
            latest_timestamp=count.latest_date,
            user_id=user_id,
            is_private=is_private,
            is_ext_shared=is_ext_shared,
        )


def sort_by_latest(items: Iterable[ConversationItem]) -> list[ConversationItem]:
    """Newest activity first; items without a timestamp go last, in input order."""
    items = list(items)
    dated = [item for item in items if item.latest_timestamp is not None]
    undated = [item for item in items if item.latest_timestamp is None]
    dated.sort(key=lambda item: item.latest_timestamp, reverse=True)
    return dated + undated


def _most_recent(items: list[ConversationItem]) -> datetime | None:
    stamps = [item.latest_timestamp for item in items if item.latest_timestamp is not None]
    return max(stamps, default=None)


@dataclass(frozen=True)
class AggregatedCounts:
    """Per-category totals. DMs and group DMs share one category."""

    total_dms: int = 0
    total_mentions: int = 0
    total_channels: int = 0
    most_recent_dm: datetime | None = None
    most_recent_mention: datetime | None = None
    most_recent_channel: datetime | None = None

    @classmethod
    def from_items(cls, items: Iterable[ConversationItem]) -> AggregatedCounts:
        items = list(items)
        dms = [item for item in items if item.type in DM_TYPES]
        mentions = [item for item in items if item.type is ConversationType.MENTION]
        channels = [item for item in items if item.type is ConversationType.CHANNEL]
        return cls(
            total_dms=len(dms),
            total_mentions=len(mentions),
            total_channels=len(channels),
            most_recent_dm=_most_recent(dms),
            most_recent_mention=_most_recent(mentions),
            most_recent_channel=_most_recent(channels),
        )

    @property
    def has_activity(self) -> bool:
        return self.total_dms > 0 or self.total_mentions > 0 or self.total_channels > 0


@dataclass(frozen=True)
class ConnectionStatus:
    """``connected``, ``reconnecting``, ``offline``, or ``error`` with a message."""

    state: str
    message: str | None = None

    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    OFFLINE = "offline"
    ERROR = "error"

    @classmethod
    def connected(cls) -> ConnectionStatus:
        return cls(cls.CONNECTED)

    @classmethod
    def reconnecting(cls) -> ConnectionStatus:
        return cls(cls.RECONNECTING)

    @classmethod
    def offline(cls) -> ConnectionStatus:
        return cls(cls.OFFLINE)

    @classmethod
    def error(cls, message: str) -> ConnectionStatus:
        return cls(cls.ERROR, message)

    @property
    def is_connected(self) -> bool:
        return self.state == self.CONNECTED

    def __str__(self) -> str:
        if self.message:
            return f"{self.state}: {self.message}"
        return self.state


@dataclass(frozen=True)
class GroupedSection:
    section: ChannelSection
    items: tuple[ConversationItem, ...]
