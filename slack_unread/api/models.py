"""Response models for the Slack web API endpoints we call.

Each model is a frozen dataclass with a ``from_dict`` constructor that
tolerates missing optional fields. Only the fields this tool uses are kept.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from slack_unread.utils.timestamps import parse_slack_ts

logger = logging.getLogger(__name__)


# ── client.counts ───────────────────────────────────────────────────


@dataclass(frozen=True)
class ConversationCount:
    id: str
    mention_count: int = 0
    has_unreads: bool = False
    latest: str | None = None
    last_read: str | None = None
    is_muted: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationCount:
        return cls(
            id=data["id"],
            mention_count=max(int(data.get("mention_count") or 0), 0),
            has_unreads=bool(data.get("has_unreads", False)),
            latest=data.get("latest"),
            last_read=data.get("last_read"),
            is_muted=data.get("is_muted"),
        )

    @property
    def latest_date(self) -> datetime | None:
        return parse_slack_ts(self.latest)


@dataclass(frozen=True)
class ThreadCount:
    has_unreads: bool = False
    mention_count: int = 0


@dataclass(frozen=True)
class ChannelBadges:
    channels: int = 0
    dms: int = 0
    app_dms: int = 0
    thread_mentions: int = 0
    thread_unreads: int = 0


@dataclass(frozen=True)
class CountsResponse:
    channels: list[ConversationCount] = field(default_factory=list)
    ims: list[ConversationCount] = field(default_factory=list)
    mpims: list[ConversationCount] = field(default_factory=list)
    threads: ThreadCount = field(default_factory=ThreadCount)
    channel_badges: ChannelBadges = field(default_factory=ChannelBadges)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CountsResponse:
        threads = data.get("threads") or {}
        badges = data.get("channel_badges") or {}
        return cls(
            channels=[ConversationCount.from_dict(c) for c in data.get("channels") or []],
            ims=[ConversationCount.from_dict(c) for c in data.get("ims") or []],
            mpims=[ConversationCount.from_dict(c) for c in data.get("mpims") or []],
            threads=ThreadCount(
                has_unreads=bool(threads.get("has_unreads", False)),
                mention_count=int(threads.get("mention_count") or 0),
            ),
            channel_badges=ChannelBadges(
                channels=int(badges.get("channels") or 0),
                dms=int(badges.get("dms") or 0),
                app_dms=int(badges.get("app_dms") or 0),
                thread_mentions=int(badges.get("thread_mentions") or 0),
                thread_unreads=int(badges.get("thread_unreads") or 0),
            ),
        )


# ── conversations.info / users.info ─────────────────────────────────


@dataclass(frozen=True)
class ConversationInfo:
    id: str
    name: str | None = None
    is_channel: bool = False
    is_im: bool = False
    is_mpim: bool = False
    is_private: bool = False
    is_ext_shared: bool = False
    user: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationInfo:
        return cls(
            id=data["id"],
            name=data.get("name"),
            is_channel=bool(data.get("is_channel", False)),
            is_im=bool(data.get("is_im", False)),
            is_mpim=bool(data.get("is_mpim", False)),
            is_private=bool(data.get("is_private", False)),
            is_ext_shared=bool(data.get("is_ext_shared", False)),
            user=data.get("user"),
        )


@dataclass(frozen=True)
class UserInfo:
    id: str
    name: str
    real_name: str | None = None
    display_name: str = ""
    is_bot: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserInfo:
        profile = data.get("profile") or {}
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            real_name=data.get("real_name"),
            display_name=profile.get("display_name") or "",
            is_bot=bool(data.get("is_bot", False)),
        )

    @property
    def display_label(self) -> str:
        """Display name if set, else real name, else handle."""
        return self.display_name or self.real_name or self.name


# ── users.prefs.get ─────────────────────────────────────────────────


@dataclass(frozen=True)
class UserPrefs:
    muted_channels: str | None = None
    all_notifications_prefs: str | dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserPrefs:
        prefs = data.get("prefs") or {}
        return cls(
            muted_channels=prefs.get("muted_channels"),
            all_notifications_prefs=prefs.get("all_notifications_prefs"),
        )

    @property
    def muted_channel_ids(self) -> set[str]:
        """Muted channel ids from whichever pref format the workspace uses.

        Unified/enterprise clients store a JSON string with per-channel
        ``{"muted": true}``; older workspaces a comma-separated id list.
        Values of any other type are ignored.
        """
        muted = _muted_from_notification_prefs(self.all_notifications_prefs)
        if muted:
            return muted
        if isinstance(self.muted_channels, str):
            return {cid.strip() for cid in self.muted_channels.split(",") if cid.strip()}
        return set()


def _muted_from_notification_prefs(raw: Any) -> set[str]:
    if isinstance(raw, dict):
        parsed = raw
    elif isinstance(raw, str) and raw:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Unparseable all_notifications_prefs, ignoring")
            return set()
    else:
        return set()
    channels = parsed.get("channels") if isinstance(parsed, dict) else None
    if not isinstance(channels, dict):
        return set()
    return {
        cid
        for cid, pref in channels.items()
        if isinstance(pref, dict) and pref.get("muted") is True
    }


# ── client.userBoot / users.channelSections.list ────────────────────


@dataclass(frozen=True)
class ChannelSection:
    """A sidebar section. Empty ``channel_ids`` marks a virtual section."""

    id: str
    name: str
    type: str
    channel_ids: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChannelSection:
        page = data.get("channel_ids_page") or {}
        return cls(
            id=data["channel_section_id"],
            name=data.get("name") or "",
            type=data.get("type") or "",
            channel_ids=tuple(page.get("channel_ids") or ()),
        )

    @property
    def is_virtual(self) -> bool:
        return not self.channel_ids


def parse_sections(data: dict[str, Any]) -> list[ChannelSection]:
    return [ChannelSection.from_dict(s) for s in data.get("channel_sections") or []]


# ── auth.test ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class AuthTestResponse:
    team_id: str | None = None
    user_id: str | None = None
    enterprise_id: str | None = None
    team: str | None = None
    url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthTestResponse:
        return cls(
            team_id=data.get("team_id"),
            user_id=data.get("user_id"),
            enterprise_id=data.get("enterprise_id"),
            team=data.get("team"),
            url=data.get("url"),
        )
