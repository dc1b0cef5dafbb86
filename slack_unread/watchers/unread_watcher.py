"""Unread watcher - polls Slack for unread conversations using desktop credentials.

Credentials are lifted from the local Slack desktop install once per
authenticated session. Every poll fetches unread counts and mute
preferences, resolves display names through a session cache, and publishes
a fresh, newest-first item list with aggregate counts. Sidebar sections are
refreshed on a slower cadence.

This watcher only reads. It never sends, marks read, or modifies anything
in Slack.

Usage:
    # Continuous polling
    slack-unread

    # Single check
    slack-unread --once

    # Recent status changes from the audit log
    slack-unread --recent-logs 20
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from slack_unread.api.client import SlackAPIClient
from slack_unread.api.errors import (
    ApiError,
    AuthError,
    RateLimited,
    SlackAPIError,
    TransportError,
)
from slack_unread.api.models import ChannelSection, ConversationCount, CountsResponse
from slack_unread.api.rate_limit import RateLimitGate
from slack_unread.config import (
    DEFAULT_POLL_INTERVAL,
    SECTION_REFRESH_INTERVAL,
    clamp_interval,
    default_logs_path,
    load_config,
)
from slack_unread.extraction import (
    CredentialExtractor,
    Credentials,
    ExtractionError,
    extract_credentials,
    load_workspaces,
)
from slack_unread.summary import format_summary
from slack_unread.utils.deeplinks import open_in_slack
from slack_unread.utils.logging_utils import correlation_id, log_action, read_recent_logs
from slack_unread.utils.timestamps import format_relative, now_iso
from slack_unread.watchers.base_watcher import BaseWatcher
from slack_unread.watchers.name_cache import NameCache, NameCacheEntry
from slack_unread.watchers.sections import group_by_sections
from slack_unread.watchers.state import (
    AggregatedCounts,
    ConnectionStatus,
    ConversationItem,
    ConversationType,
    GroupedSection,
    sort_by_latest,
)

logger = logging.getLogger(__name__)

ACTOR = "unread_watcher"

CredentialSource = Callable[[], Credentials]
ClientFactory = Callable[..., Any]


def classify_counts(
    counts: CountsResponse, muted: Iterable[str] = ()
) -> list[tuple[ConversationCount, ConversationType]]:
    """Pick the conversations worth surfacing and assign each a category.

    - channel with mentions -> MENTION, even when muted
    - channel with unreads, no mentions, not muted -> CHANNEL
    - DM with unreads or mentions -> DM
    - group DM with unreads or mentions -> MPIM

    Everything else is dropped. A conversation id is surfaced at most once;
    the first classification wins.

    Args:
        counts: Parsed ``client.counts`` response.
        muted: Ids of muted conversations.

    Returns:
        (count, type) pairs in response order.
    """
    muted_ids = set(muted)
    seen: set[str] = set()
    result: list[tuple[ConversationCount, ConversationType]] = []

    def add(count: ConversationCount, kind: ConversationType) -> None:
        if count.id in seen:
            return
        seen.add(count.id)
        result.append((count, kind))

    for count in counts.channels:
        if count.mention_count > 0:
            add(count, ConversationType.MENTION)
        elif count.has_unreads and count.id not in muted_ids:
            add(count, ConversationType.CHANNEL)

    for count in counts.ims:
        if count.has_unreads or count.mention_count > 0:
            add(count, ConversationType.DM)

    for count in counts.mpims:
        if count.has_unreads or count.mention_count > 0:
            add(count, ConversationType.MPIM)

    return result


class UnreadWatcher(BaseWatcher):
    """Polls Slack and keeps an aggregated view of unread conversations.

    Published state (``items``, ``aggregated``, ``connection_status``,
    ``sections``) is replaced wholesale at the end of a cycle, never mutated
    in place, so readers always see one cycle's snapshot.

    Args:
        extractor: Returns fresh credentials; run in a worker thread.
        client_factory: Builds an API client from (token, cookie, domain).
            The result must be an async context manager.
        check_interval: Seconds between unread polls (clamped to 10-120).
        section_interval: Seconds between sidebar section refreshes.
        logs_path: Audit log root. None disables audit logging.
    """

    def __init__(
        self,
        extractor: CredentialSource | None = None,
        client_factory: ClientFactory | None = None,
        check_interval: int = DEFAULT_POLL_INTERVAL,
        section_interval: int = SECTION_REFRESH_INTERVAL,
        logs_path: str | Path | None = None,
        rate_gate: RateLimitGate | None = None,
    ):
        super().__init__(check_interval=clamp_interval(check_interval))
        self.extractor = extractor or extract_credentials
        self.client_factory = client_factory or SlackAPIClient
        self.logs_path = Path(logs_path) if logs_path is not None else None
        self.rate_gate = rate_gate or RateLimitGate()
        self.name_cache = NameCache()

        self.items: tuple[ConversationItem, ...] = ()
        self.aggregated = AggregatedCounts()
        self.connection_status = ConnectionStatus.reconnecting()
        self.sections: tuple[ChannelSection, ...] = ()

        self._credentials: Credentials | None = None
        self._sections_lock = asyncio.Lock()
        self.section_scheduler = self.add_schedule(
            "sections", section_interval, self.poll_sections
        )

    # ── Credentials ─────────────────────────────────────────────────

    @property
    def has_credentials(self) -> bool:
        return self._credentials is not None

    @property
    def team_id(self) -> str | None:
        workspace = self._credentials.workspace if self._credentials else None
        return workspace.id if workspace else None

    async def _ensure_credentials(self) -> Credentials:
        if self._credentials is None:
            self.logger.info("Extracting Slack credentials")
            self._credentials = await asyncio.to_thread(self.extractor)
        return self._credentials

    def _client(self, credentials: Credentials) -> Any:
        domain = credentials.workspace.domain if credentials.workspace else None
        return self.client_factory(credentials.token, credentials.cookie, domain)

    # ── Poll Cycle ──────────────────────────────────────────────────

    async def poll(self) -> None:
        """Run one unread poll and update the published state.

        Failures are mapped onto ``connection_status``; previously published
        items stay in place whenever a cycle fails.
        """
        allowed, remaining = self.rate_gate.check()
        if not allowed:
            self.logger.debug("Skipping poll, rate limited for another %ds", remaining)
            return

        cycle_id = correlation_id()

        try:
            credentials = await self._ensure_credentials()
        except ExtractionError as exc:
            self.logger.error("Credential extraction failed: %s", exc)
            self._log_error(cycle_id, "extract_credentials", exc)
            self._set_status(ConnectionStatus.error(str(exc)), cycle_id)
            return

        try:
            items = await self._fetch_items(credentials)
        except RateLimited as exc:
            self.rate_gate.record(exc.retry_after)
            self._log_error(cycle_id, "fetch_counts", exc)
            return
        except AuthError as exc:
            self.logger.warning("Slack rejected the session (%s); re-extracting", exc.code)
            self._credentials = None
            self._log_error(cycle_id, "fetch_counts", exc)
            self._set_status(ConnectionStatus.reconnecting(), cycle_id)
            return
        except TransportError as exc:
            self.logger.warning("%s", exc)
            self._log_error(cycle_id, "fetch_counts", exc)
            self._set_status(ConnectionStatus.offline(), cycle_id)
            return
        except Exception as exc:
            self.logger.exception("Poll failed")
            self._credentials = None
            self._log_error(cycle_id, "fetch_counts", exc)
            self._set_status(ConnectionStatus.error(str(exc)), cycle_id)
            return

        self.items = tuple(items)
        self.aggregated = AggregatedCounts.from_items(self.items)
        self._set_status(ConnectionStatus.connected(), cycle_id)
        self.logger.info("Unread: %s", format_summary(self.aggregated) or "nothing")

        if not self.sections and not self._sections_lock.locked():
            await self.poll_sections()

    async def _fetch_items(self, credentials: Credentials) -> list[ConversationItem]:
        team_id = self.team_id
        async with self._client(credentials) as client:
            counts, muted = await asyncio.gather(
                client.fetch_counts(team_id),
                self._fetch_muted(client, team_id),
            )
            self.logger.debug(
                "Counts: %d channels, %d ims, %d mpims; threads unread=%s mentions=%d; "
                "badges channels=%d dms=%d",
                len(counts.channels),
                len(counts.ims),
                len(counts.mpims),
                counts.threads.has_unreads,
                counts.threads.mention_count,
                counts.channel_badges.channels,
                counts.channel_badges.dms,
            )
            surfaced = classify_counts(counts, muted)
            items = await asyncio.gather(
                *(self._resolve(client, count, kind, team_id) for count, kind in surfaced)
            )
        return sort_by_latest(items)

    async def _fetch_muted(self, client: Any, team_id: str | None) -> set[str]:
        """Muted channel ids. Any failure means nothing is treated as muted."""
        try:
            prefs = await client.fetch_user_prefs(team_id)
        except SlackAPIError as exc:
            self.logger.warning("Could not fetch mute preferences: %s", exc)
            return set()
        return prefs.muted_channel_ids

    # ── Name Resolution ─────────────────────────────────────────────

    async def _resolve(
        self,
        client: Any,
        count: ConversationCount,
        kind: ConversationType,
        team_id: str | None,
    ) -> ConversationItem:
        if kind is ConversationType.DM:
            return await self._resolve_dm(client, count, team_id)

        entry = self.name_cache.get(count.id)
        if entry is None or entry.channel_name is None:
            entry = await self._lookup_conversation(client, count.id, team_id) or entry

        return ConversationItem.from_count(
            count,
            name=(entry.channel_name if entry else None) or count.id,
            type=kind,
            team_id=team_id or "",
            is_private=entry.is_private if entry else None,
            is_ext_shared=entry.is_ext_shared if entry else None,
        )

    async def _resolve_dm(
        self, client: Any, count: ConversationCount, team_id: str | None
    ) -> ConversationItem:
        user_id = self.name_cache.dm_user(count.id)
        if user_id is None:
            entry = await self._lookup_conversation(client, count.id, team_id)
            user_id = entry.dm_user_id if entry else None

        name = None
        if user_id:
            name = self.name_cache.user_name(user_id)
            if name is None:
                try:
                    user = await client.fetch_user_info(user_id, team_id)
                except SlackAPIError as exc:
                    self.logger.debug("users.info failed for %s: %s", user_id, exc)
                else:
                    name = self.name_cache.set(user_id, user_name=user.display_label).user_name

        return ConversationItem.from_count(
            count,
            name=name or count.id,
            type=ConversationType.DM,
            team_id=team_id or "",
            user_id=user_id,
        )

    async def _lookup_conversation(
        self, client: Any, channel_id: str, team_id: str | None
    ) -> NameCacheEntry | None:
        try:
            info = await client.fetch_conversation_info(channel_id, team_id)
        except SlackAPIError as exc:
            self.logger.debug("conversations.info failed for %s: %s", channel_id, exc)
            return None
        return self.name_cache.set(
            channel_id,
            channel_name=info.name,
            is_private=info.is_private,
            is_ext_shared=info.is_ext_shared,
            dm_user_id=info.user,
        )

    # ── Sections ────────────────────────────────────────────────────

    async def poll_sections(self) -> None:
        """Refresh sidebar sections. Best-effort: failures keep the old list.

        Refreshes never overlap; the scheduled one and the one after the
        first successful poll share a lock.
        """
        async with self._sections_lock:
            await self._refresh_sections()

    async def _refresh_sections(self) -> None:
        credentials = self._credentials
        if credentials is None:
            self.logger.debug("Skipping section refresh, not authenticated")
            return
        allowed, _ = self.rate_gate.check()
        if not allowed:
            return

        team_id = self.team_id
        try:
            async with self._client(credentials) as client:
                try:
                    sections = await client.fetch_user_boot(team_id)
                except ApiError as exc:
                    self.logger.debug("client.userBoot failed (%s), trying channelSections", exc)
                    sections = await client.fetch_channel_sections(team_id)
        except RateLimited as exc:
            self.rate_gate.record(exc.retry_after)
            return
        except SlackAPIError as exc:
            self.logger.warning("Section refresh failed: %s", exc)
            return

        self.sections = tuple(sections)
        self.logger.info("Loaded %d sidebar sections", len(self.sections))

    def grouped_sections(self) -> list[GroupedSection]:
        return group_by_sections(self.items, self.sections)

    # ── Audit Log ───────────────────────────────────────────────────

    def _set_status(self, status: ConnectionStatus, cycle_id: str) -> None:
        previous = self.connection_status
        self.connection_status = status
        if status == previous:
            return
        self.logger.info("Connection status: %s -> %s", previous, status)
        if self.logs_path is None:
            return
        log_action(
            self.logs_path / "status",
            {
                "timestamp": now_iso(),
                "correlation_id": cycle_id,
                "actor": ACTOR,
                "action_type": "status_change",
                "target": self.team_id or "unknown",
                "result": status.state,
                "details": {
                    "previous": previous.state,
                    "message": status.message,
                    "dms": self.aggregated.total_dms,
                    "mentions": self.aggregated.total_mentions,
                    "channels": self.aggregated.total_channels,
                },
            },
        )

    def _log_error(self, cycle_id: str, action_type: str, exc: Exception) -> None:
        if self.logs_path is None:
            return
        log_action(
            self.logs_path / "errors",
            {
                "timestamp": now_iso(),
                "correlation_id": cycle_id,
                "actor": ACTOR,
                "action_type": action_type,
                "target": self.team_id or "unknown",
                "result": "failure",
                "error": f"{type(exc).__name__}: {exc}",
            },
        )


# ── CLI ─────────────────────────────────────────────────────────────


def _print_groups(groups: list[GroupedSection]) -> None:
    for group in groups:
        print(f"\n{group.section.name} ({len(group.items)})")
        for item in group.items:
            age = format_relative(item.latest_timestamp) if item.latest_timestamp else "-"
            mentions = f"  @{item.mention_count}" if item.mention_count else ""
            print(f"  {item.name}{mentions}  {age}")


def _open_slack(channel_id: str | None) -> int:
    workspaces = load_workspaces(CredentialExtractor().root_state_path)
    if not workspaces:
        logger.error("No Slack workspace found")
        return 1
    return 0 if open_in_slack(workspaces[0].id, channel_id) else 1


def _resolve_interval(cli_value: int | None) -> int:
    interval = load_config().poll_interval_seconds
    env_value = os.getenv("SLACK_POLL_INTERVAL")
    if env_value:
        try:
            interval = clamp_interval(int(env_value))
        except ValueError:
            logger.warning("Ignoring invalid SLACK_POLL_INTERVAL=%r", env_value)
    if cli_value is not None:
        interval = clamp_interval(cli_value)
    return interval


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Slack unread watcher")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single check, print the result and exit",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Poll interval in seconds (10-120)",
    )
    parser.add_argument(
        "--recent-logs",
        type=int,
        metavar="N",
        default=None,
        help="Print the N most recent status log entries and exit",
    )
    parser.add_argument(
        "--open",
        nargs="?",
        const="",
        metavar="CHANNEL_ID",
        default=None,
        help="Open Slack (optionally on a conversation) and exit",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the unread watcher."""
    load_dotenv()
    args = _parse_args(argv)

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    logs_path = default_logs_path()

    if args.recent_logs is not None:
        for entry in read_recent_logs(logs_path / "status", args.recent_logs):
            print(json.dumps(entry, ensure_ascii=False))
        return

    if args.open is not None:
        try:
            code = _open_slack(args.open or None)
        except ExtractionError as exc:
            logger.error("%s", exc)
            code = 1
        sys.exit(code)

    interval = _resolve_interval(args.interval)
    watcher = UnreadWatcher(check_interval=interval, logs_path=logs_path)

    if args.once:
        logger.info("Running single Slack check...")
        asyncio.run(watcher.poll())
        status = watcher.connection_status
        print(f"Status: {status}")
        if watcher.aggregated.has_activity:
            print(format_summary(watcher.aggregated))
        else:
            print("No unread conversations")
        _print_groups(watcher.grouped_sections())
        if not status.is_connected:
            sys.exit(1)
        return

    logger.info("Starting unread watcher (interval: %ds)", interval)
    try:
        asyncio.run(watcher.run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
