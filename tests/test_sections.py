"""Tests for sidebar section grouping."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from slack_unread.api.models import ChannelSection
from slack_unread.watchers.sections import fallback_grouping, group_by_sections
from slack_unread.watchers.state import ConversationItem, ConversationType

BASE = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def item(
    item_id: str,
    kind: ConversationType,
    minutes_ago: int | None = 0,
    is_ext_shared: bool | None = None,
) -> ConversationItem:
    return ConversationItem(
        id=item_id,
        name=item_id.lower(),
        type=kind,
        team_id="T1",
        has_unreads=True,
        mention_count=1 if kind is ConversationType.MENTION else 0,
        latest_timestamp=None if minutes_ago is None else BASE - timedelta(minutes=minutes_ago),
        is_ext_shared=is_ext_shared,
    )


def section(section_id: str, name: str, ids: tuple[str, ...] = (), type: str = "standard"):
    return ChannelSection(id=section_id, name=name, type=type, channel_ids=ids)


def layout(groups) -> list[tuple[str, list[str]]]:
    return [(g.section.name, [i.id for i in g.items]) for g in groups]


@pytest.fixture
def sections() -> list[ChannelSection]:
    return [
        section("S1", "Starred", ("C1", "C3")),
        section("S2", "Engineering", ("C2",)),
        section("S3", "DMs", ("D1",)),
    ]


@pytest.fixture
def items() -> list[ConversationItem]:
    return [
        item("C1", ConversationType.CHANNEL),
        item("C2", ConversationType.MENTION),
        item("D1", ConversationType.DM),
        item("C99", ConversationType.CHANNEL),
    ]


class TestGroupBySections:
    def test_mentions_first_then_sections_then_uncategorized(
        self, items: list[ConversationItem], sections: list[ChannelSection]
    ) -> None:
        assert layout(group_by_sections(items, sections)) == [
            ("Mentions", ["C2"]),
            ("Starred", ["C1"]),
            ("DMs", ["D1"]),
            ("Uncategorized", ["C99"]),
        ]

    def test_idempotent(
        self, items: list[ConversationItem], sections: list[ChannelSection]
    ) -> None:
        assert group_by_sections(items, sections) == group_by_sections(items, sections)

    def test_every_item_in_exactly_one_group(
        self, items: list[ConversationItem], sections: list[ChannelSection]
    ) -> None:
        ids = [i.id for g in group_by_sections(items, sections) for i in g.items]

        assert sorted(ids) == sorted(i.id for i in items)

    def test_groups_sorted_newest_first_undated_last(self) -> None:
        items = [
            item("C1", ConversationType.CHANNEL, minutes_ago=30),
            item("C2", ConversationType.CHANNEL, minutes_ago=None),
            item("C3", ConversationType.CHANNEL, minutes_ago=5),
        ]
        sections = [section("S1", "Team", ("C1", "C2", "C3"))]

        assert layout(group_by_sections(items, sections)) == [("Team", ["C3", "C1", "C2"])]

    def test_first_explicit_section_wins(self) -> None:
        items = [item("C1", ConversationType.CHANNEL)]
        sections = [section("S1", "First", ("C1",)), section("S2", "Second", ("C1",))]

        assert layout(group_by_sections(items, sections)) == [("First", ["C1"])]

    def test_virtual_sections_claim_by_kind(self) -> None:
        items = [
            item("C1", ConversationType.CHANNEL),
            item("C2", ConversationType.CHANNEL, is_ext_shared=True),
            item("D1", ConversationType.DM),
            item("G1", ConversationType.MPIM),
        ]
        sections = [
            section("S1", "Channels", type="channels"),
            section("S2", "External", type="slack_connect"),
            section("S3", "Direct messages", type="direct_messages"),
        ]

        assert layout(group_by_sections(items, sections)) == [
            ("Channels", ["C1"]),
            ("External", ["C2"]),
            ("Direct messages", ["D1", "G1"]),
        ]

    def test_explicit_sections_claim_before_virtual_ones(self) -> None:
        items = [item("C1", ConversationType.CHANNEL), item("C2", ConversationType.CHANNEL)]
        sections = [
            section("S1", "Channels", type="channels"),
            section("S2", "Favourites", ("C2",)),
        ]

        assert layout(group_by_sections(items, sections)) == [
            ("Channels", ["C1"]),
            ("Favourites", ["C2"]),
        ]

    def test_unknown_virtual_type_claims_nothing(self) -> None:
        items = [item("C1", ConversationType.CHANNEL)]
        sections = [section("S1", "Recent apps", type="recent_apps")]

        assert layout(group_by_sections(items, sections)) == [("Uncategorized", ["C1"])]

    def test_mentions_ignore_section_membership(self) -> None:
        items = [item("C1", ConversationType.MENTION)]
        sections = [section("S1", "Starred", ("C1",))]

        assert layout(group_by_sections(items, sections)) == [("Mentions", ["C1"])]

    def test_empty_items(self, sections: list[ChannelSection]) -> None:
        assert group_by_sections([], sections) == []


class TestFallbackGrouping:
    def test_three_fixed_groups(self) -> None:
        items = [
            item("C1", ConversationType.CHANNEL),
            item("C2", ConversationType.MENTION),
            item("D1", ConversationType.DM),
            item("G1", ConversationType.MPIM, minutes_ago=10),
        ]

        assert layout(group_by_sections(items, [])) == [
            ("Direct Messages", ["D1", "G1"]),
            ("Mentions", ["C2"]),
            ("Channels", ["C1"]),
        ]

    def test_empty_groups_omitted(self) -> None:
        items = [item("C1", ConversationType.CHANNEL)]

        assert layout(fallback_grouping(items)) == [("Channels", ["C1"])]
