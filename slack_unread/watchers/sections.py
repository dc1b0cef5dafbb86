"""Group conversation items into the user's sidebar sections.

Pure functions; the watcher calls them with its current items and
sections whenever a view needs grouping.

Rules, in order:

1. Mentions always form the first group, whatever section they belong to.
2. Sections with explicit ``channel_ids`` claim matching unclaimed items.
3. Virtual sections (no ids) claim unclaimed items by kind: plain channels,
   externally shared channels, or DMs.
4. Leftovers form a trailing "Uncategorized" group.

Groups keep the sections' declared order, are dropped when empty, and are
sorted newest first. With no sections at all, a fixed DMs / Mentions /
Channels layout is used instead.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from slack_unread.api.models import ChannelSection
from slack_unread.watchers.state import (
    DM_TYPES,
    ConversationItem,
    ConversationType,
    GroupedSection,
    sort_by_latest,
)

MENTIONS_SECTION = ChannelSection(id="mentions", name="Mentions", type="mentions")
UNCATEGORIZED_SECTION = ChannelSection(
    id="uncategorized", name="Uncategorized", type="uncategorized"
)
FALLBACK_DMS = ChannelSection(id="fallback-dms", name="Direct Messages", type="default_dms")
FALLBACK_MENTIONS = ChannelSection(
    id="fallback-mentions", name="Mentions", type="mentions"
)
FALLBACK_CHANNELS = ChannelSection(
    id="fallback-channels", name="Channels", type="default_channels"
)

CHANNELS_SECTION_TYPES = frozenset({"channels", "default_channels"})
EXTERNAL_SECTION_TYPES = frozenset({"slack_connect", "default_slack_connect", "external"})
DMS_SECTION_TYPES = frozenset({"direct_messages", "default_dms", "dms"})


def _is_plain_channel(item: ConversationItem) -> bool:
    return item.type is ConversationType.CHANNEL and not item.is_ext_shared


def _is_external_channel(item: ConversationItem) -> bool:
    return item.type is ConversationType.CHANNEL and bool(item.is_ext_shared)


def _is_dm(item: ConversationItem) -> bool:
    return item.type in DM_TYPES


def _virtual_matcher(section_type: str) -> Callable[[ConversationItem], bool] | None:
    if section_type in CHANNELS_SECTION_TYPES:
        return _is_plain_channel
    if section_type in EXTERNAL_SECTION_TYPES:
        return _is_external_channel
    if section_type in DMS_SECTION_TYPES:
        return _is_dm
    return None


def group_by_sections(
    items: Sequence[ConversationItem], sections: Sequence[ChannelSection]
) -> list[GroupedSection]:
    """Partition ``items`` into display groups.

    Args:
        items: Current conversation items.
        sections: Sidebar sections in display order.

    Returns:
        Non-empty groups. Every item lands in exactly one group.
    """
    if not sections:
        return fallback_grouping(items)

    mentions = [item for item in items if item.type is ConversationType.MENTION]
    claimed: set[str] = {item.id for item in mentions}
    members: list[list[ConversationItem]] = [[] for _ in sections]

    for index, section in enumerate(sections):
        if section.is_virtual:
            continue
        wanted = set(section.channel_ids)
        for item in items:
            if item.id in wanted and item.id not in claimed:
                members[index].append(item)
                claimed.add(item.id)

    for index, section in enumerate(sections):
        if not section.is_virtual:
            continue
        matches = _virtual_matcher(section.type)
        if matches is None:
            continue
        for item in items:
            if item.id not in claimed and matches(item):
                members[index].append(item)
                claimed.add(item.id)

    result: list[GroupedSection] = []
    if mentions:
        result.append(GroupedSection(MENTIONS_SECTION, tuple(sort_by_latest(mentions))))
    for section, found in zip(sections, members):
        if found:
            result.append(GroupedSection(section, tuple(sort_by_latest(found))))

    leftovers = [item for item in items if item.id not in claimed]
    if leftovers:
        result.append(GroupedSection(UNCATEGORIZED_SECTION, tuple(sort_by_latest(leftovers))))
    return result


def fallback_grouping(items: Sequence[ConversationItem]) -> list[GroupedSection]:
    """Fixed Direct Messages / Mentions / Channels layout, empty groups omitted."""
    layout = (
        (FALLBACK_DMS, _is_dm),
        (FALLBACK_MENTIONS, lambda item: item.type is ConversationType.MENTION),
        (FALLBACK_CHANNELS, lambda item: item.type is ConversationType.CHANNEL),
    )
    result: list[GroupedSection] = []
    for section, matches in layout:
        found = [item for item in items if matches(item)]
        if found:
            result.append(GroupedSection(section, tuple(sort_by_latest(found))))
    return result
