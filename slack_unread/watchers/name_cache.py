"""Session-lifetime cache of conversation and user display data.

Names rarely change, so entries never expire; the cache is rebuilt on
restart. Concurrent name lookups within a poll share one instance, so
every access goes through a single lock. No I/O happens under the lock.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class NameCacheEntry:
    channel_name: str | None = None
    is_private: bool | None = None
    is_ext_shared: bool | None = None
    user_name: str | None = None
    dm_user_id: str | None = None


class NameCache:
    """Lock-guarded map of id -> ``NameCacheEntry``.

    Conversation ids and user ids share the key space; Slack prefixes
    (``C``/``D``/``G`` vs ``U``/``W``) keep them apart.
    """

    def __init__(self) -> None:
        self._entries: dict[str, NameCacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> NameCacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, **fields: Any) -> NameCacheEntry:
        """Merge ``fields`` into the entry for ``key``; None values are ignored."""
        updates = {name: value for name, value in fields.items() if value is not None}
        with self._lock:
            entry = replace(self._entries.get(key) or NameCacheEntry(), **updates)
            self._entries[key] = entry
            return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ── Convenience accessors ───────────────────────────────────────

    def user_name(self, user_id: str) -> str | None:
        entry = self.get(user_id)
        return entry.user_name if entry else None

    def dm_user(self, channel_id: str) -> str | None:
        entry = self.get(channel_id)
        return entry.dm_user_id if entry else None
