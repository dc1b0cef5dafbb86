"""Polling engine: scheduling, state, name cache, and section grouping."""

from slack_unread.watchers.base_watcher import BaseWatcher
from slack_unread.watchers.scheduler import PollScheduler

__all__ = ["BaseWatcher", "PollScheduler"]
