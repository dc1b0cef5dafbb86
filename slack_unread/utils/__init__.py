"""Shared utilities for the unread watcher."""
