"""Audit logging utilities.

Writes JSON-formatted, one-file-per-day audit logs of watcher status changes
and errors. Entries hold status, error descriptions and counts only: never
credentials, conversation names, or message data.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any

from slack_unread.utils.timestamps import today_iso

logger = logging.getLogger(__name__)


def correlation_id() -> str:
    """UUID4 string tying a log entry to the poll cycle that produced it."""
    return str(uuid.uuid4())


def log_action(log_dir: str | Path, entry: dict[str, Any]) -> None:
    """Append an entry to today's log file.

    Creates the log file if it doesn't exist. Each log file contains
    a JSON object with a "date" field and an "entries" array.

    Args:
        log_dir: Path to the log directory (e.g., ~/.config/slack-unread/logs/status).
        entry: Dictionary containing the log entry fields.
            Required: timestamp, correlation_id, actor, action_type, target, result
            Optional: error, details

    Examples:
        >>> log_action("logs/status", {
        ...     "timestamp": "2026-10-19T14:30:22Z",
        ...     "correlation_id": "abc-123",
        ...     "actor": "unread_watcher",
        ...     "action_type": "status_change",
        ...     "target": "acme",
        ...     "result": "connected"
        ... })
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    date = today_iso()
    log_file = log_path / f"{date}.json"

    data: dict[str, Any] = {"date": date, "entries": []}
    if log_file.exists():
        try:
            data = json.loads(log_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Corrupted log file %s, starting a new one", log_file.name)

    data.setdefault("entries", []).append(entry)

    # Write to a sibling then rename so readers never see half a file
    tmp_file = log_file.with_suffix(".json.tmp")
    tmp_file.write_text(
        json.dumps(data, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    tmp_file.replace(log_file)


def read_recent_logs(log_dir: str | Path, count: int = 10) -> list[dict[str, Any]]:
    """Read the most recent log entries from a log directory.

    Reads entries across multiple days if needed to reach the requested count.

    Args:
        log_dir: Path to the log directory.
        count: Maximum number of entries to return.

    Returns:
        List of log entries, most recent first.
    """
    log_path = Path(log_dir)
    if not log_path.exists():
        return []

    # File names are ISO dates, so name order is date order
    log_files = sorted(log_path.glob("*.json"), reverse=True)

    entries: list[dict[str, Any]] = []

    for log_file in log_files:
        if len(entries) >= count:
            break

        try:
            data = json.loads(log_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            continue
        entries.extend(reversed(data.get("entries", [])))

    return entries[:count]
