"""Settings file for the unread watcher.

The only setting the engine consumes is the poll interval. The file lives at
``~/.config/slack-unread/config.json`` unless ``SLACK_UNREAD_CONFIG`` points
elsewhere.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

MIN_POLL_INTERVAL = 10
MAX_POLL_INTERVAL = 120
DEFAULT_POLL_INTERVAL = 30
SECTION_REFRESH_INTERVAL = 300


def clamp_interval(seconds: int) -> int:
    """Clamp a poll interval into the supported 10-120s range."""
    return max(MIN_POLL_INTERVAL, min(MAX_POLL_INTERVAL, int(seconds)))


def default_config_path() -> Path:
    override = os.getenv("SLACK_UNREAD_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "slack-unread" / "config.json"


def default_logs_path() -> Path:
    override = os.getenv("SLACK_UNREAD_LOGS")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "slack-unread" / "logs"


@dataclass
class AppConfig:
    poll_interval_seconds: int = DEFAULT_POLL_INTERVAL

    def __post_init__(self) -> None:
        self.poll_interval_seconds = clamp_interval(self.poll_interval_seconds)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load settings, falling back to defaults.

    A missing file is normal on first run. An unreadable or malformed file
    is logged and ignored rather than stopping the watcher.

    Args:
        path: Config file path. Defaults to ``default_config_path()``.

    Returns:
        AppConfig with the interval already clamped.
    """
    config_path = Path(path) if path is not None else default_config_path()
    if not config_path.exists():
        return AppConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read config %s: %s. Using defaults.", config_path, exc)
        return AppConfig()

    if not isinstance(data, dict):
        logger.warning("Config %s is not a JSON object. Using defaults.", config_path)
        return AppConfig()

    try:
        interval = int(data.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL))
    except (TypeError, ValueError):
        logger.warning("Invalid poll_interval_seconds in %s. Using default.", config_path)
        interval = DEFAULT_POLL_INTERVAL
    return AppConfig(poll_interval_seconds=interval)


def save_config(config: AppConfig, path: str | Path | None = None) -> Path:
    """Write ``config`` as pretty JSON and return the path written."""
    config_path = Path(path) if path is not None else default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        json.dumps(asdict(config), indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return config_path
