"""``slack://`` deep links into the desktop client."""

import logging
import webbrowser
from urllib.parse import urlencode

logger = logging.getLogger(__name__)

SCHEME = "slack"


def channel_url(team_id: str, channel_id: str) -> str:
    """URI that opens one conversation.

    Examples:
        >>> channel_url("T01", "C42")
        'slack://channel?team=T01&id=C42'
    """
    return f"{SCHEME}://channel?{urlencode({'team': team_id, 'id': channel_id})}"


def open_url(team_id: str) -> str:
    """URI that brings the client to the foreground on a workspace.

    Examples:
        >>> open_url("T01")
        'slack://open?team=T01'
    """
    return f"{SCHEME}://open?{urlencode({'team': team_id})}"


def open_in_slack(team_id: str, channel_id: str | None = None) -> bool:
    """Hand a deep link to the OS. Fire-and-forget; returns whether it was accepted."""
    url = channel_url(team_id, channel_id) if channel_id else open_url(team_id)
    opened = webbrowser.open(url)
    if not opened:
        logger.warning("No handler accepted %s", url)
    return opened
