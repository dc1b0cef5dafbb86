"""Menu-bar style unread counter for the Slack desktop client."""

__version__ = "0.1.0"
