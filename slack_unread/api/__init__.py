"""Slack web API client, response models, and typed errors."""

from slack_unread.api.client import SlackAPIClient, api_base_url
from slack_unread.api.errors import (
    ApiError,
    AuthError,
    EnterpriseRestricted,
    HTTPStatusError,
    RateLimited,
    SlackAPIError,
    TransportError,
)
from slack_unread.api.models import ChannelSection, ConversationCount, CountsResponse

__all__ = [
    "SlackAPIClient",
    "api_base_url",
    "ChannelSection",
    "ConversationCount",
    "CountsResponse",
    "SlackAPIError",
    "TransportError",
    "AuthError",
    "RateLimited",
    "EnterpriseRestricted",
    "ApiError",
    "HTTPStatusError",
]
