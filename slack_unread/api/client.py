"""Async client for the Slack web API, authenticated as the desktop session.

Requests are POSTs with a form-encoded body. Auth is the xoxc token as a
bearer header (and duplicated as the ``token`` form field) plus the xoxd
cookie as ``d=``. The client is stateless apart from its connection pool;
the poll loop creates one per cycle and closes it afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from slack_unread.api.errors import (
    DEFAULT_RETRY_AFTER_SECONDS,
    ApiError,
    AuthError,
    HTTPStatusError,
    RateLimited,
    TransportError,
    error_for_code,
)
from slack_unread.api.models import (
    AuthTestResponse,
    ChannelSection,
    ConversationInfo,
    CountsResponse,
    UserInfo,
    UserPrefs,
    parse_sections,
)

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://slack.com/api/"

T = TypeVar("T")


def api_base_url(domain: str | None) -> str:
    """Workspace-specific API origin, or the generic one without a domain."""
    if domain:
        return f"https://{domain}.slack.com/api/"
    return DEFAULT_API_BASE


def _parse_retry_after(value: str | None) -> float:
    if not value:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return max(float(value), 0.0)
    except ValueError:
        return DEFAULT_RETRY_AFTER_SECONDS


class SlackAPIClient:
    """Thin async wrapper over the handful of endpoints the watcher needs.

    Args:
        token: xoxc session token.
        cookie: xoxd session cookie value.
        domain: Workspace subdomain; selects ``https://<domain>.slack.com``.
        transport: Optional httpx transport, for tests.
    """

    def __init__(
        self,
        token: str,
        cookie: str,
        domain: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not token or not cookie:
            raise ValueError("SlackAPIClient requires a non-empty token and cookie")
        self.token = token
        self.cookie = cookie
        self.base_url = api_base_url(domain)
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Cookie": f"d={cookie}",
            },
            transport=transport,
        )

    async def __aenter__(self) -> SlackAPIClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def build_form(self, params: dict[str, str] | None = None) -> dict[str, str]:
        """Form body for a call: caller params plus the token field."""
        form = dict(params or {})
        form["token"] = self.token
        return form

    # ── Endpoints ───────────────────────────────────────────────────

    async def auth_test(self, team_id: str | None = None) -> AuthTestResponse:
        data = await self.call("auth.test", _team(team_id))
        return _parse("auth.test", AuthTestResponse.from_dict, data)

    async def fetch_counts(self, team_id: str | None = None) -> CountsResponse:
        data = await self.call("client.counts", _team(team_id))
        return _parse("client.counts", CountsResponse.from_dict, data)

    async def fetch_conversation_info(
        self, channel_id: str, team_id: str | None = None
    ) -> ConversationInfo:
        data = await self.call("conversations.info", {"channel": channel_id, **_team(team_id)})
        return _parse(
            "conversations.info",
            ConversationInfo.from_dict,
            data.get("channel") or {"id": channel_id},
        )

    async def fetch_user_info(self, user_id: str, team_id: str | None = None) -> UserInfo:
        data = await self.call("users.info", {"user": user_id, **_team(team_id)})
        return _parse("users.info", UserInfo.from_dict, data.get("user") or {"id": user_id})

    async def fetch_user_prefs(self, team_id: str | None = None) -> UserPrefs:
        data = await self.call("users.prefs.get", _team(team_id))
        return _parse("users.prefs.get", UserPrefs.from_dict, data)

    async def fetch_user_boot(self, team_id: str | None = None) -> list[ChannelSection]:
        data = await self.call("client.userBoot", _team(team_id))
        return _parse("client.userBoot", parse_sections, data)

    async def fetch_channel_sections(self, team_id: str | None = None) -> list[ChannelSection]:
        """Dedicated sections endpoint; same payload shape as userBoot."""
        data = await self.call("users.channelSections.list", _team(team_id))
        return _parse("users.channelSections.list", parse_sections, data)

    # ── Request Execution ───────────────────────────────────────────

    async def call(self, method: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """POST one API method and return its JSON body.

        Raises:
            TransportError: No response (connection, DNS, TLS, timeout).
            RateLimited: HTTP 429.
            AuthError: HTTP 401, or an auth-related ``error`` code.
            EnterpriseRestricted: ``enterprise_is_restricted``.
            HTTPStatusError: Any other non-200 status.
            ApiError: Other ``ok: false`` codes, or a non-JSON body.
        """
        try:
            response = await self._http.post(method, data=self.build_form(params))
        except httpx.TransportError as exc:
            raise TransportError(exc) from exc

        if response.status_code == 429:
            raise RateLimited(_parse_retry_after(response.headers.get("Retry-After")))
        if response.status_code == 401:
            raise AuthError()
        if response.status_code != 200:
            raise HTTPStatusError(response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise ApiError("invalid_response") from exc
        if not isinstance(body, dict):
            raise ApiError("invalid_response")

        if not body.get("ok", False):
            error = error_for_code(body.get("error"))
            logger.debug("%s returned ok=false: %s", method, error)
            raise error

        return body


def _team(team_id: str | None) -> dict[str, str]:
    return {"team_id": team_id} if team_id else {}


def _parse(method: str, parser: Callable[[Any], T], data: Any) -> T:
    """Run a model parser, turning a malformed payload into ``invalid_response``."""
    try:
        return parser(data)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        logger.debug("%s returned a malformed payload: %r", method, exc)
        raise ApiError("invalid_response") from exc
