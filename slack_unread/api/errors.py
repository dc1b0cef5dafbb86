"""Typed failures for Slack web API calls.

Hierarchy::

    SlackAPIError
    ├── TransportError        - connection/DNS/TLS failure, no response
    ├── AuthError             - HTTP 401 or not_authed/invalid_auth/token_revoked
    ├── RateLimited           - HTTP 429, advisory retry_after
    ├── EnterpriseRestricted  - enterprise_is_restricted
    └── ApiError(code)        - any other ok:false response
        └── HTTPStatusError   - unexpected HTTP status
"""

from __future__ import annotations

AUTH_ERROR_CODES = frozenset({"not_authed", "invalid_auth", "token_revoked"})
ENTERPRISE_RESTRICTED_CODE = "enterprise_is_restricted"
DEFAULT_RETRY_AFTER_SECONDS = 30.0


class SlackAPIError(Exception):
    """Base class for every API-call failure."""


class TransportError(SlackAPIError):
    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class AuthError(SlackAPIError):
    def __init__(self, code: str | None = None) -> None:
        self.code = code
        super().__init__("Authentication failed")


class RateLimited(SlackAPIError):
    def __init__(self, retry_after: float = DEFAULT_RETRY_AFTER_SECONDS) -> None:
        self.retry_after = retry_after
        super().__init__(f"Rate limited, retry after {retry_after:g}s")


class EnterpriseRestricted(SlackAPIError):
    def __init__(self) -> None:
        super().__init__("API restricted on enterprise workspace")


class ApiError(SlackAPIError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Slack API error: {code}")


class HTTPStatusError(ApiError):
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"http_{status_code}")


def error_for_code(code: str | None) -> SlackAPIError:
    """Map an ``ok: false`` error code onto the typed error set."""
    code = code or "unknown"
    if code in AUTH_ERROR_CODES:
        return AuthError(code)
    if code == ENTERPRISE_RESTRICTED_CODE:
        return EnterpriseRestricted()
    return ApiError(code)
