"""Errors raised while extracting credentials from the Slack desktop client.

Every step of extraction fails fast with one of these. None of them are
retried here; the poll loop decides when to try again.
"""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for credential extraction failures."""

    message = "Credential extraction failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class NotInstalled(ExtractionError):
    message = "Slack desktop app not found"


class NoTokenFound(ExtractionError):
    message = "No xoxc token found in Slack storage"


class SecretStoreAccessFailed(ExtractionError):
    message = "Cannot access Slack Safe Storage in the keychain"


class WorkspaceParseFailed(ExtractionError):
    message = "Failed to parse Slack root-state.json"


class CookieDecryptionFailed(ExtractionError):
    """The session cookie could not be read, decrypted, or decoded."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Cookie decryption failed: {detail}")
