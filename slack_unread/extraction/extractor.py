"""Credential extraction from the Slack desktop client's local storage.

Produces the (xoxc token, xoxd cookie, workspace) triple the web API needs:

1. the token is scraped from Local Storage LevelDB files,
2. the cookie is the ``d`` cookie in the Chromium cookie DB, encrypted with a
   key derived from a keychain passphrase,
3. the workspace comes from ``storage/root-state.json``.

Each step fails with its own ``ExtractionError`` subclass.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from slack_unread.extraction.cookie_store import read_encrypted_cookie
from slack_unread.extraction.crypto import decrypt_cookie_value, derive_key
from slack_unread.extraction.errors import NoTokenFound, NotInstalled
from slack_unread.extraction.leveldb_scanner import scan_leveldb_dir
from slack_unread.extraction.secret_store import (
    SLACK_SAFE_STORAGE,
    SecretProvider,
    default_secret_provider,
)
from slack_unread.extraction.workspaces import WorkspaceMetadata, load_workspaces

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "d"
SESSION_COOKIE_DOMAIN = ".slack.com"


def default_data_dir() -> Path:
    """Slack's data directory, overridable with ``SLACK_DATA_DIR``."""
    override = os.getenv("SLACK_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / "Library" / "Application Support" / "Slack"


@dataclass(frozen=True)
class Credentials:
    """Session credentials. Held in memory only, never written anywhere."""

    token: str = field(repr=False)
    cookie: str = field(repr=False)
    workspace: WorkspaceMetadata | None = None
    workspaces: tuple[WorkspaceMetadata, ...] = ()

    def __post_init__(self) -> None:
        if not self.token or not self.cookie:
            raise ValueError("Credentials require a non-empty token and cookie")


class CredentialExtractor:
    """Extracts credentials from one Slack data directory."""

    def __init__(
        self,
        data_dir: str | Path | None = None,
        secret_provider: SecretProvider | None = None,
    ) -> None:
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()
        self.secret_provider = secret_provider or default_secret_provider

    @property
    def leveldb_dir(self) -> Path:
        return self.data_dir / "Local Storage" / "leveldb"

    @property
    def cookies_path(self) -> Path:
        return self.data_dir / "Cookies"

    @property
    def root_state_path(self) -> Path:
        return self.data_dir / "storage" / "root-state.json"

    def extract(self) -> Credentials:
        """Run the full pipeline.

        Raises:
            NotInstalled: Data directory or LevelDB directory missing.
            WorkspaceParseFailed: root-state.json unreadable or malformed.
            NoTokenFound: No token-shaped string in any LevelDB file.
            SecretStoreAccessFailed: Keychain entry missing or inaccessible.
            CookieDecryptionFailed: Cookie missing or not decryptable.
        """
        if not self.data_dir.is_dir():
            raise NotInstalled()

        workspaces = load_workspaces(self.root_state_path)
        token = self.extract_token()
        cookie = self.extract_cookie()

        active = workspaces[0] if workspaces else None
        logger.info(
            "Extracted credentials (workspace: %s, %d known)",
            active.domain if active else "none",
            len(workspaces),
        )
        return Credentials(
            token=token,
            cookie=cookie,
            workspace=active,
            workspaces=tuple(workspaces),
        )

    def extract_token(self) -> str:
        """Return the token from the most recently written LevelDB file."""
        if not self.leveldb_dir.is_dir():
            raise NotInstalled(f"Slack Local Storage not found at {self.leveldb_dir}")

        try:
            tokens = scan_leveldb_dir(self.leveldb_dir)
        except OSError as exc:
            raise NoTokenFound() from exc

        if not tokens:
            raise NoTokenFound()
        return tokens[0]

    def extract_cookie(self) -> str:
        """Decrypt the ``d`` session cookie."""
        passphrase = self.secret_provider.get_password(SLACK_SAFE_STORAGE)
        key = derive_key(passphrase)
        encrypted = read_encrypted_cookie(
            self.cookies_path, SESSION_COOKIE_NAME, SESSION_COOKIE_DOMAIN
        )
        return decrypt_cookie_value(encrypted, key)


def extract_credentials() -> Credentials:
    """Extract credentials from the default Slack install."""
    return CredentialExtractor().extract()
