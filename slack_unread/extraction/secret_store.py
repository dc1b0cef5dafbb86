"""Access to the OS keychain entry holding Slack's cookie passphrase.

Slack (like any Chromium-based app) keeps a random passphrase in the macOS
keychain under "Slack Safe Storage". We read it through the ``security`` CLI
instead of an in-process keychain API: the CLI is already trusted by the
keychain, so no authorization dialog blocks unattended polling.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import Protocol

from slack_unread.extraction.errors import SecretStoreAccessFailed

logger = logging.getLogger(__name__)

SLACK_SAFE_STORAGE = "Slack Safe Storage"
SECURITY_BINARY = "/usr/bin/security"


class SecretProvider(Protocol):
    """Anything that can hand back the passphrase for a named keychain service."""

    def get_password(self, service: str) -> str:
        """Return the passphrase, raising ``SecretStoreAccessFailed`` if unavailable."""
        ...


class KeychainCLISecretProvider:
    """Reads generic passwords via ``security find-generic-password``.

    Results are cached per service for the lifetime of the instance, so one
    process makes a single keychain round trip per service.
    """

    def __init__(self, binary: str = SECURITY_BINARY) -> None:
        self.binary = binary
        self._cache: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_password(self, service: str) -> str:
        with self._lock:
            cached = self._cache.get(service)
        if cached is not None:
            return cached

        password = self._query(service)

        with self._lock:
            self._cache[service] = password
        return password

    def _query(self, service: str) -> str:
        """Run the CLI once and return the password printed on stdout."""
        try:
            result = subprocess.run(
                [self.binary, "find-generic-password", "-s", service, "-w"],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            logger.warning("Could not run %s: %s", self.binary, exc)
            raise SecretStoreAccessFailed() from exc

        if result.returncode != 0:
            logger.warning(
                "Keychain lookup for %r failed (exit %d): %s",
                service,
                result.returncode,
                result.stderr.strip(),
            )
            raise SecretStoreAccessFailed()

        password = result.stdout.rstrip("\n")
        if not password:
            raise SecretStoreAccessFailed()
        return password


class InMemorySecretProvider:
    """Dictionary-backed provider for tests and non-macOS setups."""

    def __init__(self, secrets: dict[str, str] | None = None) -> None:
        self.secrets = dict(secrets or {})
        self.lookups: list[str] = []

    def get_password(self, service: str) -> str:
        self.lookups.append(service)
        try:
            return self.secrets[service]
        except KeyError:
            raise SecretStoreAccessFailed() from None


# Shared instance so the cache spans every extraction in this process.
default_secret_provider = KeychainCLISecretProvider()
