"""Credential extraction from the Slack desktop client's local storage."""

from slack_unread.extraction.errors import (
    CookieDecryptionFailed,
    ExtractionError,
    NoTokenFound,
    NotInstalled,
    SecretStoreAccessFailed,
    WorkspaceParseFailed,
)
from slack_unread.extraction.extractor import CredentialExtractor, Credentials, extract_credentials
from slack_unread.extraction.secret_store import InMemorySecretProvider, KeychainCLISecretProvider
from slack_unread.extraction.workspaces import WorkspaceMetadata, load_workspaces, parse_workspaces

__all__ = [
    "CredentialExtractor",
    "Credentials",
    "extract_credentials",
    "WorkspaceMetadata",
    "load_workspaces",
    "parse_workspaces",
    "KeychainCLISecretProvider",
    "InMemorySecretProvider",
    "ExtractionError",
    "NotInstalled",
    "NoTokenFound",
    "SecretStoreAccessFailed",
    "CookieDecryptionFailed",
    "WorkspaceParseFailed",
]
