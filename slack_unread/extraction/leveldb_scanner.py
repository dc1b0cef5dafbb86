"""Find xoxc tokens in the client's Local Storage LevelDB files.

We don't parse LevelDB. Tokens are stored as plain ASCII inside the ``.ldb``
tables and ``.log`` write-ahead files, so a byte scan for the ``xoxc-``
marker is enough. Snappy-compressed blocks can split a token; the length
floor drops those fragments.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

TOKEN_MARKER = b"xoxc-"
# Real tokens run 80-120+ characters
MIN_TOKEN_LENGTH = 50
LEVELDB_SUFFIXES = (".ldb", ".log")

_TOKEN_BYTES = frozenset(
    b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_"
)


def scan_tokens(data: bytes) -> list[str]:
    """Return every plausible token in ``data``, first-seen order, no duplicates.

    Args:
        data: Raw file contents.

    Returns:
        Candidate tokens longer than ``MIN_TOKEN_LENGTH``.

    Examples:
        >>> scan_tokens(b"\\x00xoxc-" + b"a" * 60 + b"\\x01")[0][:7]
        'xoxc-aa'
        >>> scan_tokens(b"xoxc-short")
        []
    """
    tokens: list[str] = []
    start = data.find(TOKEN_MARKER)
    while start != -1:
        end = start + len(TOKEN_MARKER)
        while end < len(data) and data[end] in _TOKEN_BYTES:
            end += 1
        if end - start > MIN_TOKEN_LENGTH:
            tokens.append(data[start:end].decode("ascii"))
        start = data.find(TOKEN_MARKER, end)
    return dedupe(tokens)


def dedupe(tokens: Iterable[str]) -> list[str]:
    """Drop repeats while keeping first-seen order."""
    return list(dict.fromkeys(tokens))


def list_leveldb_files(leveldb_dir: Path) -> list[Path]:
    """Return ``.ldb``/``.log`` files, most recently modified first.

    Tokens rotate, so the newest file is the most likely to hold the live one.
    """
    files = [
        path
        for path in leveldb_dir.iterdir()
        if path.is_file() and path.suffix in LEVELDB_SUFFIXES
    ]
    return sorted(files, key=lambda path: path.stat().st_mtime, reverse=True)


def scan_leveldb_dir(leveldb_dir: Path) -> list[str]:
    """Scan every LevelDB file in ``leveldb_dir`` for tokens."""
    found: list[str] = []
    for path in list_leveldb_files(leveldb_dir):
        try:
            data = path.read_bytes()
        except OSError:
            # Compaction can delete a table between listing and reading
            logger.debug("Skipping unreadable LevelDB file %s", path.name)
            continue
        found.extend(scan_tokens(data))
    tokens = dedupe(found)
    logger.debug("Found %d candidate token(s) in %s", len(tokens), leveldb_dir)
    return tokens
