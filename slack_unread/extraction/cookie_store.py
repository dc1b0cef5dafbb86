"""Read one encrypted cookie from the client's SQLite cookie database.

The live database is held open by Slack and may have an uncommitted
journal or WAL. We copy it (and its side files) into a temp directory, open
the copy read-write so SQLite replays any pending journal, run a single
point query, and delete the copy whatever happens.
"""

from __future__ import annotations

import logging
import shutil
import sqlite3
import tempfile
from pathlib import Path

from slack_unread.extraction.errors import CookieDecryptionFailed

logger = logging.getLogger(__name__)

SIDE_FILE_SUFFIXES = ("-journal", "-wal", "-shm")

COOKIE_QUERY = "SELECT encrypted_value FROM cookies WHERE name = ? AND host_key = ? LIMIT 1"


def _copy_database(db_path: Path, dest_dir: Path) -> Path:
    """Copy the DB and whichever side files exist. Returns the copied DB path."""
    target = dest_dir / db_path.name
    shutil.copy2(db_path, target)
    for suffix in SIDE_FILE_SUFFIXES:
        side = db_path.with_name(db_path.name + suffix)
        if side.exists():
            try:
                shutil.copy2(side, dest_dir / (db_path.name + suffix))
            except OSError:
                # Side files come and go while Slack runs
                logger.debug("Side file %s vanished before copy", side.name)
    return target


def read_encrypted_cookie(db_path: str | Path, name: str, host_key: str) -> bytes:
    """Return the ``encrypted_value`` blob for one cookie.

    Args:
        db_path: Path to the client's ``Cookies`` SQLite file.
        name: Cookie name, e.g. ``"d"``.
        host_key: Cookie domain, e.g. ``".slack.com"``.

    Returns:
        The raw encrypted blob, version prefix included.

    Raises:
        CookieDecryptionFailed: If the database is missing or unreadable, or
            holds no non-empty value for that cookie.
    """
    db_path = Path(db_path)
    if not db_path.exists():
        raise CookieDecryptionFailed(f"Cookie database not found at {db_path}")

    with tempfile.TemporaryDirectory(prefix="slack_unread_cookies_") as tmp:
        try:
            copy_path = _copy_database(db_path, Path(tmp))
        except OSError as exc:
            raise CookieDecryptionFailed(f"Could not copy cookie database: {exc}") from exc

        conn = None
        try:
            conn = sqlite3.connect(copy_path)
            row = conn.execute(COOKIE_QUERY, (name, host_key)).fetchone()
        except sqlite3.Error as exc:
            raise CookieDecryptionFailed(f"Cookie query failed: {exc}") from exc
        finally:
            if conn is not None:
                conn.close()

    if row is None or not row[0]:
        raise CookieDecryptionFailed(f"Cookie {name!r} for {host_key} not found")

    return bytes(row[0])
