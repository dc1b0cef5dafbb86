"""Tests for the LevelDB token scanner."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from slack_unread.extraction.leveldb_scanner import (
    MIN_TOKEN_LENGTH,
    dedupe,
    list_leveldb_files,
    scan_leveldb_dir,
    scan_tokens,
)

# ── Fixtures ────────────────────────────────────────────────────────


def make_token(length: int, fill: str = "a") -> str:
    """Build an xoxc-prefixed token of exactly ``length`` characters."""
    body = "1234567890-1234567890-"
    token = "xoxc-" + body
    return token + fill * (length - len(token))


@pytest.fixture
def token() -> str:
    return make_token(85)


@pytest.fixture
def leveldb_dir(tmp_path: Path) -> Path:
    path = tmp_path / "leveldb"
    path.mkdir()
    return path


# ── scan_tokens ─────────────────────────────────────────────────────


class TestScanTokens:
    def test_finds_token_among_binary_noise(self, token: str) -> None:
        data = b"\x00\x01garbage\xff" + token.encode() + b"\x00more\x7fbytes"

        assert scan_tokens(data) == [token]
        assert len(scan_tokens(data)[0]) == 85

    def test_rejects_short_fragments(self, token: str) -> None:
        fragment = "xoxc-1234-abcd"
        data = fragment.encode() + b"\x00" + token.encode()

        assert scan_tokens(data) == [token]

    def test_length_floor_is_exclusive(self) -> None:
        at_floor = make_token(MIN_TOKEN_LENGTH)
        above = make_token(MIN_TOKEN_LENGTH + 1, fill="b")

        assert scan_tokens(at_floor.encode() + b"\x00") == []
        assert scan_tokens(above.encode() + b"\x00") == [above]

    def test_stops_at_non_identifier_byte(self, token: str) -> None:
        data = token.encode() + b'"suffix'

        assert scan_tokens(data) == [token]

    def test_underscore_and_hyphen_are_token_bytes(self) -> None:
        token = make_token(70, fill="_")

        assert scan_tokens(token.encode() + b"\x00") == [token]

    def test_duplicates_keep_first_seen_order(self) -> None:
        first = make_token(80, fill="a")
        second = make_token(80, fill="b")
        data = b"\x00".join(t.encode() for t in (first, second, first))

        assert scan_tokens(data) == [first, second]

    def test_no_marker_returns_empty(self) -> None:
        assert scan_tokens(b"nothing to see here" * 20) == []

    def test_empty_buffer(self) -> None:
        assert scan_tokens(b"") == []


class TestDedupe:
    def test_preserves_order(self) -> None:
        assert dedupe(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


# ── Directory scanning ──────────────────────────────────────────────


class TestScanLevelDBDir:
    def test_lists_only_leveldb_files_newest_first(self, leveldb_dir: Path) -> None:
        old = leveldb_dir / "000001.ldb"
        new = leveldb_dir / "000002.log"
        (leveldb_dir / "MANIFEST-000001").write_bytes(b"")
        (leveldb_dir / "LOCK").write_bytes(b"")
        old.write_bytes(b"")
        new.write_bytes(b"")
        os.utime(old, (1_000_000, 1_000_000))
        os.utime(new, (2_000_000, 2_000_000))

        assert list_leveldb_files(leveldb_dir) == [new, old]

    def test_newest_file_token_comes_first(self, leveldb_dir: Path) -> None:
        stale = make_token(90, fill="s")
        fresh = make_token(90, fill="f")
        old = leveldb_dir / "000010.ldb"
        new = leveldb_dir / "000011.log"
        old.write_bytes(b"\x00" + stale.encode() + b"\x00")
        new.write_bytes(b"\x00" + fresh.encode() + b"\x00")
        os.utime(old, (1_000_000, 1_000_000))
        os.utime(new, (2_000_000, 2_000_000))

        assert scan_leveldb_dir(leveldb_dir) == [fresh, stale]

    def test_same_token_in_several_files_reported_once(
        self, leveldb_dir: Path, token: str
    ) -> None:
        (leveldb_dir / "a.ldb").write_bytes(token.encode() + b"\x00")
        (leveldb_dir / "b.log").write_bytes(token.encode() + b"\x00")

        assert scan_leveldb_dir(leveldb_dir) == [token]

    def test_empty_directory(self, leveldb_dir: Path) -> None:
        assert scan_leveldb_dir(leveldb_dir) == []
