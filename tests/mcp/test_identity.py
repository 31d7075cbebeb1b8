"""Tests for identity file load/save."""

from __future__ import annotations

import json
import stat
import sys
from pathlib import Path

import pytest

from reach.crypto.keys import generate_keypair, private_key_to_base64
from reach.mcp.identity import IDENTITY_FILE_MODE, IdentityError, load_identity, save_identity


def test_save_then_load(tmp_path: Path) -> None:
    private_key, _ = generate_keypair()
    path = tmp_path / "nested" / "identity.json"
    save_identity(private_key, path)
    loaded = load_identity(path)
    assert loaded.sign(b"m") == private_key.sign(b"m")


def test_file_format(tmp_path: Path) -> None:
    private_key, _ = generate_keypair()
    path = tmp_path / "identity.json"
    save_identity(private_key, path)
    assert json.loads(path.read_text()) == {"secret_key": private_key_to_base64(private_key)}


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
def test_file_is_owner_only(tmp_path: Path) -> None:
    private_key, _ = generate_keypair()
    path = tmp_path / "identity.json"
    save_identity(private_key, path)
    assert stat.S_IMODE(path.stat().st_mode) == IDENTITY_FILE_MODE


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(IdentityError, match="not found"):
        load_identity(tmp_path / "absent.json")


@pytest.mark.parametrize(
    "content",
    ["not json", "[]", '{"other": 1}', '{"secret_key": "!!"}', '{"secret_key": "AAAA"}'],
)
def test_corrupt_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "identity.json"
    path.write_text(content)
    with pytest.raises(IdentityError):
        load_identity(path)
