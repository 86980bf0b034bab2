from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from devpayr.errors import (
    ConfigError,
    DecodeError,
    InjectableError,
    InjectableIOError,
    PathTraversalError,
    SignatureError,
)
from devpayr.services.crypto import codec, signature
from devpayr.services.injectables import Injectable, InjectionEngine, InjectMode

SECRET = "L1"


def _item(target: str | None = "a/b.txt", *, payload: str = "B", mode: str = "replace", signed: bool = False) -> dict:
    token = codec.encrypt(payload, SECRET)
    raw = {"slug": "x", "target_path": target, "encrypted_content": token, "mode": mode}
    if signed:
        raw["signature"] = signature.sign(token, SECRET)
    return raw


@pytest.mark.parametrize(
    "mode,expected",
    [("append", "AB"), ("prepend", "BA"), ("replace", "B"), ("inject", "B"), ("unknown", "B")],
)
def test_modes_against_existing_file(tmp_path, mode, expected):
    target = tmp_path / "a" / "b.txt"
    target.parent.mkdir(parents=True)
    target.write_text("A", encoding="utf-8")

    written = InjectionEngine().handle(_item(mode=mode), SECRET, tmp_path)

    assert written == target.resolve()
    assert target.read_text(encoding="utf-8") == expected


@pytest.mark.parametrize("mode", ["append", "prepend", "replace"])
def test_first_write_ignores_mode(tmp_path, mode):
    written = InjectionEngine().handle(_item(mode=mode), SECRET, tmp_path)
    assert written.read_text(encoding="utf-8") == "B"


def test_creates_nested_directories(tmp_path):
    written = InjectionEngine().handle(_item("deep/er/still/file.cfg"), SECRET, tmp_path)
    assert written == (tmp_path / "deep" / "er" / "still" / "file.cfg").resolve()
    assert not list(written.parent.glob("*.tmp"))


def test_accepts_injectable_instances(tmp_path):
    item = Injectable(slug="x", encrypted_content=codec.encrypt("B", SECRET), target_path="c.txt", mode=InjectMode.APPEND)
    assert InjectionEngine().handle(item, SECRET, tmp_path).read_text(encoding="utf-8") == "B"


def test_lenient_mode_falls_back_to_slug_file(tmp_path):
    written = InjectionEngine().handle(_item(None), SECRET, tmp_path)
    assert written == (tmp_path / "x.txt").resolve()


def test_strict_mode_requires_target(tmp_path):
    with pytest.raises(InjectableError):
        InjectionEngine(strict=True).handle(_item(None), SECRET, tmp_path)
    item = Injectable(slug="x", encrypted_content=codec.encrypt("B", SECRET))
    with pytest.raises(InjectableError):
        InjectionEngine(strict=True).handle(item, SECRET, tmp_path)


def test_leading_separators_stay_under_base(tmp_path):
    written = InjectionEngine().handle(_item("/etc/b.txt"), SECRET, tmp_path)
    assert written == (tmp_path / "etc" / "b.txt").resolve()


@pytest.mark.parametrize("target", ["../escape.txt", "a/../../escape.txt", "..\\escape.txt", "."])
def test_traversal_is_rejected(tmp_path, target):
    base = tmp_path / "base"
    base.mkdir()
    with pytest.raises(PathTraversalError):
        InjectionEngine().handle(_item(target), SECRET, base)
    assert not (tmp_path / "escape.txt").exists()


def test_traversal_allowed_when_opted_in(tmp_path):
    base = tmp_path / "base"
    base.mkdir()
    written = InjectionEngine(allow_outside_base=True).handle(_item("../escape.txt"), SECRET, base)
    assert written.resolve() == (tmp_path / "escape.txt").resolve()


def test_bad_signature_writes_nothing(tmp_path):
    raw = _item(signed=True)
    raw["signature"] = "0" * 64
    with pytest.raises(SignatureError):
        InjectionEngine().handle(raw, SECRET, tmp_path)
    assert not (tmp_path / "a").exists()


def test_bad_signature_ignored_when_verification_disabled(tmp_path):
    raw = _item(signed=True)
    raw["signature"] = "0" * 64
    written = InjectionEngine().handle(raw, SECRET, tmp_path, verify_signature=False)
    assert written.read_text(encoding="utf-8") == "B"


def test_corrupt_token_fails_before_writing(tmp_path):
    raw = _item()
    raw["encrypted_content"] = "not-a-token!!"
    with pytest.raises(DecodeError):
        InjectionEngine().handle(raw, SECRET, tmp_path)
    assert not (tmp_path / "a").exists()


def test_unreadable_existing_target_is_reported(tmp_path, monkeypatch):
    target = tmp_path / "a" / "b.txt"
    target.parent.mkdir(parents=True)
    target.write_text("A", encoding="utf-8")

    def boom(self):
        raise PermissionError("denied")

    monkeypatch.setattr(Path, "read_bytes", boom)
    with pytest.raises(InjectableIOError) as excinfo:
        InjectionEngine().handle(_item(mode="append"), SECRET, tmp_path)
    assert excinfo.value.operation == "read"
    assert excinfo.value.path == target.resolve()


def test_directory_creation_failure_is_reported(tmp_path):
    (tmp_path / "a").write_text("a file, not a dir", encoding="utf-8")
    with pytest.raises(InjectableIOError) as excinfo:
        InjectionEngine().handle(_item("a/b.txt"), SECRET, tmp_path)
    assert excinfo.value.operation == "mkdir"


def test_directory_race_is_not_a_failure(tmp_path, monkeypatch):
    original_mkdir = Path.mkdir

    def racing_mkdir(self, *args, **kwargs):
        original_mkdir(self, parents=True, exist_ok=True)
        raise FileExistsError(str(self))

    monkeypatch.setattr(Path, "mkdir", racing_mkdir)
    written = InjectionEngine().handle(_item("race/b.txt"), SECRET, tmp_path)
    assert written.read_text(encoding="utf-8") == "B"


def test_write_failure_is_reported_and_cleaned_up(tmp_path, monkeypatch):
    def boom(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("devpayr.services.injectables.engine.os.replace", boom)
    with pytest.raises(InjectableIOError) as excinfo:
        InjectionEngine().handle(_item(), SECRET, tmp_path)
    assert excinfo.value.operation == "write"
    assert not list((tmp_path / "a").glob("*"))


def test_unrelated_tmp_sibling_survives(tmp_path):
    neighbour = tmp_path / "b.txt.tmp"
    neighbour.write_text("user data", encoding="utf-8")
    written = InjectionEngine().handle(_item("b.txt"), SECRET, tmp_path)
    assert written.read_text(encoding="utf-8") == "B"
    assert neighbour.read_text(encoding="utf-8") == "user data"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["b.txt", "b.txt.tmp"]


def test_tmp_sibling_directory_does_not_block_writes(tmp_path):
    (tmp_path / "b.txt.tmp").mkdir()
    written = InjectionEngine().handle(_item("b.txt"), SECRET, tmp_path)
    assert written.read_text(encoding="utf-8") == "B"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
@pytest.mark.parametrize("mode", ["append", "prepend", "replace"])
def test_existing_file_mode_is_preserved(tmp_path, mode):
    target = tmp_path / "run.sh"
    target.write_text("#!/bin/sh\n", encoding="utf-8")
    target.chmod(0o755)
    InjectionEngine().handle(_item("run.sh", payload="echo hi\n", mode=mode), SECRET, tmp_path)
    assert stat.S_IMODE(target.stat().st_mode) == 0o755


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_new_file_gets_umask_default_mode(tmp_path):
    umask = os.umask(0)
    os.umask(umask)
    written = InjectionEngine().handle(_item("new.txt"), SECRET, tmp_path)
    assert stat.S_IMODE(written.stat().st_mode) == 0o666 & ~umask


def test_missing_secret_is_a_config_error(tmp_path):
    with pytest.raises(ConfigError):
        InjectionEngine().handle(_item(), "", tmp_path)
    assert not (tmp_path / "a").exists()
