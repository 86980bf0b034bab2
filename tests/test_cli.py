from __future__ import annotations

import json

import httpx
from typer.testing import CliRunner

from devpayr.apps.cli.main import app
from devpayr.services.crypto import codec, signature
from devpayr.services.runtime.cache import ValidationCache

runner = CliRunner()


def test_encrypt_decrypt_roundtrip():
    token = runner.invoke(app, ["encrypt", "hello", "--secret", "L1"]).stdout.strip()
    result = runner.invoke(app, ["decrypt", token, "--secret", "L1"])
    assert result.exit_code == 0
    assert result.stdout.strip() == "hello"


def test_encrypt_with_signature_emits_injectable_fields():
    result = runner.invoke(app, ["encrypt", "hello", "-k", "L1", "--sign"])
    payload = json.loads(result.stdout)
    assert signature.verify(payload["encrypted_content"], "L1", payload["signature"])
    assert codec.decrypt(payload["encrypted_content"], "L1") == "hello"


def test_decrypt_bad_token_exits_nonzero():
    result = runner.invoke(app, ["decrypt", "garbage!!", "--secret", "L1"])
    assert result.exit_code == 1


def test_sign_and_verify():
    sig = runner.invoke(app, ["sign", "content", "-k", "L1"]).stdout.strip()
    assert runner.invoke(app, ["verify", "content", sig, "-k", "L1"]).exit_code == 0
    assert runner.invoke(app, ["verify", "other", sig, "-k", "L1"]).exit_code == 1


def test_validate_reports_unpaid(monkeypatch):
    original = httpx.Client.__init__

    def patched(self, *args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(lambda request: httpx.Response(200, json={"data": {"has_paid": False}}))
        original(self, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "__init__", patched)
    result = runner.invoke(app, ["validate", "--license", "L1"])
    assert result.exit_code == 1


def test_cache_clear(tmp_path):
    ValidationCache(directory=tmp_path).store("L1")
    first = runner.invoke(app, ["cache-clear", "-l", "L1", "--cache-dir", str(tmp_path)])
    second = runner.invoke(app, ["cache-clear", "-l", "L1", "--cache-dir", str(tmp_path)])
    assert first.stdout.strip() == "cache entry removed"
    assert second.stdout.strip() == "no cache entry"
