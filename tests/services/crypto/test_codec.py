from __future__ import annotations

import base64

import pytest

from devpayr.errors import DecodeError, DecryptionError
from devpayr.services.crypto import codec


@pytest.mark.parametrize(
    "plaintext,secret",
    [
        ("hello", "L1"),
        ("multi\nline\tpayload with ünïcode", "a-much-longer-license-key-0123456789abcdef"),
        ("x" * 4096, "k"),
        ("exactly sixteen!", "secret"),
    ],
)
def test_encrypt_then_decrypt_returns_plaintext(plaintext, secret):
    token = codec.encrypt(plaintext, secret)
    assert codec.decrypt(token, secret) == plaintext


def test_token_layout_is_iv_separator_base64_ciphertext():
    token = codec.encrypt("hello", "L1")
    decoded = base64.b64decode(token)
    assert decoded[codec.IV_SIZE : codec.IV_SIZE + 2] == b"::"
    ciphertext = base64.b64decode(decoded[codec.IV_SIZE + 2 :], validate=True)
    assert len(ciphertext) % 16 == 0


def test_fresh_iv_per_encryption():
    first = codec.encrypt("hello", "L1")
    second = codec.encrypt("hello", "L1")
    assert first != second
    assert base64.b64decode(first)[: codec.IV_SIZE] != base64.b64decode(second)[: codec.IV_SIZE]


def test_key_is_sha256_of_secret():
    assert len(codec.derive_key("short")) == 32
    assert codec.derive_key("a") != codec.derive_key("b")


def test_raw_ciphertext_after_separator_is_accepted():
    token = codec.encrypt("hello", "L1")
    decoded = base64.b64decode(token)
    iv = decoded[: codec.IV_SIZE]
    raw = base64.b64decode(decoded[codec.IV_SIZE + 2 :])
    raw_token = base64.b64encode(iv + b"::" + raw).decode()
    assert codec.decrypt(raw_token, "L1") == "hello"


def test_iv_containing_separator_still_decodes(monkeypatch):
    monkeypatch.setattr(codec.os, "urandom", lambda n: b"::" * (n // 2))
    token = codec.encrypt("hello", "L1")
    assert codec.decrypt(token, "L1") == "hello"


def test_wrong_key_fails_or_differs():
    token = codec.encrypt("hello", "L1")
    try:
        result = codec.decrypt(token, "L2")
    except DecryptionError:
        return
    assert result != "hello"


@pytest.mark.parametrize("position", ["iv", "ciphertext"])
def test_tampering_never_yields_original(position):
    token = codec.encrypt("hello world, this spans two blocks", "L1")
    iv, ciphertext = codec.split_token(token)
    for index in range(len(iv if position == "iv" else ciphertext)):
        if position == "iv":
            bad_iv = bytearray(iv)
            bad_iv[index] ^= 0x01
            forged = base64.b64encode(bytes(bad_iv) + b"::" + base64.b64encode(ciphertext)).decode()
        else:
            bad = bytearray(ciphertext)
            bad[index] ^= 0x01
            forged = base64.b64encode(iv + b"::" + base64.b64encode(bytes(bad))).decode()
        try:
            result = codec.decrypt_bytes(forged, "L1")
        except DecryptionError:
            continue
        assert result != b"hello world, this spans two blocks"


@pytest.mark.parametrize("token", ["not base64 at all!!", "", base64.b64encode(b"no-separator-here-at-all").decode()])
def test_malformed_tokens_raise_decode_error(token):
    with pytest.raises(DecodeError):
        codec.decrypt(token, "L1")


def test_missing_ciphertext_raises_decode_error():
    token = base64.b64encode(b"0" * codec.IV_SIZE + b"::").decode()
    with pytest.raises(DecodeError):
        codec.decrypt(token, "L1")


def test_truncated_ciphertext_raises_decryption_error():
    token = base64.b64encode(b"0" * codec.IV_SIZE + b"::" + base64.b64encode(b"short")).decode()
    with pytest.raises(DecryptionError):
        codec.decrypt(token, "L1")
