"""AES-256-CBC codec for injectable payloads.

Tokens are ``base64(iv || "::" || base64(ciphertext))``, the layout produced by
the DevPayr server (OpenSSL with default options). The key is the SHA-256
digest of the shared secret, never the secret itself.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from devpayr.errors import DecodeError, DecryptionError

SEPARATOR = b"::"
IV_SIZE = algorithms.AES.block_size // 8  # 16 bytes
_BLOCK_BITS = algorithms.AES.block_size


def derive_key(secret: str | bytes) -> bytes:
    raw = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
    return hashlib.sha256(raw).digest()


def _cipher(key: bytes, iv: bytes) -> Cipher:
    return Cipher(algorithms.AES(key), modes.CBC(iv))


def encrypt_bytes(plaintext: bytes, secret: str | bytes) -> str:
    iv = os.urandom(IV_SIZE)
    padder = padding.PKCS7(_BLOCK_BITS).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = _cipher(derive_key(secret), iv).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(iv + SEPARATOR + base64.b64encode(ciphertext)).decode("ascii")


def encrypt(plaintext: str, secret: str | bytes) -> str:
    """Encrypt ``plaintext`` into a transport token."""

    return encrypt_bytes(plaintext.encode("utf-8"), secret)


def split_token(token: str | bytes) -> tuple[bytes, bytes]:
    """Return ``(iv, ciphertext)`` from a token, raising :class:`DecodeError` on bad layout."""

    try:
        decoded = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError, TypeError) as exc:
        raise DecodeError("Failed to base64-decode encrypted string.") from exc

    # the IV is random bytes and may itself contain "::", so split at its fixed size
    iv, sep, body = decoded[:IV_SIZE], decoded[IV_SIZE : IV_SIZE + len(SEPARATOR)], decoded[IV_SIZE + len(SEPARATOR) :]
    if len(iv) != IV_SIZE or sep != SEPARATOR or not body:
        raise DecodeError("Invalid encrypted format, expected 'iv::cipherText'.")

    try:
        ciphertext = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError):
        # raw ciphertext after the separator
        ciphertext = body
    return iv, ciphertext


def decrypt_bytes(token: str | bytes, secret: str | bytes) -> bytes:
    iv, ciphertext = split_token(token)
    if not ciphertext or len(ciphertext) % IV_SIZE:
        raise DecryptionError("Decryption failed. Possibly incorrect key or corrupt data.")
    try:
        decryptor = _cipher(derive_key(secret), iv).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise DecryptionError("Decryption failed. Possibly incorrect key or corrupt data.") from exc


def decrypt(token: str | bytes, secret: str | bytes) -> str:
    """Decrypt a token produced by :func:`encrypt`; all-or-nothing."""

    data = decrypt_bytes(token, secret)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("Decrypted payload is not valid UTF-8 text.") from exc


__all__ = ["derive_key", "encrypt", "encrypt_bytes", "decrypt", "decrypt_bytes", "split_token", "IV_SIZE", "SEPARATOR"]
