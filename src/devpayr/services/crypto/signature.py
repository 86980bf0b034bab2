from __future__ import annotations

import hashlib
import hmac
import logging

from devpayr.errors import SignatureError

_log = logging.getLogger("devpayr.crypto.signature")


def _b(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def hash_content(content: str | bytes) -> str:
    return hashlib.sha256(_b(content)).hexdigest()


def verify_hash(content: str | bytes, expected: str) -> bool:
    return hmac.compare_digest(hash_content(content), str(expected).strip().lower())


def sign(content: str | bytes, secret: str | bytes) -> str:
    """HMAC-SHA256 hex digest over the exact transmitted ``content``."""

    return hmac.new(_b(secret), _b(content), hashlib.sha256).hexdigest()


def verify(content: str | bytes, secret: str | bytes, signature: str) -> bool:
    if not signature:
        return False
    expected = sign(content, secret)
    try:
        return hmac.compare_digest(expected, str(signature).strip().lower())
    except TypeError:
        # non-ASCII signature text
        return False


def verify_injectable(slug: str, content: str, secret: str, signature: str | None, *, enabled: bool) -> bool:
    """Check an injectable's signature when enabled and present.

    Returns ``True`` when the signature was checked, ``False`` when the check was
    skipped because verification is disabled or the injectable is unsigned.
    Raises :class:`SignatureError` on mismatch.
    """

    if not enabled or not signature:
        _log.debug(
            "signature check skipped",
            extra={"slug": slug, "reason": "disabled" if not enabled else "unsigned"},
        )
        return False
    if not verify(content, secret, signature):
        _log.warning("signature mismatch", extra={"slug": slug})
        raise SignatureError(slug)
    return True


__all__ = ["hash_content", "verify_hash", "sign", "verify", "verify_injectable"]
