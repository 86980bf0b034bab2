"""Symmetric encryption and HMAC signatures for injectable payloads."""
from . import codec, signature

__all__ = ["codec", "signature"]
