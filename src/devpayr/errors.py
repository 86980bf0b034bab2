"""Error classes raised by the DevPayr client."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping


class DevPayrError(RuntimeError):
    """Base error for every failure raised by the client."""

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context: dict[str, Any] = dict(context or {})


class ConfigError(DevPayrError):
    """Raised when a credential, base URL or secret is missing."""


class AuthError(DevPayrError):
    """Raised when the remote service reports the project as unpaid or unauthorized."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.status_code = status_code


class ApiResponseError(AuthError):
    """Raised when the DevPayr API answers with an error status."""

    def __init__(self, message: str, *, status_code: int, payload: Any | None = None) -> None:
        super().__init__(message, status_code=status_code, context={"payload": payload})
        self.payload = payload


class UnauthorizedError(ApiResponseError):
    """Raised when the license or API key is not allowed to access a resource."""


class DecodeError(DevPayrError):
    """Raised when an encrypted token is not valid base64 or lacks the ``iv::cipher`` layout."""


class DecryptionError(DevPayrError):
    """Raised when the cipher rejects a token (wrong key, corrupt data, bad padding)."""


class SignatureError(DevPayrError):
    """Raised when an injectable's HMAC signature does not match its content."""

    def __init__(self, slug: str) -> None:
        super().__init__(f"Signature verification failed for injectable: {slug}", context={"slug": slug})
        self.slug = slug


class InjectableError(DevPayrError):
    """Raised when an injectable record is missing required fields."""

    def __init__(self, message: str, *, slug: str | None = None, missing: Iterable[str] = ()) -> None:
        self.slug = slug
        self.missing = list(missing)
        super().__init__(message, context={"slug": slug, "missing": self.missing})


class InjectableIOError(DevPayrError):
    """Raised when a directory or file operation fails while applying an injectable."""

    def __init__(self, message: str, *, path: Path | str, operation: str, slug: str | None = None) -> None:
        self.path = Path(path)
        self.operation = operation
        self.slug = slug
        super().__init__(
            f"{message}: {self.path}",
            context={"path": str(self.path), "operation": operation, "slug": slug},
        )


class PathTraversalError(InjectableIOError):
    """Raised when an injectable's target path resolves outside its base directory."""

    def __init__(self, *, path: Path | str, base: Path | str, slug: str | None = None) -> None:
        self.base = Path(base)
        super().__init__(f"Injectable target escapes base directory {self.base}", path=path, operation="resolve", slug=slug)


class ProcessorRegistrationError(DevPayrError):
    """Raised when a custom injectable processor does not provide ``handle``."""


__all__ = [
    "DevPayrError",
    "ConfigError",
    "AuthError",
    "ApiResponseError",
    "UnauthorizedError",
    "DecodeError",
    "DecryptionError",
    "SignatureError",
    "InjectableError",
    "InjectableIOError",
    "PathTraversalError",
    "ProcessorRegistrationError",
]
