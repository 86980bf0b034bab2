"""Injectable records delivered by the DevPayr API."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from devpayr.errors import InjectableError

__all__ = ["InjectMode", "Injectable"]


class _StrEnum(str, Enum):
    """Simple ``str``-backed enum compatible with Python 3.10."""

    def __str__(self) -> str:  # pragma: no cover - convenience for logging only
        return str(self.value)


class InjectMode(_StrEnum):
    APPEND = "append"
    PREPEND = "prepend"
    REPLACE = "replace"
    # reserved by the API, applied like REPLACE
    INJECT = "inject"

    @classmethod
    def parse(cls, value: Any) -> "InjectMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.REPLACE


@dataclass(slots=True, frozen=True)
class Injectable:
    slug: str
    encrypted_content: str
    target_path: str | None = None
    signature: str | None = None
    mode: InjectMode = InjectMode.REPLACE

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], *, strict: bool = False) -> "Injectable":
        if not isinstance(raw, Mapping):
            raise InjectableError("Injectable must be a mapping")
        slug = raw.get("slug")
        content = raw.get("encrypted_content") or raw.get("content")
        target = raw.get("target_path")

        missing = [name for name, value in (("slug", slug), ("content", content)) if not value]
        if strict and not target:
            missing.append("target_path")
        if missing:
            raise InjectableError(
                f"Missing {', '.join(repr(m) for m in missing)} in injectable.",
                slug=str(slug) if slug else None,
                missing=missing,
            )

        signature = raw.get("signature")
        return cls(
            slug=str(slug),
            encrypted_content=str(content),
            target_path=str(target) if target else None,
            signature=str(signature) if signature else None,
            mode=InjectMode.parse(raw.get("mode")),
        )
