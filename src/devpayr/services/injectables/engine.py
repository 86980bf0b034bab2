"""Default injectable processor: decrypt a payload and merge it into a file."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from devpayr.errors import ConfigError, InjectableError, InjectableIOError, PathTraversalError
from devpayr.services.crypto import codec
from devpayr.services.crypto.signature import verify_injectable

from .models import Injectable, InjectMode

_log = logging.getLogger("devpayr.injectables.engine")

# mode a plain open() would give a new file
_umask = os.umask(0)
os.umask(_umask)
_FILE_MODE = 0o666 & ~_umask


def combine(existing: bytes, payload: bytes, mode: InjectMode) -> bytes:
    if mode is InjectMode.APPEND:
        return existing + payload
    if mode is InjectMode.PREPEND:
        return payload + existing
    return payload


@dataclass(slots=True)
class InjectionEngine:
    """Writes decrypted injectables under a base directory.

    ``strict`` requires every injectable to carry a ``target_path``; otherwise a
    missing path falls back to ``<slug>.txt``. Target paths resolving outside the
    base directory are rejected unless ``allow_outside_base`` is set.
    """

    strict: bool = False
    allow_outside_base: bool = False
    dir_mode: int = 0o777

    def handle(
        self,
        injectable: Injectable | Mapping[str, Any],
        secret: str,
        base_path: Path | str,
        verify_signature: bool = True,
    ) -> Path:
        item = self._coerce(injectable)
        if not secret:
            raise ConfigError("Injectable handler requires a secret key.", context={"slug": item.slug})

        verify_injectable(item.slug, item.encrypted_content, secret, item.signature, enabled=verify_signature)
        payload = codec.decrypt_bytes(item.encrypted_content, secret)

        full_path = self.resolve_path(item, base_path)
        self._ensure_parent(full_path, item.slug)

        if full_path.exists():
            try:
                existing = full_path.read_bytes()
            except OSError as exc:
                raise InjectableIOError("Unable to read existing injectable target", path=full_path, operation="read", slug=item.slug) from exc
            data = combine(existing, payload, item.mode)
        else:
            # first write is always the full payload
            data = payload

        self._write(full_path, data, item.slug)
        _log.info(
            "injectable applied",
            extra={"slug": item.slug, "path": str(full_path), "mode": item.mode.value, "bytes": len(data)},
        )
        return full_path

    # ------------------------------------------------------------------
    def _coerce(self, injectable: Injectable | Mapping[str, Any]) -> Injectable:
        if isinstance(injectable, Injectable):
            if self.strict and not injectable.target_path:
                raise InjectableError("Missing 'target_path' in injectable.", slug=injectable.slug, missing=["target_path"])
            return injectable
        return Injectable.from_mapping(injectable, strict=self.strict)

    def resolve_path(self, item: Injectable, base_path: Path | str) -> Path:
        base = Path(base_path).expanduser()
        relative = (item.target_path or "").replace("\\", "/").strip("/")
        if not relative:
            relative = f"{item.slug}.txt"
        full_path = base / relative
        if self.allow_outside_base:
            return full_path

        base_resolved = base.resolve()
        resolved = full_path.resolve()
        if base_resolved not in resolved.parents:
            raise PathTraversalError(path=resolved, base=base_resolved, slug=item.slug)
        return resolved

    def _ensure_parent(self, full_path: Path, slug: str) -> None:
        parent = full_path.parent
        if parent.is_dir():
            return
        try:
            parent.mkdir(mode=self.dir_mode, parents=True, exist_ok=True)
        except OSError as exc:
            # another process may have created it in the meantime
            if not parent.is_dir():
                raise InjectableIOError("Unable to create directory for injectable", path=parent, operation="mkdir", slug=slug) from exc

    def _write(self, full_path: Path, data: bytes, slug: str) -> None:
        # unique sibling so an unrelated "<name>.tmp" is never touched
        try:
            fd, tmp_name = tempfile.mkstemp(dir=full_path.parent, prefix=f".{full_path.name}.", suffix=".tmp")
        except OSError as exc:
            raise InjectableIOError("Failed to write injectable to path", path=full_path, operation="write", slug=slug) from exc
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            if full_path.exists():
                shutil.copymode(full_path, tmp)
            else:
                os.chmod(tmp, _FILE_MODE)
            os.replace(tmp, full_path)
        except OSError as exc:
            try:
                tmp.unlink()
            except FileNotFoundError:
                pass
            except OSError:
                _log.warning("failed to remove temp file", extra={"path": str(tmp)})
            raise InjectableIOError("Failed to write injectable to path", path=full_path, operation="write", slug=slug) from exc


__all__ = ["InjectionEngine", "combine"]
