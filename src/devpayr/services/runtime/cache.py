"""Day-granularity cache of successful license checks."""
from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable

from devpayr.config import const

_log = logging.getLogger("devpayr.runtime.cache")


def cache_key(license: str) -> str:
    return const.CACHE_PREFIX + hashlib.sha256(license.encode("utf-8")).hexdigest()


@dataclass(slots=True)
class ValidationCache:
    """Marker files named after a hash of the license, holding ``YYYY-MM-DD``.

    An entry counts only when its date equals today; anything else (missing,
    stale, unreadable, garbage) is a miss.
    """

    directory: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    today: Callable[[], date] = date.today

    def path_for(self, license: str) -> Path:
        return Path(self.directory) / cache_key(license)

    def read(self, license: str) -> date | None:
        path = self.path_for(license)
        try:
            raw = path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            _log.debug("cache entry unreadable", extra={"path": str(path), "error": str(exc)})
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            return None

    def is_fresh(self, license: str) -> bool:
        return self.read(license) == self.today()

    def store(self, license: str) -> Path:
        path = self.path_for(license)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(self.today().isoformat())
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return path

    def clear(self, license: str) -> bool:
        try:
            self.path_for(license).unlink()
        except FileNotFoundError:
            return False
        return True


__all__ = ["ValidationCache", "cache_key"]
