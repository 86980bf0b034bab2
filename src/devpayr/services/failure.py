"""Maps a failed validation to the behavior configured by the caller.

Nothing here prints, redirects or exits: the outcome describes what the host
application should do.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from pathlib import Path

from devpayr.config import const
from devpayr.config.settings import DevPayrConfig

_log = logging.getLogger("devpayr.failure")

DEFAULT_VIEW = """<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Unlicensed Software</title></head>
<body>
<h1>Unlicensed Software</h1>
<p>{{message}}</p>
</body>
</html>
"""


@dataclass(slots=True, frozen=True)
class FailureOutcome:
    behavior: str
    message: str
    error: BaseException | None = None
    html: str | None = None
    redirect_url: str | None = None

    @property
    def handled_silently(self) -> bool:
        return self.behavior in ("log", "silent")


def render_view(message: str, view: Path | None = None) -> str:
    template = DEFAULT_VIEW
    if view is not None:
        try:
            template = Path(view).read_text(encoding="utf-8")
        except OSError as exc:
            _log.warning("custom invalid view unreadable", extra={"path": str(view), "error": str(exc)})
    return template.replace("{{message}}", html.escape(message))


def handle_failure(error: BaseException, config: DevPayrConfig) -> FailureOutcome:
    behavior = config.invalid_behavior
    message = config.custom_invalid_message or str(error)

    if behavior == "redirect":
        target = config.redirect_url or const.UPGRADE_URL
        _log.info("license invalid, redirect requested", extra={"redirect_url": target})
        return FailureOutcome(behavior, message, error=error, redirect_url=target)
    if behavior == "log":
        _log.error("[DevPayr] Invalid license: %s", message, extra={"error": str(error)})
        return FailureOutcome(behavior, message, error=error)
    if behavior == "silent":
        return FailureOutcome(behavior, message, error=error)
    message = message or const.DEFAULT_INVALID_MESSAGE
    return FailureOutcome("modal", message, error=error, html=render_view(message, config.custom_invalid_view))


__all__ = ["FailureOutcome", "handle_failure", "render_view", "DEFAULT_VIEW"]
