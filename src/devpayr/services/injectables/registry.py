"""Injectable processor protocol, registry and batch dispatch."""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from devpayr.errors import ConfigError, ProcessorRegistrationError
from devpayr.services.crypto.signature import verify_injectable

from .engine import InjectionEngine
from .models import Injectable

_log = logging.getLogger("devpayr.injectables")


@runtime_checkable
class InjectableProcessor(Protocol):
    def handle(
        self,
        injectable: Injectable,
        secret: str,
        base_path: Path,
        verify_signature: bool = True,
    ) -> Path | str: ...


class ProcessorRegistry:
    """Holds the processor used for one validation pipeline.

    Each pipeline owns its registry, so different pipelines may run with
    different overrides side by side.
    """

    def __init__(self, default: InjectableProcessor | None = None) -> None:
        self._default: InjectableProcessor = default or InjectionEngine()
        self._override: InjectableProcessor | None = None

    @property
    def has_override(self) -> bool:
        return self._override is not None

    def set_processor(self, candidate: Any) -> InjectableProcessor:
        processor = self._instantiate(candidate)
        self._override = processor
        _log.debug("injectable processor registered", extra={"processor": type(processor).__name__})
        return processor

    def reset(self) -> None:
        self._override = None

    def resolve_active(self) -> InjectableProcessor:
        return self._override if self._override is not None else self._default

    @staticmethod
    def _instantiate(candidate: Any) -> InjectableProcessor:
        if candidate is None:
            raise ProcessorRegistrationError("Custom injectable processor must not be None.")
        if inspect.isclass(candidate):
            if not callable(getattr(candidate, "handle", None)):
                raise ProcessorRegistrationError(
                    f"Custom injectable processor {candidate.__name__} must implement handle()."
                )
            try:
                candidate = candidate()
            except TypeError as exc:
                raise ProcessorRegistrationError(
                    f"Custom injectable processor {candidate.__name__} must be constructible without arguments."
                ) from exc
        if not isinstance(candidate, InjectableProcessor) or not callable(candidate.handle):
            raise ProcessorRegistrationError("Custom injectable processor must implement handle().")
        return candidate


def process(
    injectables: Iterable[Injectable | Mapping[str, Any]],
    *,
    secret: str,
    base_path: Path | str,
    verify: bool = True,
    processor: InjectableProcessor | None = None,
    strict: bool = False,
) -> list[Path | str]:
    """Apply ``injectables`` in order, stopping at the first failure.

    Every record is parsed and (when ``verify`` is set and it is signed) checked
    against its signature before it reaches ``processor``.
    """

    if not secret:
        raise ConfigError("Injectable handler requires a secret key.")
    active = processor or InjectionEngine(strict=strict)
    base = Path(base_path)
    written: list[Path | str] = []
    for raw in injectables:
        item = raw if isinstance(raw, Injectable) else Injectable.from_mapping(raw, strict=strict)
        verify_injectable(item.slug, item.encrypted_content, secret, item.signature, enabled=verify)
        written.append(active.handle(item, secret, base, verify))
    _log.info("injectables processed", extra={"count": len(written), "processor": type(active).__name__})
    return written


__all__ = ["InjectableProcessor", "ProcessorRegistry", "process"]
