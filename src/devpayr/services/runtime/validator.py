"""Runtime license validation and injectable dispatch."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from devpayr.config.settings import DevPayrConfig
from devpayr.errors import AuthError, ConfigError
from devpayr.services.injectables.registry import ProcessorRegistry, process
from devpayr.services.injectables.engine import InjectionEngine
from devpayr.services.payments import PaymentService

from .cache import ValidationCache

_log = logging.getLogger("devpayr.runtime.validator")


@dataclass(slots=True)
class ValidationResult:
    cached: bool
    message: str
    response: dict[str, Any] = field(default_factory=dict)
    written: list[Path | str] = field(default_factory=list)

    @property
    def injectables(self) -> list[Any]:
        return _injectables_of(self.response)


class RuntimeValidator:
    """Checks that the configured license is paid for, then applies injectables.

    Flow: fresh same-day cache entry (only when ``recheck`` is off) short-circuits;
    otherwise the payment check runs, a paid answer refreshes the cache and,
    when enabled, dispatches the injectables in order. Anything else raises.
    """

    def __init__(
        self,
        config: DevPayrConfig,
        *,
        payments: PaymentService | None = None,
        cache: ValidationCache | None = None,
        registry: ProcessorRegistry | None = None,
    ) -> None:
        if not config.license:
            raise ConfigError("License key is required for runtime validation.")
        self.config = config
        self.license: str = config.license
        self.payments = payments or PaymentService(config)
        self.cache = cache or (ValidationCache(directory=config.cache_dir) if config.cache_dir else ValidationCache())
        self.registry = registry or ProcessorRegistry(InjectionEngine(strict=config.strict_injectables))

    def validate(self) -> ValidationResult:
        if not self.config.recheck and self.cache.is_fresh(self.license):
            _log.info("license validated from cache")
            return ValidationResult(cached=True, message="License validated from cache")

        response = self._check_remote()
        try:
            self.cache.store(self.license)
        except OSError as exc:
            _log.warning("failed to write validation cache", extra={"error": str(exc)})

        if self.config.injectables_processor is not None:
            self.registry.set_processor(self.config.injectables_processor)

        written: list[Path | str] = []
        injectables = _injectables_of(response)
        if self.config.injectables and self.config.handle_injectables and injectables:
            written = self.handle_injectables(injectables)

        return ValidationResult(cached=False, message="License validated", response=response, written=written)

    def handle_injectables(self, injectables: list[Any]) -> list[Path | str]:
        return process(
            injectables,
            secret=self.license,
            base_path=self.config.injectables_base_path(),
            verify=self.config.injectables_verify,
            processor=self.registry.resolve_active(),
            strict=self.config.strict_injectables,
        )

    def _check_remote(self) -> dict[str, Any]:
        # transport, timeout and HTTP errors surface as AuthError from the client
        response = self.payments.check_with_license_key()
        if not isinstance(response, Mapping):
            raise AuthError("Invalid payment check response: expected a JSON object")
        data = response.get("data")
        if not (isinstance(data, Mapping) and data.get("has_paid")):
            _log.info("project reported unpaid")
            raise AuthError("Project is unpaid or unauthorized.", context={"response": dict(response)})
        return dict(response)


def _injectables_of(response: Mapping[str, Any]) -> list[Any]:
    data = response.get("data")
    items = data.get("injectables") if isinstance(data, Mapping) else None
    return list(items) if isinstance(items, list) else []


__all__ = ["RuntimeValidator", "ValidationResult"]
