"""Entry point of the client: validate at startup and expose the services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from devpayr.config.settings import DevPayrConfig
from devpayr.errors import DevPayrError
from devpayr.services.failure import FailureOutcome, handle_failure
from devpayr.services.http.client import DevPayrHttpClient
from devpayr.services.injectables.registry import ProcessorRegistry
from devpayr.services.payments import PaymentService
from devpayr.services.runtime.cache import ValidationCache
from devpayr.services.runtime.validator import RuntimeValidator, ValidationResult

_log = logging.getLogger("devpayr.bootstrap")


@dataclass(slots=True)
class BootstrapResult:
    ok: bool
    result: ValidationResult | None = None
    failure: FailureOutcome | None = None


class DevPayr:
    """Holds one configuration and the services built from it."""

    def __init__(
        self,
        config: DevPayrConfig | Mapping[str, Any],
        *,
        http: DevPayrHttpClient | None = None,
        cache: ValidationCache | None = None,
        registry: ProcessorRegistry | None = None,
    ) -> None:
        self.config = config if isinstance(config, DevPayrConfig) else DevPayrConfig.from_mapping(config)
        self.http = http or DevPayrHttpClient.from_config(self.config)
        self.cache = cache
        self.registry = registry

    def payments(self) -> PaymentService:
        return PaymentService(self.config, http=self.http)

    def validator(self) -> RuntimeValidator:
        return RuntimeValidator(self.config, payments=self.payments(), cache=self.cache, registry=self.registry)

    def bootstrap(self) -> BootstrapResult:
        """Validate the license (license mode only) and run ``on_ready``.

        Errors are mapped through :func:`handle_failure`; unexpected exceptions
        are mapped as well, prefixed like the other DevPayr SDKs do.
        """

        result: ValidationResult | None = None
        try:
            if self.config.is_license_mode():
                result = self.validator().validate()
            if callable(self.config.on_ready):
                self.config.on_ready(result)
        except DevPayrError as exc:
            _log.debug("bootstrap failed", extra={"error_type": type(exc).__name__})
            return BootstrapResult(ok=False, result=result, failure=handle_failure(exc, self.config))
        except Exception as exc:
            _log.exception("unexpected bootstrap error")
            wrapped = DevPayrError(f"Unexpected error: {exc}")
            wrapped.__cause__ = exc
            return BootstrapResult(ok=False, result=result, failure=handle_failure(wrapped, self.config))
        return BootstrapResult(ok=True, result=result)


def bootstrap(config: DevPayrConfig | Mapping[str, Any], **kw: Any) -> BootstrapResult:
    return DevPayr(config, **kw).bootstrap()


__all__ = ["DevPayr", "BootstrapResult", "bootstrap"]
