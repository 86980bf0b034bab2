"""Payment status checks against the DevPayr API."""

from __future__ import annotations

from typing import Any, Mapping

from devpayr.config.settings import DevPayrConfig
from devpayr.services.http.client import DevPayrHttpClient


class PaymentService:
    """Verifies whether a project has an active payment attached."""

    def __init__(self, config: DevPayrConfig, *, http: DevPayrHttpClient | None = None) -> None:
        self.config = config
        self.http = http or DevPayrHttpClient.from_config(config)

    def check_with_api_key(self, project_id: str | int, params: Mapping[str, Any] | None = None) -> Any:
        return self.http.get(f"project/{project_id}/has-paid", params)

    def check_with_license_key(self, params: Mapping[str, Any] | None = None) -> Any:
        """Check payment status using the license key; the API resolves the bound project."""

        return self.http.post("project/has-paid", params)


__all__ = ["PaymentService"]
