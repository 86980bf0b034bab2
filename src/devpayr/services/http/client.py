# src/devpayr/services/http/client.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, MutableMapping

import httpx

from devpayr.config import const
from devpayr.config.settings import DevPayrConfig
from devpayr.errors import ApiResponseError, AuthError, UnauthorizedError

_log = logging.getLogger("devpayr.http")


def auth_headers(config: DevPayrConfig) -> dict[str, str]:
    """License mode wins over API-key mode when both are configured."""

    if config.is_license_mode():
        return {const.LICENSE_HEADER: str(config.license)}
    if config.is_api_key_mode():
        return {const.API_KEY_HEADER: str(config.api_key)}
    return {}


@dataclass(slots=True)
class DevPayrHttpClient:
    """HTTP client for the DevPayr API."""

    base_url: str = const.BASE_URL
    timeout: float = const.DEFAULT_TIMEOUT
    # default headers applied to every request (can be overridden/extended)
    default_headers: dict[str, str] = field(default_factory=dict)
    # custom transport (tests use httpx.MockTransport)
    transport: httpx.BaseTransport | None = None

    @classmethod
    def from_config(
        cls,
        config: DevPayrConfig,
        *,
        extra_headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> "DevPayrHttpClient":
        headers: dict[str, str] = {"Accept": "application/json"}
        headers.update(auth_headers(config))
        if extra_headers:
            headers.update({str(k): str(v) for k, v in extra_headers.items()})
        return cls(base_url=config.base_url, timeout=config.timeout, default_headers=headers, transport=transport)

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Mapping[str, Any] | None = None, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("POST", path, json=json or {}, params=params)

    def delete(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("DELETE", path, params=params)

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        merged_headers: MutableMapping[str, str] = dict(self.default_headers)
        if headers:
            merged_headers.update({str(k): str(v) for k, v in headers.items()})
        # relative to base_url, which always ends with "/"
        path = path.lstrip("/")
        clean_params = {k: v for k, v in (params or {}).items() if v is not None} or None

        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=timeout or self.timeout,
                transport=self.transport,
            ) as client:
                response = client.request(method, path, params=clean_params, json=json, headers=merged_headers)
        except httpx.TimeoutException as exc:
            _log.warning("request timed out", extra={"method": method, "path": path})
            raise AuthError(f"{method} {path} timed out", status_code=0) from exc
        except httpx.RequestError as exc:
            _log.warning("request failed", extra={"method": method, "path": path, "error": str(exc)})
            raise AuthError(f"{method} {path} failed: {exc}", status_code=0) from exc

        content: Any | None = None
        if response.content:
            try:
                content = response.json()
            except ValueError:
                content = response.text

        if response.status_code >= 400:
            message = f"HTTP {response.status_code}"
            if isinstance(content, Mapping):
                detail = content.get("message") or content.get("error") or content.get("detail")
                if isinstance(detail, str):
                    message = detail
            elif isinstance(content, str) and content:
                message = content
            _log.info("api error response", extra={"method": method, "path": path, "status": response.status_code})
            if response.status_code in (401, 403):
                raise UnauthorizedError(message, status_code=response.status_code, payload=content)
            raise ApiResponseError(message, status_code=response.status_code, payload=content)

        return content if content is not None else {}


__all__ = ["DevPayrHttpClient", "auth_headers"]
