from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from devpayr.config import const
from devpayr.errors import ConfigError

# camelCase keys accepted for compatibility with the other DevPayr SDKs
_ALIASES: dict[str, str] = {
    "baseUrl": "base_url",
    "apiKey": "api_key",
    "injectablesVerify": "injectables_verify",
    "injectablesPath": "injectables_path",
    "handleInjectables": "handle_injectables",
    "injectablesProcessor": "injectables_processor",
    "strictInjectables": "strict_injectables",
    "invalidBehavior": "invalid_behavior",
    "redirectUrl": "redirect_url",
    "customInvalidView": "custom_invalid_view",
    "customInvalidMessage": "custom_invalid_message",
    "onReady": "on_ready",
    "cacheDir": "cache_dir",
}

# null for these means "use the default"; for the rest it clears the value
_NULL_KEEPS_DEFAULT = {
    "base_url",
    "timeout",
    "invalid_behavior",
    "recheck",
    "injectables",
    "injectables_verify",
    "handle_injectables",
    "strict_injectables",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ConfigError(f"invalid boolean value: {value!r}")
    return bool(value)


@dataclass(slots=True)
class DevPayrConfig:
    """Client configuration merged over the SDK defaults."""

    license: str | None = None
    api_key: str | None = None
    base_url: str = const.BASE_URL
    recheck: bool = True
    injectables: bool = True
    injectables_verify: bool = True
    injectables_path: Path | None = None
    handle_injectables: bool = False
    # instance or class exposing ``handle(injectable, secret, base_path, verify_signature)``
    injectables_processor: Any | None = None
    strict_injectables: bool = False
    invalid_behavior: str = "modal"
    redirect_url: str | None = None
    timeout: float = const.DEFAULT_TIMEOUT
    custom_invalid_view: Path | None = None
    custom_invalid_message: str | None = None
    on_ready: Callable[[Any], None] | None = None
    cache_dir: Path | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.license and not self.api_key:
            raise ConfigError('Either "license" or "api_key" must be provided in configuration.')
        if not self.base_url or not str(self.base_url).strip():
            raise ConfigError("Missing required config field: base_url")
        self.base_url = str(self.base_url).rstrip("/") + "/"
        try:
            self.timeout = float(self.timeout)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"timeout must be a number of seconds, got {self.timeout!r}") from exc
        if self.timeout <= 0:
            raise ConfigError("timeout must be a positive number of seconds")
        if self.invalid_behavior not in const.INVALID_BEHAVIORS:
            raise ConfigError(
                f"invalid_behavior must be one of {', '.join(const.INVALID_BEHAVIORS)}",
                context={"invalid_behavior": self.invalid_behavior},
            )
        for name in ("injectables_path", "custom_invalid_view", "cache_dir"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                setattr(self, name, Path(value).expanduser())

    # ---------- constructors ------------------------------------------------
    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DevPayrConfig":
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for raw_key, value in data.items():
            key = _ALIASES.get(str(raw_key), str(raw_key))
            if key in known and key != "extra":
                values[key] = value
            else:
                extra[str(raw_key)] = value
        for name in ("recheck", "injectables", "injectables_verify", "handle_injectables", "strict_injectables"):
            if name in values and values[name] is not None:
                values[name] = _as_bool(values[name])
        values = {k: v for k, v in values.items() if v is not None or k not in _NULL_KEEPS_DEFAULT}
        return cls(**values, extra=extra)

    @classmethod
    def from_yaml(cls, path: Path | str, **overrides: Any) -> "DevPayrConfig":
        p = Path(path).expanduser()
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"failed to load config file {p}: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ConfigError(f"config file {p} must contain a mapping")
        section = data.get("devpayr", data)
        if not isinstance(section, Mapping):
            raise ConfigError(f"config file {p}: 'devpayr' section must be a mapping")
        merged = dict(section)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_mapping(merged)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> "DevPayrConfig":
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        known = {f.name for f in fields(cls)} - {"extra", "on_ready", "injectables_processor"}
        for name in known:
            raw = env.get(f"{const.ENV_PREFIX}{name.upper()}")
            if raw is not None:
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_mapping(values)

    # ---------- helpers -----------------------------------------------------
    def is_license_mode(self) -> bool:
        return bool(self.license)

    def is_api_key_mode(self) -> bool:
        return bool(self.api_key)

    def auth_credential(self) -> str:
        return str(self.license or self.api_key)

    def injectables_base_path(self) -> Path:
        return self.injectables_path or Path(tempfile.gettempdir())


__all__ = ["DevPayrConfig"]
