# src/devpayr/config/const.py
from __future__ import annotations

# Hard defaults (changed by developers in code/build only)
BASE_URL: str = "https://api.devpayr.com/api/v1/"
UPGRADE_URL: str = "https://devpayr.com/upgrade"

CACHE_PREFIX: str = "devpayr_"
ENV_PREFIX: str = "DEVPAYR_"

LICENSE_HEADER: str = "X-License-Key"
API_KEY_HEADER: str = "X-Api-Key"

DEFAULT_TIMEOUT: float = 10.0
DEFAULT_INVALID_MESSAGE: str = "This copy is not licensed for production use."

INVALID_BEHAVIORS: tuple[str, ...] = ("log", "modal", "redirect", "silent")
