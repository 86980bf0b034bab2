"""DevPayr license client: runtime validation and encrypted injectable delivery."""
from .bootstrap import BootstrapResult, DevPayr, bootstrap
from .config.settings import DevPayrConfig
from .errors import (
    ApiResponseError,
    AuthError,
    ConfigError,
    DecodeError,
    DecryptionError,
    DevPayrError,
    InjectableError,
    InjectableIOError,
    PathTraversalError,
    ProcessorRegistrationError,
    SignatureError,
    UnauthorizedError,
)
from .services.injectables import Injectable, InjectableProcessor, InjectionEngine, InjectMode, ProcessorRegistry
from .services.runtime.cache import ValidationCache
from .services.runtime.validator import RuntimeValidator, ValidationResult

__version__ = "0.1.0"

__all__ = [
    "BootstrapResult",
    "DevPayr",
    "bootstrap",
    "DevPayrConfig",
    "DevPayrError",
    "ConfigError",
    "AuthError",
    "ApiResponseError",
    "UnauthorizedError",
    "DecodeError",
    "DecryptionError",
    "SignatureError",
    "InjectableError",
    "InjectableIOError",
    "PathTraversalError",
    "ProcessorRegistrationError",
    "Injectable",
    "InjectMode",
    "InjectableProcessor",
    "InjectionEngine",
    "ProcessorRegistry",
    "ValidationCache",
    "RuntimeValidator",
    "ValidationResult",
]
