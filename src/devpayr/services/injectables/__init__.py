from .engine import InjectionEngine
from .models import Injectable, InjectMode
from .registry import InjectableProcessor, ProcessorRegistry, process

__all__ = [
    "Injectable",
    "InjectMode",
    "InjectionEngine",
    "InjectableProcessor",
    "ProcessorRegistry",
    "process",
]
