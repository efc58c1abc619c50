"""Utility modules."""

from .config import Config
from .logging import setup_logging, get_logger
from .parsing import extract_json_object
from .scheduling import AsyncioScheduler, Scheduler, TimerHandle

__all__ = [
    "Config",
    "setup_logging",
    "get_logger",
    "extract_json_object",
    "AsyncioScheduler",
    "Scheduler",
    "TimerHandle",
]
