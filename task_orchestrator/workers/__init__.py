"""Worker modules for executing plan steps."""

from .base import BaseWorker
from .chat_worker import WORKER_PROFILES, ChatWorker, create_default_workers

__all__ = [
    "BaseWorker",
    "ChatWorker",
    "WORKER_PROFILES",
    "create_default_workers",
]
