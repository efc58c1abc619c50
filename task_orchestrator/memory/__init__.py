"""Memory collaborator."""

from .store import InMemoryStore, MemoryEntry, MemorySnapshot, MemoryStore

__all__ = [
    "InMemoryStore",
    "MemoryEntry",
    "MemorySnapshot",
    "MemoryStore",
]
