"""Memory collaborator queried once per step."""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from ..utils.logging import get_logger


_WORD_RE = re.compile(r"[a-z0-9]+")


class MemoryStore(Protocol):
    """Returns an opaque context snapshot relevant to a query."""

    async def get_relevant_context(self, query: str) -> Any:
        ...


class MemoryEntry(BaseModel):
    """A remembered piece of project context."""
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MemorySnapshot(BaseModel):
    """Entries relevant to a query, best match first."""
    query: str
    entries: List[MemoryEntry] = Field(default_factory=list)


def _tokens(text: str) -> set:
    return set(_WORD_RE.findall(text.lower()))


class InMemoryStore:
    """Process-local memory ranked by keyword overlap."""

    def __init__(self, limit: int = 10):
        """Initialize memory store.

        Args:
            limit: Maximum entries returned per query
        """
        self.limit = limit
        self.logger = get_logger("memory")
        self._entries: List[MemoryEntry] = []

    def remember(self, content: str, metadata: Optional[Dict[str, Any]] = None) -> MemoryEntry:
        """Store a new entry."""
        entry = MemoryEntry(content=content, metadata=metadata or {})
        self._entries.append(entry)
        return entry

    def clear(self):
        """Forget everything."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    async def get_relevant_context(self, query: str) -> MemorySnapshot:
        """Rank stored entries by shared words with ``query``."""
        query_tokens = _tokens(query)
        scored = []
        for position, entry in enumerate(self._entries):
            overlap = len(query_tokens & _tokens(entry.content))
            if overlap:
                # Newer entries win ties
                scored.append((overlap, position, entry))

        scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
        entries = [entry for _, _, entry in scored[:self.limit]]

        self.logger.debug(f"Memory query matched {len(entries)} of {len(self._entries)} entries")
        return MemorySnapshot(query=query, entries=entries)
