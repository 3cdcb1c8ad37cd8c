"""
==============================================================================
History Log Module
==============================================================================

Bounded, newest-first log of recent sanitized reads.

==============================================================================
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Optional

from .models import HistoryEntry


DEFAULT_HISTORY_CAPACITY = 20


class HistoryLog:
    """
    Ring buffer of HistoryEntry items.

    Entries are inserted at the head; once capacity is reached the oldest
    entries drop off the tail.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self._entries: Deque[HistoryEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def append(
        self,
        text: str,
        format_tag: str = "",
        timestamp: Optional[datetime] = None
    ) -> HistoryEntry:
        """Insert a read at the head of the log."""
        entry = HistoryEntry(
            text=text,
            format_tag=format_tag,
            timestamp=timestamp or datetime.now(timezone.utc)
        )
        self._entries.appendleft(entry)
        return entry

    def entries(self) -> List[HistoryEntry]:
        """Snapshot of the log, newest first."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
