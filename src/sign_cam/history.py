"""
History of recognized signs, newest first.
"""
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

DEFAULT_CAPACITY = 10


@dataclass(frozen=True)
class HistoryEntry:
    label: str
    timestamp: float

    @property
    def time_label(self) -> str:
        """Local wall-clock time of the entry, e.g. '14:03:27'."""
        return datetime.fromtimestamp(self.timestamp).strftime("%H:%M:%S")


class HistoryLedger:
    """
    Bounded, ordered record of recognized labels.

    A label is recorded only if it differs from the newest entry, so holding
    a sign produces one entry rather than one per classification. Once the
    capacity is reached the oldest entry is dropped.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        # Index 0 is the newest entry
        self._entries = deque(maxlen=capacity)

    def record(self, label: str, timestamp: Optional[float] = None) -> bool:
        """
        Record a label unless it repeats the newest entry.

        Returns:
            True if a new entry was added
        """
        if not label:
            return False
        if self._entries and self._entries[0].label == label:
            return False
        if timestamp is None:
            timestamp = time.time()
        self._entries.appendleft(HistoryEntry(label, timestamp))
        return True

    def list(self) -> List[HistoryEntry]:
        """Entries newest first."""
        return list(self._entries)

    def labels(self) -> List[str]:
        return [entry.label for entry in self._entries]

    @property
    def newest(self) -> Optional[HistoryEntry]:
        return self._entries[0] if self._entries else None

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
