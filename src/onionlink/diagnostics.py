"""
Diagnostics buffer.

Keeps a bounded, thread-safe list of diagnostic messages (registry
inconsistencies, events for unknown connections, undecodable payloads)
so reporting code can show them without access to the process log.
"""

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


DEFAULT_CAPACITY = 1000


@dataclass(frozen=True)
class LogItem:
    """One diagnostic message."""
    timestamp: datetime
    content: str

    def to_text(self, show_timestamp: bool = True) -> str:
        if not show_timestamp:
            return self.content
        return f"{self.timestamp.strftime('%Y-%m-%d %H:%M:%S')} {self.content}"


class DiagnosticsLog:
    """
    Bounded list of diagnostic messages.

    When full, the oldest entry is dropped. With reverse_order the newest
    entry comes first.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, reverse_order: bool = False):
        if capacity < 1:
            raise ValueError("The diagnostics capacity must be >= 1")
        self._items: deque[LogItem] = deque(maxlen=capacity)
        self._reverse_order = reverse_order
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._items.maxlen

    @property
    def reverse_order(self) -> bool:
        return self._reverse_order

    def add(self, message: str, timestamp: Optional[datetime] = None) -> LogItem:
        """Append a message, dropping the oldest one when full."""
        item = LogItem(timestamp=timestamp or datetime.now(), content=message.strip())
        with self._lock:
            self._items.append(item)
        return item

    def items(self) -> list[LogItem]:
        """Copy of the current entries in display order."""
        with self._lock:
            items = list(self._items)
        if self._reverse_order:
            items.reverse()
        return items

    def set_reverse_order(self, reverse: bool) -> None:
        self._reverse_order = reverse

    def set_capacity(self, capacity: int) -> None:
        """
        Change the capacity, keeping the newest entries.

        Raises:
            ValueError: If capacity is below 1
        """
        if capacity < 1:
            raise ValueError("The diagnostics capacity must be >= 1")
        with self._lock:
            self._items = deque(self._items, maxlen=capacity)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def to_text(self, show_timestamp: bool = True) -> str:
        return "".join(f"{item.to_text(show_timestamp)}\n" for item in self.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
