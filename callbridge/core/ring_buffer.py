"""Bounded ring buffer for outbound telephony payloads."""

from collections import deque
from typing import Iterator, Optional


class RingBuffer:
    """FIFO ring buffer that drops the oldest item when full.

    Owned by a single session and touched only from its own tasks, so no
    locking is done.
    """

    def __init__(self, capacity: int) -> None:
        """Initialize ring buffer.

        Args:
            capacity: Maximum number of items to buffer

        Raises:
            ValueError: If capacity is <= 0
        """
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._buffer: deque[str] = deque(maxlen=capacity)
        self._dropped = 0

    @property
    def capacity(self) -> int:
        """Maximum number of items."""
        return self._capacity

    @property
    def dropped(self) -> int:
        """Number of items dropped on overflow so far."""
        return self._dropped

    def __len__(self) -> int:
        return len(self._buffer)

    def is_full(self) -> bool:
        """Check if buffer is full."""
        return len(self._buffer) == self._capacity

    def push(self, item: str) -> bool:
        """Push an item to the buffer.

        Args:
            item: Item to append

        Returns:
            True if stored without loss, False if the oldest item was dropped
        """
        overflow = self.is_full()
        if overflow:
            self._dropped += 1
        # deque(maxlen) discards from the left
        self._buffer.append(item)
        return not overflow

    def peek(self) -> Optional[str]:
        """Peek at the oldest item without removing it."""
        if self._buffer:
            return self._buffer[0]
        return None

    def drain(self) -> Iterator[str]:
        """Remove and yield items in arrival order."""
        while self._buffer:
            yield self._buffer.popleft()

    def clear(self) -> int:
        """Clear all items.

        Returns:
            Number of items cleared
        """
        count = len(self._buffer)
        self._buffer.clear()
        return count
