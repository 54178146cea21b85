"""Fixed-size first-in first-out ring buffer used by the serial driver."""

from __future__ import annotations

from typing import Any

SERIAL_RBUFSZ = 64


class RingBuffer:
    """A bounded FIFO queue of characters."""

    def __init__(self, size: int = SERIAL_RBUFSZ) -> None:
        if size <= 0:
            raise ValueError("ring buffer size must be positive")
        self._data: list[Any] = [None] * size
        self._size = size
        self._head = 0
        self._count = 0

    def clear(self) -> None:
        """Drop everything in the buffer."""
        self._head = 0
        self._count = 0

    def is_empty(self) -> bool:
        return self._count == 0

    def is_full(self) -> bool:
        return self._count == self._size

    def put(self, c: Any) -> None:
        """Append an element at the tail."""
        if self.is_full():
            raise OverflowError("ring buffer is full")
        self._data[(self._head + self._count) % self._size] = c
        self._count += 1

    def get(self) -> Any:
        """Remove and return the element at the head."""
        if self.is_empty():
            raise IndexError("ring buffer is empty")
        c = self._data[self._head]
        self._head = (self._head + 1) % self._size
        self._count -= 1
        return c

    def __len__(self) -> int:
        return self._count