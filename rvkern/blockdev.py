"""A positioned byte stream over a VirtIO block device.

Each ``read`` or ``write`` call moves at most to the end of the current
block, as a single driver call would. ``read_full`` and ``write_full`` loop
until the whole request is done. One block is kept in a buffer, so reads
within the block last transferred do not reach the device again.
"""

from __future__ import annotations

import threading
from typing import Any, Union

from rvkern.blkqueue import VIOBLK_SECTOR_SIZE, BlockBackend, RequestType
from rvkern.errors import ErrorCode, KernelError

BytesLike = Union[bytes, bytearray, memoryview]


class BlockDevice:
    """An openable block device with a current position."""

    def __init__(
        self, storage: bytes | bytearray, block_size: int = VIOBLK_SECTOR_SIZE
    ) -> None:
        self.backend = BlockBackend(storage, block_size)
        self._block = bytearray(block_size)
        self._cached: int | None = None
        self._pos = 0
        self._opened = False
        self._lock = threading.Lock()

    @property
    def block_size(self) -> int:
        return self.backend.block_size

    @property
    def block_count(self) -> int:
        return len(self) // self.block_size

    @property
    def is_open(self) -> bool:
        return self._opened

    def open(self) -> BlockDevice:
        """Open the device; raises ``KernelError`` (EBUSY) if already open."""
        if self._opened:
            raise KernelError(ErrorCode.EBUSY, "block device is already open")
        self._opened = True
        return self

    def close(self) -> None:
        """Close the device."""
        self._require_open()
        self._opened = False

    def _require_open(self) -> None:
        if not self._opened:
            raise KernelError(ErrorCode.EBADFD, "block device is not open")

    def _fetch(self, block_no: int) -> None:
        self._cached = None
        self.backend.request(block_no, RequestType.IN, self._block)
        self._cached = block_no

    def read(self, n: int) -> bytes:
        """Read up to ``n`` bytes, stopping at the end of the current block.

        A read that would run past the end of the device returns nothing.
        """
        self._require_open()
        n = int(n)
        if n < 0:
            raise ValueError("read size must not be negative")
        with self._lock:
            if self._pos + n > len(self) or n == 0:
                return b""
            block_no, offset = divmod(self._pos, self.block_size)
            end = min(self.block_size, offset + n)
            if self._cached != block_no:
                self._fetch(block_no)
            data = bytes(self._block[offset:end])
            self._pos += len(data)
            return data

    def read_full(self, n: int) -> bytes:
        """Read until ``n`` bytes are gathered or a read returns nothing."""
        parts: list[bytes] = []
        remaining = int(n)
        while remaining > 0:
            chunk = self.read(remaining)
            if not chunk:
                break
            parts.append(chunk)
            remaining -= len(chunk)
        return b"".join(parts)

    def write(self, data: BytesLike) -> int:
        """Write up to the end of the current block and return the count written.

        A write that would run past the end of the device writes nothing.
        """
        self._require_open()
        view = memoryview(bytes(data))
        n = len(view)
        with self._lock:
            if self._pos + n > len(self) or n == 0:
                return 0
            block_no, offset = divmod(self._pos, self.block_size)
            end = min(self.block_size, offset + n)
            whole_block = offset == 0 and end == self.block_size
            if not whole_block and self._cached != block_no:
                self._fetch(block_no)
            count = end - offset
            self._block[offset:end] = view[:count]
            self._cached = block_no
            try:
                self.backend.request(block_no, RequestType.OUT, self._block)
            except Exception:
                self._cached = None
                raise
            self._pos += count
            return count

    def write_full(self, data: BytesLike) -> int:
        """Write until all of ``data`` is written or a write makes no progress."""
        view = memoryview(bytes(data))
        total = 0
        while total < len(view):
            written = self.write(view[total:])
            if written == 0:
                break
            total += written
        return total

    def seek(self, pos: int) -> int:
        """Set the position; it must lie inside the device."""
        self._require_open()
        pos = int(pos)
        if not 0 <= pos < len(self):
            raise KernelError(
                ErrorCode.EINVAL, f"position {pos} is outside the device"
            )
        self._pos = pos
        return pos

    def tell(self) -> int:
        return self._pos

    def __len__(self) -> int:
        return self.backend.capacity_sectors() * VIOBLK_SECTOR_SIZE

    def __enter__(self) -> BlockDevice:
        return self.open()

    def __exit__(self, *args: Any) -> None:
        if self._opened:
            self.close()