"""Block requests of a VirtIO block device and a device model that serves them.

Every request is a header (type and sector), a data buffer of one block, and
a status byte written by the device. Sectors are always 512 bytes; blocks
are a multiple of that. A request is retried a bounded number of times
before it is reported as failed.
"""

from __future__ import annotations

import enum
import struct
from collections import deque
from dataclasses import dataclass
from typing import ClassVar, Union

from rvkern.errors import ErrorCode, KernelError

VIOBLK_SECTOR_SIZE = 512
VIOBLK_ATTEMPT_MAX = 10

_HEADER = struct.Struct("<IIQ")

Buffer = Union[bytearray, memoryview]


class RequestType(enum.IntEnum):
    """Direction of a block request."""

    IN = 0
    OUT = 1


class BlockStatus(enum.IntEnum):
    """Status byte the device writes back."""

    OK = 0
    IOERR = 1
    UNSUPP = 2


class BlockIOError(KernelError):
    """A block request could not be completed."""


@dataclass
class RequestHeader:
    """The device-readable header at the start of a request."""

    type: int = RequestType.IN
    reserved: int = 0
    sector: int = 0

    SIZE: ClassVar[int] = _HEADER.size

    def pack(self) -> bytes:
        return _HEADER.pack(int(self.type), self.reserved, self.sector)

    @classmethod
    def unpack(cls, data: bytes) -> RequestHeader:
        data = bytes(data)
        if len(data) != cls.SIZE:
            raise ValueError(f"request header must be {cls.SIZE} bytes")
        kind, reserved, sector = _HEADER.unpack(data)
        return cls(kind, reserved, sector)


class BlockBackend:
    """A block device holding its sectors in memory.

    ``injected_faults`` holds statuses the device reports for the next
    requests instead of serving them, which models transient errors.
    """

    def __init__(self, storage: bytes | bytearray, block_size: int = VIOBLK_SECTOR_SIZE) -> None:
        if block_size <= 0 or block_size % VIOBLK_SECTOR_SIZE != 0:
            raise ValueError(
                f"block size must be a positive multiple of {VIOBLK_SECTOR_SIZE}"
            )
        self.storage = storage if isinstance(storage, bytearray) else bytearray(storage)
        self.block_size = block_size
        self.injected_faults: deque[BlockStatus] = deque()
        self.last_header: RequestHeader | None = None
        self.submissions = 0

    def capacity_sectors(self) -> int:
        """Number of whole sectors on the device."""
        return len(self.storage) // VIOBLK_SECTOR_SIZE

    def submit(self, request_type: int, sector: int, buffer: Buffer) -> BlockStatus:
        """Serve one request as the device would and return its status."""
        self.submissions += 1
        self.last_header = RequestHeader(request_type, 0, sector)
        if self.injected_faults:
            return self.injected_faults.popleft()
        try:
            kind = RequestType(request_type)
        except ValueError:
            return BlockStatus.UNSUPP

        view = memoryview(buffer)
        start = sector * VIOBLK_SECTOR_SIZE
        end = start + len(view)
        if sector < 0 or end > self.capacity_sectors() * VIOBLK_SECTOR_SIZE:
            return BlockStatus.IOERR
        if kind is RequestType.IN:
            view[:] = self.storage[start:end]
        else:
            self.storage[start:end] = view.tobytes()
        return BlockStatus.OK

    def request(self, block_no: int, request_type: int, buffer: Buffer) -> int:
        """Transfer one block between ``buffer`` and the device.

        Retries up to ten times and returns the number of attempts used;
        raises ``BlockIOError`` (EIO) when every attempt fails.
        """
        if len(memoryview(buffer)) != self.block_size:
            raise ValueError(f"buffer must be exactly {self.block_size} bytes")
        if block_no < 0:
            raise BlockIOError(ErrorCode.EINVAL, "negative block number")
        sector = block_no * self.block_size // VIOBLK_SECTOR_SIZE
        if sector >= self.capacity_sectors():
            raise BlockIOError(
                ErrorCode.EINVAL, f"block {block_no} is past the end of the device"
            )

        status = BlockStatus.OK
        for attempt in range(1, VIOBLK_ATTEMPT_MAX + 1):
            status = self.submit(request_type, sector, buffer)
            if status is BlockStatus.OK:
                return attempt
        reason = "unsupported request" if status is BlockStatus.UNSUPP else "I/O error"
        raise BlockIOError(ErrorCode.EIO, f"block {block_no}: {reason}")