"""On-disk layout of the flat file system: boot block, directory entries and inodes.

The disk is a sequence of 4096-byte blocks: one boot block, then one inode
block per file, then the data blocks. All integers are little-endian.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar

BLOCK_SIZE = 4096
MAX_DIR_ENTRIES = 63
MAX_INODES = 1023
BOOT_RESERVED_SPACE_SZ = 52
MAX_FILE_NAME_LENGTH = 32
DENTRY_RESERVED_SPACE_SZ = 28
MAX_FILE_OPEN = 32

_DENTRY = struct.Struct(f"<{MAX_FILE_NAME_LENGTH}sI{DENTRY_RESERVED_SPACE_SZ}s")
_BOOT_HEADER = struct.Struct(f"<III{BOOT_RESERVED_SPACE_SZ}s")
_INODE = struct.Struct(f"<I{MAX_INODES}I")

_NAME_ENCODING = "utf-8"
_NAME_ERRORS = "surrogateescape"


def _encode_name(name: str) -> bytes:
    return name.encode(_NAME_ENCODING, _NAME_ERRORS)


def _decode_name(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode(_NAME_ENCODING, _NAME_ERRORS)


def _check_u32(value: int, what: str) -> None:
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"{what} {value} does not fit in 32 bits")


def _check_length(data: bytes, size: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != size:
        raise ValueError(f"{what} must be {size} bytes, got {len(data)}")
    return data


@dataclass
class Dentry:
    """A directory entry: a file name of up to 32 bytes and an inode number.

    A name of exactly 32 bytes is stored without a terminating NUL.
    """

    file_name: str = ""
    inode: int = 0
    reserved: bytes = bytes(DENTRY_RESERVED_SPACE_SZ)

    SIZE: ClassVar[int] = _DENTRY.size

    def pack(self) -> bytes:
        name = _encode_name(self.file_name)
        if len(name) > MAX_FILE_NAME_LENGTH:
            raise ValueError(
                f"file name {self.file_name!r} is longer than "
                f"{MAX_FILE_NAME_LENGTH} bytes"
            )
        if len(self.reserved) > DENTRY_RESERVED_SPACE_SZ:
            raise ValueError("reserved area is too long")
        _check_u32(self.inode, "inode number")
        return _DENTRY.pack(name, self.inode, bytes(self.reserved))

    @classmethod
    def unpack(cls, data: bytes) -> Dentry:
        raw = _check_length(data, cls.SIZE, "directory entry")
        name, inode, reserved = _DENTRY.unpack(raw)
        return cls(_decode_name(name), inode, reserved)


@dataclass
class BootBlock:
    """The first block of the disk: counts and the directory."""

    num_dentry: int = 0
    num_inodes: int = 0
    num_data: int = 0
    dir_entries: list[Dentry] = field(default_factory=list)
    reserved: bytes = bytes(BOOT_RESERVED_SPACE_SZ)

    SIZE: ClassVar[int] = BLOCK_SIZE

    def pack(self) -> bytes:
        if len(self.dir_entries) > MAX_DIR_ENTRIES:
            raise ValueError(
                f"at most {MAX_DIR_ENTRIES} directory entries fit in a boot block"
            )
        if len(self.reserved) > BOOT_RESERVED_SPACE_SZ:
            raise ValueError("reserved area is too long")
        for value, what in (
            (self.num_dentry, "dentry count"),
            (self.num_inodes, "inode count"),
            (self.num_data, "data block count"),
        ):
            _check_u32(value, what)
        header = _BOOT_HEADER.pack(
            self.num_dentry, self.num_inodes, self.num_data, bytes(self.reserved)
        )
        entries = b"".join(entry.pack() for entry in self.dir_entries)
        block = header + entries
        return block + bytes(BLOCK_SIZE - len(block))

    @classmethod
    def unpack(cls, data: bytes) -> BootBlock:
        """Decode a boot block; trailing all-zero directory slots are dropped."""
        raw = _check_length(data, cls.SIZE, "boot block")
        num_dentry, num_inodes, num_data, reserved = _BOOT_HEADER.unpack_from(raw)
        offset = _BOOT_HEADER.size
        slots = [
            raw[offset + k * Dentry.SIZE : offset + (k + 1) * Dentry.SIZE]
            for k in range(MAX_DIR_ENTRIES)
        ]
        while slots and not any(slots[-1]):
            slots.pop()
        entries = [Dentry.unpack(slot) for slot in slots]
        return cls(num_dentry, num_inodes, num_data, entries, reserved)


@dataclass
class Inode:
    """A file's length in bytes and the numbers of its data blocks."""

    byte_len: int = 0
    data_block_num: list[int] = field(default_factory=list)

    SIZE: ClassVar[int] = BLOCK_SIZE

    def pack(self) -> bytes:
        if len(self.data_block_num) > MAX_INODES:
            raise ValueError(f"an inode holds at most {MAX_INODES} block numbers")
        _check_u32(self.byte_len, "file length")
        for number in self.data_block_num:
            _check_u32(number, "data block number")
        blocks = list(self.data_block_num)
        blocks.extend([0] * (MAX_INODES - len(blocks)))
        return _INODE.pack(self.byte_len, *blocks)

    @classmethod
    def unpack(cls, data: bytes) -> Inode:
        """Decode an inode, keeping as many block numbers as its length needs."""
        raw = _check_length(data, cls.SIZE, "inode")
        byte_len, *blocks = _INODE.unpack(raw)
        count = min(-(-byte_len // BLOCK_SIZE), MAX_INODES)
        return cls(byte_len, blocks[:count])