"""Build a file system image from a list of files.

The image holds a boot block with one directory entry per file, one inode
block per file, and then every file's contents padded to whole blocks.
Directory entry ``i`` names inode ``i``, and data blocks are numbered in
the order the files are given.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from rvkern.fslayout import (
    BLOCK_SIZE,
    MAX_DIR_ENTRIES,
    MAX_FILE_NAME_LENGTH,
    MAX_INODES,
    BootBlock,
    Dentry,
    Inode,
)

PathArg = Union[str, "os.PathLike[str]"]

_USAGE = "Usage: ./mkfs [filesystem_image] [file1] [file2] ..."


def short_name(path: PathArg) -> str:
    """Return the part of ``path`` after its last ``/``."""
    return str(os.fspath(path)).rsplit("/", 1)[-1]


def blocks_needed(num_bytes: int) -> int:
    """Number of whole data blocks that hold ``num_bytes`` bytes."""
    if num_bytes < 0:
        raise ValueError("a file length cannot be negative")
    return -(-num_bytes // BLOCK_SIZE)


def _entry_name(path: PathArg) -> str:
    raw = short_name(path).encode("utf-8", "surrogateescape")
    return raw[:MAX_FILE_NAME_LENGTH].decode("utf-8", "surrogateescape")


@dataclass
class _Layout:
    boot: BootBlock
    inodes: list[Inode]
    contents: list[bytes]


def _layout(paths: Iterable[PathArg]) -> _Layout:
    paths = list(paths)
    if len(paths) > MAX_DIR_ENTRIES:
        raise ValueError(f"at most {MAX_DIR_ENTRIES} files fit in the image")
    entries = [Dentry(_entry_name(p), index) for index, p in enumerate(paths)]

    contents: list[bytes] = []
    inodes: list[Inode] = []
    next_block = 0
    for path in paths:
        data = Path(os.fspath(path)).read_bytes()
        count = blocks_needed(len(data))
        if count > MAX_INODES:
            raise ValueError(f"{os.fspath(path)}: file is too large for one inode")
        inodes.append(Inode(len(data), list(range(next_block, next_block + count))))
        next_block += count
        contents.append(data)

    boot = BootBlock(len(entries), len(entries), next_block, entries)
    return _Layout(boot, inodes, contents)


def _assemble(layout: _Layout) -> bytes:
    parts = [layout.boot.pack()]
    parts.extend(inode.pack() for inode in layout.inodes)
    for data in layout.contents:
        parts.append(data)
        parts.append(bytes(-len(data) % BLOCK_SIZE))
    return b"".join(parts)


def build_image(paths: Iterable[PathArg]) -> bytes:
    """Return the complete image for the given files."""
    return _assemble(_layout(paths))


def write_image(image_path: PathArg, paths: Iterable[PathArg]) -> BootBlock:
    """Write the image for ``paths`` to ``image_path`` and return its boot block."""
    layout = _layout(paths)
    Path(os.fspath(image_path)).write_bytes(_assemble(layout))
    return layout.boot


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point: ``mkfs IMAGE [FILE ...]``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(_USAGE, file=sys.stderr)
        return 1

    image_path, files = args[0], args[1:]
    print("Making fs")
    try:
        layout = _layout(files)
    except OSError as exc:
        print(f"{exc.filename}: {exc.strerror}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    boot = layout.boot
    for entry in boot.dir_entries:
        print(f"File name is {entry.file_name}")
        print(f"Dentry index is {entry.inode}")
        print(f"Inode number is {entry.inode}")
    for entry, inode in zip(boot.dir_entries, layout.inodes):
        print(f"Number of bytes for file {entry.file_name}: {inode.byte_len}")
        print(
            f"Number of data blocks for file {entry.file_name}: "
            f"{len(inode.data_block_num)}"
        )
    print(f"Total number of dentries: {boot.num_dentry}")
    print(f"Total number of inodes: {boot.num_inodes}")
    print(f"Total number of data blocks: {boot.num_data}")

    try:
        Path(image_path).write_bytes(_assemble(layout))
    except OSError as exc:
        print(f"{image_path}: {exc.strerror}", file=sys.stderr)
        return 1

    for index, entry in enumerate(boot.dir_entries):
        print(f"Wrote Inode {index}, Program: {entry.file_name}")
    print(f"Wrote filesystem image to {image_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())