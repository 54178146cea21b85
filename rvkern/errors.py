"""Kernel error numbers and the exception that carries them."""

from __future__ import annotations

import enum


class ErrorCode(enum.IntEnum):
    """Error numbers shared by the kernel and user programs."""

    EINVAL = 1
    EBUSY = 2
    ENOTSUP = 3
    ENODEV = 4
    EIO = 5
    EBADFMT = 6
    ENOENT = 7
    EACCESS = 8
    EBADFD = 9
    EMFILE = 10


class KernelError(Exception):
    """An operation failed with one of the kernel's error numbers.

    The code may be given as an ``ErrorCode``, a positive number, or the
    negated number that system calls hand back.
    """

    def __init__(self, code: int, message: str = "") -> None:
        self.code = ErrorCode(abs(int(code)))
        self.message = message
        text = f"{self.code.name}: {message}" if message else self.code.name
        super().__init__(text)