"""Line-oriented terminal input and output over a character stream.

Input turns ``\\r`` (and any ``\\n`` right after it) into ``\\n``; output
turns ``\\n`` into ``\\r\\n``.
"""

from __future__ import annotations

from typing import Any, Protocol

from rvkern.fmt import gprintf


class CharStream(Protocol):
    def read(self, n: int) -> str: ...

    def write(self, s: str) -> Any: ...


class Terminal:
    """A terminal attached to a text stream."""

    def __init__(self, stream: CharStream) -> None:
        self._stream = stream
        self._cprev = ""

    def _getchar_raw(self) -> str:
        c = self._stream.read(1)
        if isinstance(c, (bytes, bytearray)):
            c = bytes(c).decode("latin-1")
        if len(c) != 1:
            raise EOFError("terminal input ended")
        return c

    def _putchar_raw(self, c: str) -> None:
        written = self._stream.write(c)
        if isinstance(written, int) and written != 1:
            raise OSError("terminal write failed")

    def getchar(self) -> str:
        """Read one character, mapping ``\\r`` and ``\\r\\n`` to ``\\n``."""
        c = self._getchar_raw()
        while c == "\n" and self._cprev == "\r":
            c = self._getchar_raw()
        self._cprev = c
        return "\n" if c == "\r" else c

    def putchar(self, c: str) -> None:
        """Write one character, sending ``\\r`` before each ``\\n``."""
        if c == "\n":
            self._putchar_raw("\r")
        self._putchar_raw(c)

    def puts(self, s: str | None) -> None:
        """Write each line of ``s`` followed by ``\\r\\n``."""
        if s is None:
            return
        for line in s.split("\n"):
            if line:
                self._stream.write(line)
            self._stream.write("\r\n")

    def getsn(self, n: int) -> str:
        """Read an echoed line of at most ``n - 1`` characters.

        Backspace and delete erase the last character; characters past the
        limit ring the bell instead of being stored.
        """
        buf: list[str] = []
        while True:
            c = self.getchar()
            if c == "\r":
                continue
            if c == "\n":
                self.putchar("\n")
                return "".join(buf)
            if c in ("\b", "\x7f"):
                if buf:
                    self.putchar("\b")
                    self.putchar(" ")
                    self.putchar("\b")
                    buf.pop()
                    n += 1
            elif n > 1:
                self.putchar(c)
                buf.append(c)
                n -= 1
            else:
                self.putchar("\a")

    def printf(self, fmt: str, *args: Any) -> None:
        """Format with the kernel's printf rules and write the result."""
        gprintf(self.putchar, fmt, *args)

    def wait_for_enter(self) -> None:
        """Discard input up to and including the next line end."""
        while self.getchar() != "\n":
            pass