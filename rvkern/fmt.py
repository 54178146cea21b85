"""A small printf-style formatter with the kernel's conversion rules.

Supported conversions are ``%d``, ``%u``, ``%x``, ``%s`` and ``%p`` with an
optional zero flag, a field width and ``l``, ``ll``, ``z`` or ``j`` length
prefixes. Integers without a length prefix are 32 bits wide; with one they
are 64 bits wide. Strings are padded on the right. Any other conversion
character is written back after a ``%``, shown as ``?`` if not printable.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

_INT_BITS = 32
_LONG_BITS = 64
_DIGITS = "0123456789abcdef"


def _wrap_signed(value: int, bits: int) -> int:
    modulus = 1 << bits
    value %= modulus
    return value - modulus if value >= modulus >> 1 else value


def _wrap_unsigned(value: int, bits: int) -> int:
    return value % (1 << bits)


def _pad_int(value: int, base: int, zpad: bool, width: int) -> str:
    digits = []
    while True:
        value, digit = divmod(value, base)
        digits.append(_DIGITS[digit])
        if value == 0:
            break
    text = "".join(reversed(digits))
    fill = "0" if zpad else " "
    return fill * (width - len(text)) + text


def _pad_str(value: Any, width: int) -> str:
    text = "(null)" if value is None else str(value)
    return text + " " * (width - len(text))


def _render(fmt: str, args: tuple[Any, ...]) -> Iterator[str]:
    remaining = iter(args)

    def next_arg() -> Any:
        try:
            return next(remaining)
        except StopIteration:
            raise ValueError(f"not enough arguments for format {fmt!r}") from None

    i = 0
    end = len(fmt)
    while i < end:
        ch = fmt[i]
        if ch != "%":
            yield ch
            i += 1
            continue

        i += 1
        zpad = fmt.startswith("0", i)
        width = 0
        while i < end and "0" <= fmt[i] <= "9":
            width = 10 * width + ord(fmt[i]) - ord("0")
            i += 1

        lcnt = 0
        while i < end and fmt[i] == "l":
            lcnt += 1
            i += 1
        if i < end and fmt[i] in "zj":
            lcnt = 2
            i += 1

        spec = fmt[i] if i < end else ""
        bits = _INT_BITS if lcnt == 0 else _LONG_BITS

        if spec == "d":
            value = _wrap_signed(int(next_arg()), bits)
            if value < 0:
                yield "-"
                value = -value
                if width > 0:
                    width -= 1
            yield from _pad_int(value, 10, zpad, width)
        elif spec in ("u", "x"):
            value = _wrap_unsigned(int(next_arg()), bits)
            yield from _pad_int(value, 16 if spec == "x" else 10, zpad, width)
        elif spec == "s":
            yield from _pad_str(next_arg(), width)
        elif spec == "p":
            yield from "0x"
            value = _wrap_unsigned(int(next_arg()), _LONG_BITS)
            yield from _pad_int(value, 16, zpad, width)
        else:
            yield "%"
            printable = spec != "" and " " <= spec and ord(spec) < 0x7F
            yield spec if printable else "?"
            if spec == "":
                break
        i += 1


def gprintf(putc: Callable[[str], Any], fmt: str, *args: Any) -> int:
    """Format and hand each character to ``putc``; return the count written."""
    count = 0
    for ch in _render(fmt, args):
        putc(ch)
        count += 1
    return count


def format_string(fmt: str, *args: Any) -> str:
    """Return the formatted text."""
    return "".join(_render(fmt, args))


def snprintf(bufsz: int, fmt: str, *args: Any) -> tuple[str, int]:
    """Format into a buffer of ``bufsz`` bytes including its terminator.

    Returns the text that fits and the length the full text would have.
    """
    if bufsz < 0:
        raise ValueError("buffer size must not be negative")
    text = format_string(fmt, *args)
    return text[: max(bufsz - 1, 0)], len(text)