"""Number and string helpers used by user programs."""

from __future__ import annotations

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_INT_BITS = 32


def atoi(text: str) -> int:
    """Convert text to an integer.

    A leading ``-`` negates the result. Every following character is taken
    as a digit by its distance from ``'0'``, with no validation.
    """
    sign = 1
    body = text
    if body.startswith("-"):
        sign = -1
        body = body[1:]
    result = 0
    for ch in body:
        result = result * 10 + ord(ch) - ord("0")
    return sign * result


def itoa(num: int, base: int = 10) -> str:
    """Convert an integer to text in the given base.

    Negative numbers carry a sign only in base 10; in other bases they are
    written as unsigned 32-bit values.
    """
    if not 2 <= base <= len(_DIGITS):
        raise ValueError(f"unsupported base {base}")
    if num == 0:
        return "0"
    negative = num < 0 and base == 10
    if negative:
        num = -num
    elif num < 0:
        num %= 1 << _INT_BITS
    digits = []
    while num:
        num, rem = divmod(num, base)
        digits.append(_DIGITS[rem])
    if negative:
        digits.append("-")
    return "".join(reversed(digits))


def tokenize(text: str, delims: str) -> list[str]:
    """Split text at every character found in ``delims``.

    Adjacent delimiters give empty fields, as do leading and trailing ones.
    """
    fields = []
    start = 0
    for i, ch in enumerate(text):
        if ch in delims:
            fields.append(text[start:i])
            start = i + 1
    fields.append(text[start:])
    return fields