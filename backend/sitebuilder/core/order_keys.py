"""
Fractional order keys.

Pages and components are sorted by an ``order_key`` string. Inserting
between two siblings allocates a fresh key strictly between their keys, so
no other sibling is ever rewritten.

Rules
-----
- Alphabet is base 36, ``0-9a-z``. Digits sort before lowercase letters in
  code-point order, so plain ``str`` comparison is the key order.
- A key is non-empty, uses only alphabet symbols and never ends in ``0``.
  Without that last rule nothing would fit between ``"k"`` and ``"k0"``.
- ``key_between(lo, hi)`` returns the shortest-ish key with ``lo < key < hi``.
  A ``None`` bound is open. When the gap between two adjacent symbols is
  used up the key grows by one symbol, so generation never runs out of room.
- ``key_between(None, None)`` is always ``"i"``, the middle symbol. Every
  empty collection starts there.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

from sitebuilder.core.errors import InvalidOrderKey

DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE = len(DIGITS)
_INDEX = {ch: i for i, ch in enumerate(DIGITS)}
_ZERO = DIGITS[0]


def validate_key(value: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidOrderKey("order key must be a non-empty string")
    for ch in value:
        if ch not in _INDEX:
            raise InvalidOrderKey(f"order key {value!r} contains {ch!r} outside [0-9a-z]")
    if value[-1] == _ZERO:
        raise InvalidOrderKey(f"order key {value!r} must not end with {_ZERO!r}")
    return value


@dataclass(frozen=True, order=True)
class OrderKey:
    """A validated order key. Compares exactly like its string value."""

    value: str

    def __post_init__(self) -> None:
        validate_key(self.value)

    def __str__(self) -> str:
        return self.value

    @classmethod
    def initial(cls) -> "OrderKey":
        return cls(DIGITS[BASE // 2])


KeyLike = Union[OrderKey, str, None]


def _raw(key: KeyLike) -> Optional[str]:
    if key is None:
        return None
    if isinstance(key, OrderKey):
        return key.value
    return validate_key(key)


def _midpoint(lo: str, hi: Optional[str]) -> str:
    # lo may be "" (open lower end), hi may be None (open upper end).
    # Iterative so very long keys cannot hit the recursion limit.
    out: List[str] = []
    while True:
        if hi is not None:
            n = 0
            while n < len(hi) and (lo[n] if n < len(lo) else _ZERO) == hi[n]:
                n += 1
            if n:
                out.append(hi[:n])
                lo = lo[n:]
                hi = hi[n:]

        digit_lo = _INDEX[lo[0]] if lo else 0
        digit_hi = _INDEX[hi[0]] if hi is not None else BASE

        if digit_hi - digit_lo > 1:
            out.append(DIGITS[(digit_lo + digit_hi) // 2])
            return "".join(out)

        # adjacent symbols
        if hi is not None and len(hi) > 1:
            out.append(hi[0])
            return "".join(out)

        out.append(DIGITS[digit_lo])
        lo = lo[1:]
        hi = None


def key_between(lo: KeyLike = None, hi: KeyLike = None) -> OrderKey:
    """
    Return a key strictly between ``lo`` and ``hi``.

    Raises InvalidOrderKey for a malformed bound or when ``lo >= hi``.
    """
    a = _raw(lo)
    b = _raw(hi)
    if a is not None and b is not None and a >= b:
        raise InvalidOrderKey(f"lower bound {a!r} is not below upper bound {b!r}")
    return OrderKey(_midpoint(a or "", b))


def keys_between(lo: KeyLike, hi: KeyLike, count: int) -> List[OrderKey]:
    """``count`` ascending keys in the gap, each placed after the previous one."""
    if count < 0:
        raise ValueError("count must be >= 0")
    keys: List[OrderKey] = []
    prev = lo
    for _ in range(count):
        prev = key_between(prev, hi)
        keys.append(prev)
    return keys
