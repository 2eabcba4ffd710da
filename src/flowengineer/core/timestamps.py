"""Timestamp normalisation.

Every timestamp is carried internally as an integer count of nanoseconds
since the Unix epoch. Input records may encode time as:

- ``unirec``: a packed 64-bit value with whole seconds in the upper 32 bits
  and the fraction of a second, in units of 2**-32 s, in the lower 32 bits.
- ``s``, ``ms``, ``us``, ``ns``: a non-negative epoch offset in that unit.
- an ISO 8601 string, accepted whatever the configured format.
"""

from __future__ import annotations

import math
import numbers
from datetime import datetime, timezone
from typing import Any, Literal

TimeFormat = Literal["unirec", "s", "ms", "us", "ns"]
TIME_FORMATS: tuple[str, ...] = ("unirec", "s", "ms", "us", "ns")

NS_PER_SECOND = 1_000_000_000
NS_PER_MS = 1_000_000

_UNIT_FACTORS = {
    "s": NS_PER_SECOND,
    "ms": NS_PER_MS,
    "us": 1_000,
    "ns": 1,
}

_FRACTION_BITS = 32
_FRACTION_MASK = (1 << _FRACTION_BITS) - 1
_UNIREC_MAX = (1 << 64) - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def unirec_to_nanoseconds(value: int) -> int:
    """Convert a packed 64-bit UniRec time to nanoseconds.

    Args:
        value: Seconds in the upper 32 bits, 2**-32 s fractions in the lower.

    Returns:
        Nanoseconds since the epoch (the fraction is truncated).
    """
    seconds = value >> _FRACTION_BITS
    fraction = value & _FRACTION_MASK
    return seconds * NS_PER_SECOND + ((fraction * NS_PER_SECOND) >> _FRACTION_BITS)


def nanoseconds_to_unirec(ns: int) -> int:
    """Convert nanoseconds to a packed 64-bit UniRec time.

    The fraction is rounded up so that ``unirec_to_nanoseconds`` recovers
    ``ns`` exactly.
    """
    seconds, remainder = divmod(ns, NS_PER_SECOND)
    fraction = -((-remainder << _FRACTION_BITS) // NS_PER_SECOND)
    return (seconds << _FRACTION_BITS) | fraction


def parse_iso8601(value: str) -> int:
    """Parse an ISO 8601 timestamp into nanoseconds since the epoch.

    Naive timestamps are taken as UTC. Precision beyond microseconds is
    not representable by ``datetime`` and is dropped.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Invalid ISO 8601 timestamp: {value!r}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    delta = parsed - _EPOCH
    ns = (delta.days * 86_400 + delta.seconds) * NS_PER_SECOND + delta.microseconds * 1_000
    if ns < 0:
        raise ValueError(f"Timestamp before the Unix epoch: {value!r}")
    return ns


def to_nanoseconds(value: Any, fmt: TimeFormat = "s") -> int:
    """Normalise a raw timestamp value to nanoseconds since the epoch.

    Args:
        value: Raw value from an input record.
        fmt: How numeric values are encoded.

    Returns:
        Integer nanoseconds.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, str):
        return parse_iso8601(value)

    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"Expected a timestamp, got {type(value).__name__}: {value!r}")

    if fmt == "unirec":
        if not isinstance(value, numbers.Integral):
            raise ValueError(f"UniRec time must be an integer, got {value!r}")
        raw = int(value)
        if not 0 <= raw <= _UNIREC_MAX:
            raise ValueError(f"UniRec time out of range: {raw}")
        return unirec_to_nanoseconds(raw)

    factor = _UNIT_FACTORS.get(fmt)
    if factor is None:
        raise ValueError(f"Unknown time format: {fmt}. Use one of {', '.join(TIME_FORMATS)}")

    if isinstance(value, numbers.Integral):
        ns = int(value) * factor
    else:
        number = float(value)
        if not math.isfinite(number):
            raise ValueError(f"Timestamp must be finite, got {value!r}")
        ns = round(number * factor)

    if ns < 0:
        raise ValueError(f"Timestamp before the Unix epoch: {value!r}")
    return ns


def ns_to_ms(delta_ns: int) -> float:
    """Convert a nanosecond interval to fractional milliseconds."""
    return delta_ns / NS_PER_MS
