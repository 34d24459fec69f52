"""
.. module:: timestamps
   :platform: Unix, Windows
   :synopsis: Normalization of git date strings and session gap durations

"""

import re

import pandas as pd
from pandas.errors import OutOfBoundsTimedelta

from githours.logging import logger

__all__ = [
    "ISO8601_PATTERN",
    "MalformedTimestamp",
    "normalize_timestamp",
    "parse_session_gap",
    "format_duration",
]

# git --date=iso-local prints "2023-01-02 09:30:00 +0100"; strict ISO-8601 is also accepted
ISO8601_PATTERN = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[ T](?P<time>\d{2}:\d{2}:\d{2})(?:\.\d+)?\s*(?P<offset>Z|[+-]\d{2}:?\d{2})"
)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": "ns",
    "us": "us",
    "µs": "us",
    "μs": "us",
    "ms": "ms",
    "s": "s",
    "m": "min",
    "h": "h",
}
_NS_PER_SECOND = 10**9


class MalformedTimestamp(ValueError):
    """Raised when a date string holds no parsable ISO-8601 timestamp."""

    def __init__(self, text, reason=None):
        self.text = text
        message = f"malformed timestamp: {text!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


def normalize_timestamp(text):
    """Extracts the ISO-8601 part of a git date string and parses it.

    The UTC offset written by git is kept on the result, so two timestamps from
    different zones still compare by absolute instant.

    Args:
        text (str): Raw date text, e.g. ``"2023-01-02 09:30:00 +0100"``

    Returns:
        pandas.Timestamp: Timezone aware timestamp with a fixed offset

    Raises:
        MalformedTimestamp: If no ISO-8601 pattern is found or it does not parse
    """
    if not isinstance(text, str):
        raise MalformedTimestamp(text, "not a string")

    match = ISO8601_PATTERN.search(text)
    if match is None:
        raise MalformedTimestamp(text, "no ISO-8601 timestamp found")

    offset = match.group("offset")
    if offset == "Z":
        offset = "+00:00"
    elif ":" not in offset:
        offset = f"{offset[:3]}:{offset[3:]}"

    canonical = f"{match.group('date')}T{match.group('time')}{offset}"
    try:
        return pd.Timestamp(canonical)
    except (ValueError, OverflowError) as e:
        raise MalformedTimestamp(text, str(e)) from e


def parse_session_gap(text):
    """Parses a duration such as ``1h``, ``90m``, ``1h30m`` or ``1.5h``.

    Args:
        text (str): Sequence of decimal numbers each followed by a unit (ns, us, ms, s, m, h)

    Returns:
        pandas.Timedelta: The parsed, strictly positive duration

    Raises:
        ValueError: If the text is not a duration or the duration is not positive
    """
    if isinstance(text, pd.Timedelta):
        span = text
    else:
        raw = str(text).strip()
        position = 0
        span = pd.Timedelta(0)
        for part in _DURATION_PART.finditer(raw):
            if part.start() != position:
                break
            try:
                span += pd.Timedelta(float(part.group(1)), unit=_DURATION_UNITS[part.group(2)])
            except (OverflowError, OutOfBoundsTimedelta) as e:
                raise ValueError(f"duration {text!r} is out of range") from e
            position = part.end()
        if not raw or position != len(raw):
            raise ValueError(f"invalid duration {text!r}")

    if span <= pd.Timedelta(0):
        raise ValueError(f"duration must be positive, got {text!r}")

    logger.debug(f"Parsed session gap {text!r} as {span}")
    return span


def _with_fraction(whole, fraction, digits):
    if not fraction:
        return str(whole)
    return f"{whole}.{fraction:0{digits}d}".rstrip("0")


def format_duration(span):
    """Renders a time span as hours, minutes and seconds, e.g. ``3h10m0s``.

    Spans under a second are written in ms, µs or ns; zero is ``0s``.
    """
    ns = pd.Timedelta(span).value
    if ns == 0:
        return "0s"

    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    if ns < _NS_PER_SECOND:
        for unit, size, digits in (("ms", 10**6, 6), ("µs", 10**3, 3)):
            if ns >= size:
                whole, fraction = divmod(ns, size)
                return f"{sign}{_with_fraction(whole, fraction, digits)}{unit}"
        return f"{sign}{ns}ns"

    hours, rest = divmod(ns, 3600 * _NS_PER_SECOND)
    minutes, rest = divmod(rest, 60 * _NS_PER_SECOND)
    seconds, fraction = divmod(rest, _NS_PER_SECOND)

    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return f"{out}{_with_fraction(seconds, fraction, 9)}s"
