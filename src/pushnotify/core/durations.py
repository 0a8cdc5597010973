"""Duration strings and minute-resolution time helpers.

Repeat intervals are stored as compact duration strings such as
``"30m"``, ``"1h30m"`` or ``"90s"`` (units ``h``, ``m``, ``s``, ``ms``,
decimal fractions allowed).  Schedules are anchored on whole minutes.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

DEFAULT_REPEAT_TIMES = 3
DEFAULT_REPEAT_INTERVAL = "30m"

_UNITS = {
    "h": timedelta(hours=1),
    "m": timedelta(minutes=1),
    "s": timedelta(seconds=1),
    "ms": timedelta(milliseconds=1),
}

_TOKEN_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ms|h|m|s)")


def parse_duration(value: str) -> timedelta:
    """Parse a duration string like ``"1h30m"`` into a :class:`timedelta`.

    Raises :class:`ValueError` for empty, negative or malformed input.
    ``"0"`` is accepted and yields a zero duration.
    """
    text = (value or "").strip()
    if not text:
        msg = "empty duration"
        raise ValueError(msg)
    if text == "0":
        return timedelta(0)

    total = timedelta(0)
    pos = 0
    for match in _TOKEN_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        msg = f"invalid duration {value!r}"
        raise ValueError(msg)
    return total


def format_duration(delta: timedelta) -> str:
    """Render *delta* in the compact ``1h2m3s`` form used in logs."""
    seconds = int(delta.total_seconds())
    if seconds <= 0:
        return "0s"
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs or not parts:
        parts.append(f"{secs}s")
    return "".join(parts)


def truncate_to_minute(moment: datetime) -> datetime:
    """Drop seconds and microseconds from *moment*."""
    return moment.replace(second=0, microsecond=0)
