"""Human duration parsing for ``--since`` style options."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Final

_CALENDAR_RE: Final = re.compile(r"^(?P<value>\d+)(?P<unit>[dwm])$")
_COMPONENT_RE: Final = re.compile(r"(?P<value>\d+(?:\.\d*)?|\.\d+)(?P<unit>ns|us|µs|μs|ms|s|m|h)")

_CALENDAR_DAYS: Final[dict[str, int]] = {"d": 1, "w": 7, "m": 30}
_UNIT_SECONDS: Final[dict[str, float]] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(text: str) -> timedelta:
    """Parse ``text`` into a :class:`~datetime.timedelta`.

    Two shapes are accepted:

    * calendar shorthand, an integer followed by ``d`` (days), ``w`` (weeks)
      or ``m`` (30-day months): ``7d``, ``2w``, ``1m``;
    * clock durations built from ``h``, ``m``, ``s``, ``ms``, ``us`` and
      ``ns`` components: ``24h``, ``1h30m``, ``1.5h``, ``500ms``.

    A lone integer with ``m`` is always read as months, never minutes; tools
    that try clock durations first would read ``1m`` as one minute. Raises
    ``ValueError`` for anything else.
    """
    value = text.strip()
    if not value:
        raise ValueError("duration must not be empty")

    calendar = _CALENDAR_RE.match(value)
    if calendar is not None:
        days = int(calendar.group("value")) * _CALENDAR_DAYS[calendar.group("unit")]
        return timedelta(days=days)

    if value == "0":
        return timedelta(0)

    total = 0.0
    position = 0
    for match in _COMPONENT_RE.finditer(value):
        if match.start() != position:
            break
        total += float(match.group("value")) * _UNIT_SECONDS[match.group("unit")]
        position = match.end()
    if position == 0 or position != len(value):
        raise ValueError(f"invalid duration {text!r}; use forms like 24h, 1h30m, 7d, 2w, 1m")
    return timedelta(seconds=total)


__all__ = ["parse_duration"]
