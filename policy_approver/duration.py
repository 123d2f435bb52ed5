"""Go-style duration strings ("100h0m0s", "1.5h", "300ms").

Kubernetes objects carry durations in Go's ``time.Duration`` text format.
These helpers convert them to and from :class:`datetime.timedelta`.
"""

from __future__ import annotations

import re
from datetime import timedelta
from decimal import Decimal

# Microseconds per unit.
_UNITS: dict[str, Decimal] = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),
    "μs": Decimal(1),
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_DURATION = re.compile(r"([+-]?)((?:(?:\d+\.?\d*|\.\d+)(?:ns|us|µs|μs|ms|s|m|h))+)")


def parse_duration(text: str) -> timedelta:
    """Parse a Go duration string into a timedelta.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    text = text.strip()
    if text in {"0", "+0", "-0"}:
        return timedelta(0)

    match = _DURATION.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid duration {text!r}")

    sign, body = match.groups()
    micros = sum(
        Decimal(amount) * _UNITS[unit] for amount, unit in _COMPONENT.findall(body)
    )
    if sign == "-":
        micros = -micros
    return timedelta(microseconds=int(micros))


def format_duration(value: timedelta) -> str:
    """Render a timedelta the way Go's ``Duration.String`` does."""
    micros = (value.days * 86_400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_trim(Decimal(micros) / 1_000)}ms"

    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = _trim(Decimal(rest) / 1_000_000)

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _trim(value: Decimal) -> str:
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
