"""
Normalisation of the lexical timestamps returned by the resource index.

The resource index reports ``lastModifiedDate`` values with or without
milliseconds and with or without a trailing ``Z``. The variant is identified by
the string length alone; each entry in :data:`DATE_FORMATS` maps an exact length
to the ``strptime`` pattern used for it. Offsets such as ``+02:00`` are not
supported.

All values are interpreted as UTC and returned as timezone-aware datetimes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional, Sequence, Tuple

from .errors import UnparsableDateError

DATE_FORMATS: Sequence[Tuple[int, str]] = (
    (19, "%Y-%m-%dT%H:%M:%S"),
    (20, "%Y-%m-%dT%H:%M:%SZ"),
    (23, "%Y-%m-%dT%H:%M:%S.%f"),
    (24, "%Y-%m-%dT%H:%M:%S.%fZ"),
)


def pattern_for_length(length: int) -> Optional[str]:
    """Return the pattern registered for ``length`` or ``None``."""

    for expected, pattern in DATE_FORMATS:
        if expected == length:
            return pattern
    return None


def parse_date(value: str) -> datetime:
    """
    Parse ``value`` into a UTC datetime.

    Raises
    ------
    UnparsableDateError
        If the length matches no known variant or the text does not fit the
        selected pattern.
    """

    pattern = pattern_for_length(len(value))
    if pattern is None:
        raise UnparsableDateError(value)
    try:
        parsed = datetime.strptime(value, pattern)
    except ValueError as exc:
        raise UnparsableDateError(value) from exc
    return parsed.replace(tzinfo=UTC)


def format_date(value: datetime, length: int = 20) -> str:
    """
    Render ``value`` with the pattern registered for ``length``.

    Aware datetimes are converted to UTC first; naive ones are assumed to be UTC.
    """

    pattern = pattern_for_length(length)
    if pattern is None:
        raise ValueError(f"No date pattern registered for length {length}.")
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    rendered = value.strftime(pattern)
    if "%f" in pattern:
        # strftime emits microseconds; the lexical form carries milliseconds.
        head, _, tail = rendered.rpartition(".")
        digits = tail.rstrip("Z")
        rendered = f"{head}.{digits[:3]}{tail[len(digits):]}"
    return rendered
