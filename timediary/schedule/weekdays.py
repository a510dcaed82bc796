"""Weekday sets for recurring routines (Sunday=0 ... Saturday=6)."""
import datetime as dt
import json
from collections.abc import Iterator


def normalize_weekdays(raw) -> frozenset[int] | None:
    """Coerce a stored or submitted weekday value into a set of ints.

    Clients have sent weekdays as a list, as a JSON string, as a
    comma-separated string and as a JSON string wrapped in another string
    or list. None or an empty collection means "every day".
    """
    days = frozenset(_collect(raw))
    invalid = sorted(d for d in days if not 0 <= d <= 6)
    if invalid:
        raise ValueError(f"Weekdays must be between 0 (Sunday) and 6, got {invalid}")
    return days or None


def _collect(raw) -> Iterator[int]:
    if raw is None:
        return
    if isinstance(raw, bool):
        raise ValueError(f"Invalid weekday: {raw!r}")
    if isinstance(raw, int):
        yield raw
        return
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            for part in text.split(","):
                if part.strip():
                    yield int(part)
            return
        yield from _collect(decoded)
        return
    for item in raw:
        yield from _collect(item)


def js_weekday(day: dt.date) -> int:
    """Weekday number with Sunday=0."""
    return (day.weekday() + 1) % 7
