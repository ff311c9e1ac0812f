"""Conversion between absolute instants and thermostat-local end times.

Thermostats keep their own wall clock, described by a fixed UTC offset in
seconds reported by the cloud. End times travel as naive strings of the form
``YYYY-MM-DDTHH:MM:SS`` in that local clock. Incoming values may instead
carry a zone suffix, in which case they are absolute instants.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, datetime, timedelta
from typing import Any

LOCAL_FORMAT = "%Y-%m-%dT%H:%M:%S"
MAX_OFFSET_SECONDS = 86400

_ZONE_SUFFIX = re.compile(r"(?:[zZ]|[+-]\d{2}:?\d{2})$")
_FRACTION = re.compile(r"\.\d+(?=$|[zZ]|[+-]\d{2}:?\d{2}$)")
_NAIVE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[T ](\d{2}):(\d{2})(?::(\d{2}))?$",
)


def normalize_offset(offset_seconds: Any) -> int:
    """Return a usable offset in seconds, 0 for missing input or anything beyond one day."""
    try:
        value = float(offset_seconds)
    except (OverflowError, TypeError, ValueError):
        return 0
    if not math.isfinite(value) or abs(value) > MAX_OFFSET_SECONDS:
        return 0
    return int(value)


def format_local(instant: datetime, offset_seconds: Any) -> str:
    """Format an absolute instant as thermostat-local naive time.

    Args:
        instant: Timezone-aware instant. Naive values are taken as UTC.
        offset_seconds: Thermostat UTC offset in seconds.

    Returns:
        Local time string without fraction or zone suffix.

    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    local = instant.astimezone(UTC) + timedelta(seconds=normalize_offset(offset_seconds))
    return local.strftime(LOCAL_FORMAT)


def has_zone(value: str) -> bool:
    """Return True if the timestamp carries a zone suffix or numeric offset."""
    return bool(_ZONE_SUFFIX.search(value))


def _strip_fraction(value: str) -> str:
    return _FRACTION.sub("", value, count=1)


def decode_to_local(raw_value: Any, offset_seconds: Any) -> str:
    """Decode a vendor end time into thermostat-local naive time.

    Zoned input is parsed as an absolute instant and shifted by the
    thermostat offset. Naive input is already local: only the sub-second
    part is dropped and missing seconds are filled in.

    Returns:
        ``YYYY-MM-DDTHH:MM:SS`` or an empty string for empty or unparseable
        input.

    """
    if raw_value is None:
        return ""
    value = str(raw_value).strip()
    if not value:
        return ""

    value = _strip_fraction(value)

    if has_zone(value):
        try:
            instant = datetime.fromisoformat(value.replace("z", "Z"))
        except ValueError:
            return ""
        if instant.tzinfo is None:
            return ""
        try:
            return format_local(instant, offset_seconds)
        except (OverflowError, ValueError):
            return ""

    match = _NAIVE.match(value)
    if not match:
        return ""
    year, month, day, hour, minute, second = match.groups()
    return f"{year}-{month}-{day}T{hour}:{minute}:{second or '00'}"


def encode_future_local(
    now: datetime,
    minutes_from_now: int,
    offset_seconds: Any,
    correction_seconds: int = 0,
) -> str:
    """Encode ``now + minutes_from_now`` as thermostat-local naive time.

    The thermostat offset is applied here and only here; ``now`` must be an
    absolute instant, never a value that was already shifted to local time.

    Args:
        now: Current instant, timezone-aware.
        minutes_from_now: Duration until the end time.
        offset_seconds: Thermostat UTC offset in seconds.
        correction_seconds: Additional fixed shift for the outgoing value.

    Returns:
        Local time string in the same format as :func:`decode_to_local`.

    """
    target = now + timedelta(minutes=minutes_from_now, seconds=correction_seconds)
    return format_local(target, offset_seconds)
