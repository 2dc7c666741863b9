"""
Timestamp normalization for records read from the database.

Records written by this API carry ISO-8601 strings, records imported from the
former Firestore project carry ``{"seconds": ..., "nanoseconds": ...}`` maps
(``_seconds``/``_nanoseconds`` in the admin export). Both are turned into
timezone-aware ``datetime`` objects; everything else is left untouched.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

TIMESTAMP_KEYS = {'created_at', 'updated_at', 'timestamp', 'last_updated', 'lastUpdated'}

_WRAPPER_KEYS = (('seconds', 'nanoseconds'), ('_seconds', '_nanoseconds'))


def server_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='seconds')


def is_timestamp_key(key) -> bool:
    return isinstance(key, str) and (key in TIMESTAMP_KEYS or key.endswith('_at'))


def _is_number(value) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_timestamp_wrapper(value) -> bool:
    if not isinstance(value, dict) or len(value) != 2:
        return False
    return any(
        seconds_key in value and nanos_key in value and _is_number(value[seconds_key]) and _is_number(value[nanos_key])
        for seconds_key, nanos_key in _WRAPPER_KEYS
    )


def _from_wrapper(value: dict) -> datetime:
    seconds = value.get('seconds', value.get('_seconds'))
    nanoseconds = value.get('nanoseconds', value.get('_nanoseconds'))
    return datetime.fromtimestamp(float(seconds) + float(nanoseconds) / 1e9, tz=timezone.utc)


def _from_iso(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_datetime(value) -> Optional[datetime]:
    """Best effort conversion of a single stored value, None when it is not a timestamp"""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if is_timestamp_wrapper(value):
        return _from_wrapper(value)
    if isinstance(value, str) and value:
        return _from_iso(value)
    if _is_number(value):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    return None


def _convert_value(key, value) -> Any:
    if isinstance(value, datetime):
        return value
    if is_timestamp_wrapper(value):
        return _from_wrapper(value)
    if isinstance(value, str) and is_timestamp_key(key):
        return _from_iso(value) or value
    return convert_timestamps(value)


def convert_timestamps(data: Any) -> Any:
    """
    Return a copy of data with every timestamp wrapper replaced by a datetime.
    Already converted values stay as they are, so calling it twice is harmless.
    """
    if not data:
        return data
    if is_timestamp_wrapper(data):
        return _from_wrapper(data)
    if isinstance(data, dict):
        return {key: _convert_value(key, value) for key, value in data.items()}
    if isinstance(data, list):
        return [convert_timestamps(item) for item in data]
    return data


EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def timestamp_sort_key(value) -> datetime:
    """ Sort key for records without a timestamp: they go last in newest-first order """
    return to_datetime(value) or EPOCH
