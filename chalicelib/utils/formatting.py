"""
Display helpers shared by the endpoints which return dashboard-ready records.
None of them raise on malformed input, a fallback text is returned instead.
"""
import math
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from chalicelib.utils.timestamps import to_datetime

ADDRESS_KEYS = ['street', 'city', 'state', 'zipCode', 'country']
ALTERNATIVE_ADDRESS_KEYS = [
    ('street_address', 'streetAddress', 'address_line1', 'line1'),
    ('city', 'town', 'suburb'),
    ('state', 'province', 'region'),
    ('zip', 'zip_code', 'postal_code', 'postalCode'),
    ('country',),
]

MAX_RATING = 5

STATUS_VARIANTS = {
    'success': ['active', 'open', 'approved', 'completed', 'verified', 'delivered', 'available'],
    'warning': ['pending', 'pending_verification', 'in_progress', 'waiting', 'preparing', 'en route',
                'picking up', 'delivering'],
    'error': ['suspended', 'closed', 'rejected', 'failed', 'cancelled', 'error', 'offline'],
    'info': ['draft', 'info', 'new', 'ready'],
}

WEEKDAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']


def _is_scalar(value) -> bool:
    return isinstance(value, (str, int, float, Decimal)) and not isinstance(value, bool)


def _text(value) -> str:
    return str(value).strip() if _is_scalar(value) else ''


def format_address(address) -> str:
    """
    Human readable address out of a plain string or a structured address map.

    >>> format_address({'street': '1 Main', 'city': 'Springfield'})
    '1 Main, Springfield'
    """
    if isinstance(address, str):
        return address if address.strip() else 'No address'
    if not address:
        return 'No address details' if isinstance(address, dict) else 'No address'
    if not isinstance(address, dict):
        return _text(address) or 'Address unavailable'

    parts = [_text(address.get(key)) for key in ADDRESS_KEYS]
    parts = [part for part in parts if part]
    if parts:
        return ', '.join(parts)

    parts = []
    for alternatives in ALTERNATIVE_ADDRESS_KEYS:
        value = next((_text(address.get(key)) for key in alternatives if _text(address.get(key))), '')
        if value:
            parts.append(value)
    if parts:
        return ', '.join(parts)

    parts = [_text(value) for value in address.values() if _text(value)]
    if parts:
        return ', '.join(parts)
    return 'Address unavailable'


def clamp_rating(value) -> float:
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(rating):
        return 0.0
    return min(max(rating, 0.0), float(MAX_RATING))


def rating_stars(value) -> Dict[str, int]:
    rating = clamp_rating(value)
    full = int(math.floor(rating))
    half = 1 if full < MAX_RATING and rating - full >= 0.5 else 0
    return {'full': full, 'half': half, 'empty': MAX_RATING - full - half}


def get_status_variant(status) -> str:
    if not isinstance(status, str):
        return 'default'
    status_lower = status.lower()
    for variant, statuses in STATUS_VARIANTS.items():
        if status_lower in statuses:
            return variant
    return 'default'


def format_status(status) -> str:
    if not status or not isinstance(status, str) or status == 'unknown':
        return 'Unknown'
    return ' '.join(word[:1].upper() + word[1:] for word in status.replace('_', ' ').split())


def format_date(value) -> str:
    parsed = to_datetime(value)
    if parsed is None:
        return 'Unknown date'
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_time(value) -> str:
    parsed = to_datetime(value)
    if parsed is None:
        return ''
    return parsed.strftime('%H:%M')


def format_currency(amount, currency_symbol: str = '$') -> str:
    try:
        number = float(amount)
    except (TypeError, ValueError):
        number = 0.0
    return f'{currency_symbol}{number:,.2f}'


def truncate_text(text, max_length: int = 100) -> str:
    if not text:
        return ''
    text = str(text)
    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + '...'


def _parse_clock(value) -> Optional[int]:
    """ '09:30' -> minutes since midnight """
    if not isinstance(value, str) or ':' not in value:
        return None
    hours, _, minutes = value.partition(':')
    try:
        hours, minutes = int(hours), int(minutes[:2])
    except ValueError:
        return None
    if not (0 <= hours <= 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def _format_clock(value: str) -> str:
    minutes_total = _parse_clock(value)
    hours, minutes = divmod(minutes_total, 60)
    period = 'PM' if 12 <= hours < 24 else 'AM'
    return f'{hours % 12 or 12}:{minutes:02d} {period}'


def _hours_for_day(working_hours, day: str) -> Optional[Dict]:
    if isinstance(working_hours, list):
        return next(
            (hours for hours in working_hours
             if isinstance(hours, dict) and isinstance(hours.get('day'), str) and hours['day'].lower() == day),
            None
        )
    if isinstance(working_hours, dict):
        hours = working_hours.get(day) or working_hours.get(day.capitalize())
        return hours if isinstance(hours, dict) else None
    return None


def _has_hours(working_hours) -> bool:
    return isinstance(working_hours, (list, dict)) and len(working_hours) > 0


def is_restaurant_open(working_hours, now: Optional[datetime] = None) -> bool:
    if not _has_hours(working_hours):
        return False
    now = now or datetime.now()
    today = _hours_for_day(working_hours, WEEKDAYS[now.weekday()])
    if not today or today.get('is_closed') or today.get('closed'):
        return False
    open_at, close_at = _parse_clock(today.get('open')), _parse_clock(today.get('close'))
    if open_at is None or close_at is None:
        return False
    current = now.hour * 60 + now.minute
    return open_at <= current <= close_at


def get_today_hours(working_hours, now: Optional[datetime] = None) -> str:
    if not _has_hours(working_hours):
        return 'Hours not available'
    now = now or datetime.now()
    today = _hours_for_day(working_hours, WEEKDAYS[now.weekday()])
    if not today or today.get('is_closed') or today.get('closed'):
        return 'Closed today'
    if _parse_clock(today.get('open')) is None or _parse_clock(today.get('close')) is None:
        return 'Hours not available'
    return f"Open today: {_format_clock(today['open'])} - {_format_clock(today['close'])}"
