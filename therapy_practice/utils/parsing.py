"""Helpers turning request values into dates and times.

Every helper raises ``ValidationError`` with the offending field name so the
error handler can answer with a 400.
"""
from datetime import datetime, date, time

from dateutil import parser as date_parser

from therapy_practice.errors import ValidationError


def parse_datetime(value, field='date'):
    """Parse an ISO-8601 timestamp into a naive local datetime"""
    if isinstance(value, datetime):
        parsed = value
    elif not value or not isinstance(value, str):
        raise ValidationError(f"Missing or invalid {field}")
    else:
        try:
            parsed = date_parser.isoparse(value)
        except (ValueError, OverflowError):
            raise ValidationError(f"Invalid {field}: {value}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_optional_datetime(value, field='date'):
    if value in (None, ''):
        return None
    return parse_datetime(value, field)


def parse_date(value, field='date'):
    """Parse a YYYY-MM-DD date"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}, expected YYYY-MM-DD")


def parse_time(value, field='time'):
    """Parse an HH:MM time"""
    if isinstance(value, time):
        return value
    try:
        return datetime.strptime(value, '%H:%M').time()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}, expected HH:MM")


def parse_slots(values):
    """Parse a list of {startTime, endTime} periods into (start, end) time pairs"""
    if values is None:
        return []
    if not isinstance(values, list):
        raise ValidationError("Slots must be a list")

    slots = []
    for slot in values:
        if not isinstance(slot, dict):
            raise ValidationError("Each slot needs a startTime and an endTime")
        start = parse_time(slot.get('startTime', slot.get('start_time')), 'startTime')
        end = parse_time(slot.get('endTime', slot.get('end_time')), 'endTime')
        if end <= start:
            raise ValidationError("Slot end time must be after its start time")
        slots.append((start, end))
    return slots


def parse_date_list(values, field='dates'):
    if not isinstance(values, list) or not values:
        raise ValidationError(f"{field} must be a non-empty list")
    return [parse_date(value, field) for value in values]


def parse_int(value, field, default=0):
    """Parse an integer that may arrive as a number or a numeric string"""
    if value in (None, ''):
        return default
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}, expected a whole number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}, expected a whole number")
