"""Date arithmetic for recurring appointment series."""
from datetime import timedelta

from dateutil.relativedelta import relativedelta

from therapy_practice.errors import ValidationError
from therapy_practice.models.appointment import RECURRING_WEEKLY, RECURRING_BIWEEKLY, RECURRING_MONTHLY

MAX_OCCURRENCES = 100


def occurrence_offset(recurring_type, index):
    """Offset of the n-th occurrence from the first one"""
    if recurring_type == RECURRING_WEEKLY:
        return timedelta(days=7 * index)
    if recurring_type == RECURRING_BIWEEKLY:
        return timedelta(days=14 * index)
    if recurring_type == RECURRING_MONTHLY:
        # Computed from the first occurrence so Jan 31 gives Feb 28 then Mar 31
        return relativedelta(months=index)
    raise ValidationError(f"Unknown recurring type: {recurring_type}")


def expand_occurrences(start, end, recurring_type, until, max_occurrences=MAX_OCCURRENCES):
    """
    Return the (start, end) pairs of a series

    Occurrences are generated while their start falls on or before the day
    of ``until`` and keep the duration of the first one.
    """
    if end <= start:
        raise ValidationError("End time must be after start time")

    duration = end - start
    occurrences = []
    for index in range(max_occurrences):
        occurrence_start = start + occurrence_offset(recurring_type, index)
        if occurrence_start.date() > _as_date(until):
            break
        occurrences.append((occurrence_start, occurrence_start + duration))
    return occurrences


def shift_occurrence(start, end, day_difference=0, start_diff=0, end_diff=0):
    """Move one occurrence by whole days, then move each end by minutes"""
    new_start = start + timedelta(days=day_difference) + timedelta(minutes=start_diff)
    new_end = end + timedelta(days=day_difference) + timedelta(minutes=end_diff)
    if new_end <= new_start:
        raise ValidationError("End time must be after start time")
    return new_start, new_end


def _as_date(value):
    return value.date() if hasattr(value, 'date') else value
