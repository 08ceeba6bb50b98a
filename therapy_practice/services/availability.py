"""
Availability resolution

A date-specific override wins over the weekly template. An override without
times closes the whole day, and a weekday without template periods is closed.
"""
import logging
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from therapy_practice import db
from therapy_practice.errors import NotFoundError, ValidationError
from therapy_practice.models.appointment import Appointment, STATUS_CANCELLED
from therapy_practice.models.availability import WorkingHours, AvailabilityException

logger = logging.getLogger(__name__)

SOURCE_OVERRIDE = 'date-override'
SOURCE_OVERRIDE_CLOSED = 'date-override-closed'
SOURCE_TEMPLATE = 'weekly-template'

SLOT_LENGTH = timedelta(minutes=60)
PUBLIC_MONTHS_AHEAD = 3
MAX_VACATION_DAYS = 366


# Weekly template

def list_working_hours():
    return WorkingHours.query.order_by(WorkingHours.day_of_week, WorkingHours.start_time).all()


def _check_period(day_of_week, start_time, end_time):
    if day_of_week is not None and not 0 <= day_of_week <= 6:
        raise ValidationError("Day of week must be between 0 (Monday) and 6 (Sunday)")
    if end_time <= start_time:
        raise ValidationError("End time must be after start time")


def create_working_hours(day_of_week, start_time, end_time):
    _check_period(day_of_week, start_time, end_time)
    period = WorkingHours(day_of_week=day_of_week, start_time=start_time, end_time=end_time)
    db.session.add(period)
    db.session.commit()
    return period


def update_working_hours(period_id, start_time=None, end_time=None):
    period = db.session.get(WorkingHours, period_id)
    if not period:
        raise NotFoundError("Working hours not found")
    new_start = start_time or period.start_time
    new_end = end_time or period.end_time
    _check_period(None, new_start, new_end)
    period.start_time = new_start
    period.end_time = new_end
    db.session.commit()
    return period


def delete_working_hours(period_id):
    period = db.session.get(WorkingHours, period_id)
    if not period:
        raise NotFoundError("Working hours not found")
    db.session.delete(period)
    db.session.commit()


def replace_working_hours(periods):
    """Replace the whole template with (day_of_week, start, end) tuples"""
    for day_of_week, start_time, end_time in periods:
        _check_period(day_of_week, start_time, end_time)

    WorkingHours.query.delete()
    created = [WorkingHours(day_of_week=day, start_time=start, end_time=end) for day, start, end in periods]
    db.session.add_all(created)
    db.session.commit()
    logger.info(f"Weekly template replaced with {len(created)} periods")
    return created


# Date-specific overrides

def list_exceptions(start_date, end_date):
    return AvailabilityException.query.filter(
        AvailabilityException.date >= start_date,
        AvailabilityException.date <= end_date
    ).order_by(AvailabilityException.date, AvailabilityException.start_time).all()


def _clear_date(day):
    AvailabilityException.query.filter_by(date=day).delete()


def set_date_availability(day, slots, reason=None):
    """Replace the override of a date; no slots closes the date"""
    _clear_date(day)
    if slots:
        rows = [AvailabilityException(date=day, start_time=start, end_time=end, reason=reason)
                for start, end in slots]
    else:
        rows = [AvailabilityException(date=day, reason=reason)]
    db.session.add_all(rows)
    db.session.commit()
    return rows


def bulk_set_date_availability(days, closed):
    """Close every date, or drop their overrides so the template applies again"""
    for day in days:
        _clear_date(day)
        if closed:
            db.session.add(AvailabilityException(date=day))
    db.session.commit()
    return len(days)


def set_vacation(start_date, end_date, reason=None):
    """Close every date of an inclusive range"""
    if end_date < start_date:
        raise ValidationError("Vacation end date must not be before its start date")
    days = (end_date - start_date).days + 1
    if days > MAX_VACATION_DAYS:
        raise ValidationError("Vacation ranges are limited to one year")

    dates = [start_date + timedelta(days=offset) for offset in range(days)]
    for day in dates:
        _clear_date(day)
        db.session.add(AvailabilityException(date=day, reason=reason or 'Vacation'))
    db.session.commit()
    logger.info(f"Vacation set from {start_date} to {end_date}")
    return dates


def delete_date_availability(day):
    count = AvailabilityException.query.filter_by(date=day).delete()
    db.session.commit()
    return count


def delete_exception(exception_id):
    exception = db.session.get(AvailabilityException, exception_id)
    if not exception:
        raise NotFoundError("Availability exception not found")
    db.session.delete(exception)
    db.session.commit()


# Resolution

def _resolve(day, overrides, template):
    if overrides:
        if any(row.is_closed() for row in overrides):
            return [], SOURCE_OVERRIDE_CLOSED
        periods = sorted((row.start_time, row.end_time) for row in overrides)
        return periods, SOURCE_OVERRIDE
    periods = sorted((row.start_time, row.end_time) for row in template.get(day.weekday(), []))
    return periods, SOURCE_TEMPLATE


def availability_for_date(day):
    """Return (periods, source) where periods are (start, end) time pairs"""
    overrides = AvailabilityException.query.filter_by(date=day).all()
    return _resolve(day, overrides, WorkingHours.get_by_day())


def find_conflicts(start, end, exclude_appointment_id=None):
    query = Appointment.query.filter(
        Appointment.start_time < end,
        Appointment.end_time > start,
        Appointment.status != STATUS_CANCELLED
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)
    return query.all()


def check_availability(start, end, exclude_appointment_id=None):
    """Return a dict with ``available`` and, when not available, a ``reason``"""
    if end <= start:
        raise ValidationError("End time must be after start time")

    periods, _ = availability_for_date(start.date())
    if not periods:
        return {'available': False, 'reason': 'No availability defined for this date'}

    within = end.date() == start.date() and any(
        period_start <= start.time() and end.time() <= period_end
        for period_start, period_end in periods
    )
    if not within:
        return {'available': False, 'reason': 'Time slot not within available hours'}

    conflicts = find_conflicts(start, end, exclude_appointment_id)
    if conflicts:
        return {'available': False, 'reason': 'Time slot already booked',
                'conflicts': [appointment.to_event() for appointment in conflicts]}

    return {'available': True}


# Public slots

def generate_time_slots(start_time, end_time):
    """Hourly slot starts ("HH:MM") that fit entirely inside a period"""
    slots = []
    current = datetime.combine(datetime.min.date(), start_time)
    limit = datetime.combine(datetime.min.date(), end_time)
    while current + SLOT_LENGTH <= limit:
        slots.append(current.strftime('%H:%M'))
        current += SLOT_LENGTH
    return slots


def _booked_start_times(start_day, end_day):
    """Map each date to the HH:MM starts already taken by non-cancelled appointments"""
    appointments = Appointment.query.filter(
        Appointment.start_time >= datetime.combine(start_day, datetime.min.time()),
        Appointment.start_time < datetime.combine(end_day + timedelta(days=1), datetime.min.time()),
        Appointment.status != STATUS_CANCELLED
    ).all()
    booked = {}
    for appointment in appointments:
        booked.setdefault(appointment.start_time.date(), set()).add(appointment.start_time.strftime('%H:%M'))
    return booked


def _day_payload(day, periods, booked, now):
    entry = {'date': day.isoformat(), 'weekday': day.weekday()}
    if not periods:
        entry.update({'available': False, 'timeSlots': []})
        return entry

    taken = booked.get(day, set())
    slots = set()
    for period_start, period_end in periods:
        for slot in generate_time_slots(period_start, period_end):
            slot_start = datetime.combine(day, datetime.strptime(slot, '%H:%M').time())
            if slot in taken or slot_start <= now:
                continue
            slots.add(slot)

    entry.update({
        'available': True,
        'timeSlots': sorted(slots),
        'availabilityPeriods': [
            {'startTime': start.strftime('%H:%M'), 'endTime': end.strftime('%H:%M')}
            for start, end in periods
        ],
    })
    return entry


def _availability_between(start_day, end_day, now=None):
    """Bookable hourly slots for every date of an inclusive range"""
    now = now or datetime.now()
    template = WorkingHours.get_by_day()
    overrides = {}
    for row in list_exceptions(start_day, end_day):
        overrides.setdefault(row.date, []).append(row)
    booked = _booked_start_times(start_day, end_day)

    days = []
    day = start_day
    while day <= end_day:
        periods, _ = _resolve(day, overrides.get(day, []), template)
        days.append(_day_payload(day, periods, booked, now))
        day += timedelta(days=1)
    return days


def public_day_availability(day, now=None):
    return _availability_between(day, day, now)[0]


def public_week_availability(week_start, now=None):
    return _availability_between(week_start, week_start + timedelta(days=6), now)


def public_range_availability(months=PUBLIC_MONTHS_AHEAD, now=None):
    """Bookable slots from today until the same day ``months`` later"""
    now = now or datetime.now()
    today = now.date()
    return _availability_between(today, today + relativedelta(months=months), now)

