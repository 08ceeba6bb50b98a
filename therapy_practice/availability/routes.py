from datetime import date, timedelta

from flask import Blueprint, jsonify, request
from flask_login import login_required
from therapy_practice.availability.forms import (
    WorkingHoursForm, WorkingHoursUpdateForm, VacationForm, CheckAvailabilityForm, BulkDatesForm
)
from therapy_practice.errors import ValidationError
from therapy_practice.services import availability as availability_service
from therapy_practice.utils.audit import log_audit
from therapy_practice.utils.common import get_json_payload, load_form
from therapy_practice.utils.parsing import (
    parse_date, parse_time, parse_datetime, parse_slots, parse_date_list, parse_int
)

availability_bp = Blueprint('availability', __name__, url_prefix='/availability')

DEFAULT_EXCEPTION_RANGE = timedelta(days=90)


def _periods_payload(periods):
    return [{'startTime': start.strftime('%H:%M'), 'endTime': end.strftime('%H:%M')} for start, end in periods]


# Weekly template

@availability_bp.route('/working-hours')
@login_required
def list_working_hours():
    return jsonify([period.to_dict() for period in availability_service.list_working_hours()])


@availability_bp.route('/working-hours', methods=['POST'])
@login_required
def create_working_hours():
    form = load_form(WorkingHoursForm)
    period = availability_service.create_working_hours(
        form.day_of_week.data,
        parse_time(form.start_time.data, 'startTime'),
        parse_time(form.end_time.data, 'endTime'),
    )
    log_audit('create', 'working_hours', period.id, period.to_dict())
    return jsonify(period.to_dict()), 201


@availability_bp.route('/working-hours', methods=['PUT'])
@login_required
def replace_working_hours():
    """Replace the whole weekly template"""
    payload = get_json_payload()
    rows = payload.get('workingHours', payload.get('working_hours'))
    if not isinstance(rows, list):
        raise ValidationError("workingHours must be a list")

    periods = []
    for row in rows:
        if not isinstance(row, dict):
            raise ValidationError("Each period needs a dayOfWeek, a startTime and an endTime")
        day_of_week = parse_int(row.get('dayOfWeek', row.get('day_of_week')), 'dayOfWeek', default=None)
        if day_of_week is None:
            raise ValidationError("Each period needs a dayOfWeek")
        periods.append((
            day_of_week,
            parse_time(row.get('startTime', row.get('start_time')), 'startTime'),
            parse_time(row.get('endTime', row.get('end_time')), 'endTime'),
        ))

    created = availability_service.replace_working_hours(periods)
    log_audit('update', 'working_hours', None, {'periods': len(created)})
    return jsonify([period.to_dict() for period in created])


@availability_bp.route('/working-hours/<int:period_id>', methods=['PUT'])
@login_required
def update_working_hours(period_id):
    form = load_form(WorkingHoursUpdateForm)
    period = availability_service.update_working_hours(
        period_id,
        parse_time(form.start_time.data, 'startTime') if form.start_time.data else None,
        parse_time(form.end_time.data, 'endTime') if form.end_time.data else None,
    )
    log_audit('update', 'working_hours', period.id, period.to_dict())
    return jsonify(period.to_dict())


@availability_bp.route('/working-hours/<int:period_id>', methods=['DELETE'])
@login_required
def delete_working_hours(period_id):
    availability_service.delete_working_hours(period_id)
    log_audit('delete', 'working_hours', period_id)
    return jsonify({'message': 'Working hours deleted'})


# Date-specific overrides

@availability_bp.route('/exceptions')
@login_required
def list_exceptions():
    start_arg = request.args.get('startDate')
    start_date = parse_date(start_arg, 'startDate') if start_arg else date.today()
    end_arg = request.args.get('endDate')
    end_date = parse_date(end_arg, 'endDate') if end_arg else start_date + DEFAULT_EXCEPTION_RANGE
    rows = availability_service.list_exceptions(start_date, end_date)
    return jsonify([row.to_dict() for row in rows])


@availability_bp.route('/exceptions/date/<day>', methods=['PUT'])
@login_required
def set_date_availability(day):
    """Replace the periods of one date; an empty slot list closes it"""
    day = parse_date(day)
    payload = get_json_payload()
    slots = parse_slots(payload.get('slots'))
    rows = availability_service.set_date_availability(day, slots, payload.get('reason'))
    log_audit('update', 'availability_exception', None, {'date': day.isoformat(), 'slots': len(slots)})
    return jsonify([row.to_dict() for row in rows])


@availability_bp.route('/exceptions/date/<day>', methods=['DELETE'])
@login_required
def delete_date_availability(day):
    day = parse_date(day)
    count = availability_service.delete_date_availability(day)
    log_audit('delete', 'availability_exception', None, {'date': day.isoformat(), 'rows': count})
    return jsonify({'message': 'Date override removed', 'deleted': count})


@availability_bp.route('/exceptions/bulk', methods=['POST'])
@login_required
def bulk_set_dates():
    """Close several dates at once, or hand them back to the weekly template"""
    payload = get_json_payload()
    form = load_form(BulkDatesForm, payload)
    days = parse_date_list(payload.get('dates'))
    count = availability_service.bulk_set_date_availability(days, form.closed.data)
    log_audit('update', 'availability_exception', None, {
        'dates': [day.isoformat() for day in days],
        'closed': form.closed.data,
    })
    return jsonify({'message': f"Updated {count} dates", 'updated': count})


@availability_bp.route('/exceptions/vacation', methods=['POST'])
@login_required
def set_vacation():
    form = load_form(VacationForm)
    start_date = parse_date(form.start_date.data, 'startDate')
    end_date = parse_date(form.end_date.data, 'endDate')
    dates = availability_service.set_vacation(start_date, end_date, form.reason.data or None)
    log_audit('create', 'vacation', None, {
        'start_date': start_date.isoformat(),
        'end_date': end_date.isoformat(),
        'days': len(dates),
    })
    return jsonify({'message': f"Vacation set for {len(dates)} days",
                    'dates': [day.isoformat() for day in dates]}), 201


@availability_bp.route('/exceptions/<int:exception_id>', methods=['DELETE'])
@login_required
def delete_exception(exception_id):
    availability_service.delete_exception(exception_id)
    log_audit('delete', 'availability_exception', exception_id)
    return jsonify({'message': 'Availability exception deleted'})


# Resolution

@availability_bp.route('/for-date')
@login_required
def availability_for_date():
    day = parse_date(request.args.get('date'))
    periods, source = availability_service.availability_for_date(day)
    return jsonify({
        'date': day.isoformat(),
        'available': bool(periods),
        'source': source,
        'periods': _periods_payload(periods),
    })


@availability_bp.route('/check', methods=['POST'])
@login_required
def check_availability():
    form = load_form(CheckAvailabilityForm)
    result = availability_service.check_availability(
        parse_datetime(form.start_time.data, 'startTime'),
        parse_datetime(form.end_time.data, 'endTime'),
        form.exclude_appointment_id.data,
    )
    return jsonify(result)
