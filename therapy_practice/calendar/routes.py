from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required
from therapy_practice.calendar.forms import (
    AppointmentForm, InstantAppointmentForm, AppointmentUpdateForm, AppointmentStatusForm
)
from therapy_practice.errors import ValidationError
from therapy_practice.services import appointments as appointment_service
from therapy_practice.services.appointments import EDIT_SINGLE, EDIT_SERIES
from therapy_practice.utils.audit import log_audit
from therapy_practice.utils.common import get_json_payload, load_form, provided_fields
from therapy_practice.utils.parsing import parse_datetime, parse_optional_datetime, parse_int

calendar_bp = Blueprint('calendar', __name__, url_prefix='/calendar')


def _mode_arg(name):
    mode = request.args.get(name, EDIT_SINGLE)
    if mode not in (EDIT_SINGLE, EDIT_SERIES):
        raise ValidationError(f"{name} must be '{EDIT_SINGLE}' or '{EDIT_SERIES}'")
    return mode


def _time_differences(payload):
    raw = payload.get('timeDifferences', payload.get('time_differences')) or {}
    if not isinstance(raw, dict):
        raise ValidationError("timeDifferences must be an object")
    return {
        'start_time_diff': parse_int(raw.get('startTimeDiff', raw.get('start_time_diff')), 'startTimeDiff'),
        'end_time_diff': parse_int(raw.get('endTimeDiff', raw.get('end_time_diff')), 'endTimeDiff'),
    }


@calendar_bp.route('/appointments')
@login_required
def list_appointments():
    """Confirmed appointments as calendar events"""
    appointments = appointment_service.list_appointments(confirmed_only=True)
    return jsonify([appointment.to_event() for appointment in appointments])


@calendar_bp.route('/appointments/<int:appointment_id>')
@login_required
def get_appointment(appointment_id):
    return jsonify(appointment_service.get_appointment(appointment_id).to_event())


@calendar_bp.route('/appointments', methods=['POST'])
@login_required
def create_appointment():
    form = load_form(AppointmentForm)
    appointments = appointment_service.create_appointment(
        client_id=form.client_id.data,
        start_time=parse_datetime(form.start_time.data, 'startTime'),
        end_time=parse_datetime(form.end_time.data, 'endTime'),
        rate=form.rate.data,
        format=form.format.data,
        is_recurring=form.is_recurring.data,
        recurring_type=form.recurring_type.data or None,
        recurring_end_date=parse_optional_datetime(form.recurring_end_date.data, 'recurringEndDate'),
    )

    first = appointments[0]
    log_audit('create', 'appointment', first.id, {
        'client_id': first.client_id,
        'start_time': first.start_time.isoformat(),
        'occurrences': len(appointments),
        'recurrent_id': first.recurrent_id,
    })
    message = (f"Created {len(appointments)} recurring appointments" if first.in_series()
               else "Appointment created")
    return jsonify({'message': message, 'appointments': [a.to_event() for a in appointments]}), 201


@calendar_bp.route('/appointments/instant', methods=['POST'])
@login_required
def create_instant_appointment():
    """Session starting right away, with its join links when online"""
    form = load_form(InstantAppointmentForm)
    appointment, links = appointment_service.create_instant_appointment(
        client_id=form.client_id.data,
        start_time=parse_datetime(form.start_time.data, 'startTime'),
        end_time=parse_datetime(form.end_time.data, 'endTime'),
        format=form.format.data,
        custom_rate=form.custom_rate.data,
    )
    log_audit('create', 'appointment', appointment.id, {'client_id': appointment.client_id, 'instant': True})
    return jsonify({'appointment': appointment.to_event(), **links}), 201


@calendar_bp.route('/appointments/<int:appointment_id>', methods=['PUT'])
@login_required
def update_appointment(appointment_id):
    edit_mode = _mode_arg('editMode')
    payload = get_json_payload()
    form = load_form(AppointmentUpdateForm, payload)
    data = provided_fields(form, payload)

    if 'start_time' in data:
        data['start_time'] = parse_datetime(data['start_time'], 'startTime')
    if 'end_time' in data:
        data['end_time'] = parse_datetime(data['end_time'], 'endTime')
    if edit_mode == EDIT_SERIES:
        data['day_difference'] = parse_int(payload.get('dayDifference', payload.get('day_difference')),
                                           'dayDifference')
        data['time_differences'] = _time_differences(payload)

    appointment = appointment_service.update_appointment(appointment_id, data, edit_mode)
    log_audit('update', 'appointment', appointment.id, {
        'edit_mode': edit_mode,
        'fields': sorted(data.keys()),
    })
    return jsonify({'message': 'Appointment updated', 'appointment': appointment.to_event()})


@calendar_bp.route('/appointments/<int:appointment_id>', methods=['DELETE'])
@login_required
def delete_appointment(appointment_id):
    delete_mode = _mode_arg('deleteMode')
    count = appointment_service.delete_appointment(appointment_id, delete_mode)
    log_audit('delete', 'appointment', appointment_id, {'delete_mode': delete_mode, 'deleted': count})
    current_app.logger.info(f"Deleted {count} appointment(s) from appointment {appointment_id}")
    return jsonify({'message': 'Appointment deleted', 'deleted': count})


@calendar_bp.route('/appointments/<int:appointment_id>/status', methods=['PATCH'])
@login_required
def update_status(appointment_id):
    payload = get_json_payload()
    form = load_form(AppointmentStatusForm, payload)
    data = provided_fields(form, payload)
    if not data:
        raise ValidationError("Nothing to update, expected status or paid")

    appointment = appointment_service.update_appointment_status(
        appointment_id,
        status=data.get('status') or None,
        paid=data.get('paid'),
    )
    log_audit('update', 'appointment', appointment.id, {
        'status': appointment.status,
        'paid': data.get('paid'),
    })
    return jsonify({'message': 'Status updated', 'appointment': appointment.to_event()})


@calendar_bp.route('/appointments/upcoming-online')
@login_required
def upcoming_online():
    appointments = appointment_service.upcoming_online_appointments()
    return jsonify([appointment.to_event() for appointment in appointments])
