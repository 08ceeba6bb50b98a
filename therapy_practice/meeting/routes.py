from flask import Blueprint, jsonify, current_app
from flask_login import login_required, current_user
from therapy_practice import db
from therapy_practice.errors import AuthorizationError, ValidationError
from therapy_practice.meeting.forms import MeetingTokenForm, AttendanceForm
from therapy_practice.services import meeting as meeting_service
from therapy_practice.services import email_service
from therapy_practice.services.appointments import get_appointment
from therapy_practice.utils.common import load_form
from therapy_practice.utils.parsing import parse_optional_datetime

meeting_bp = Blueprint('meeting', __name__, url_prefix='/meeting')


@meeting_bp.route('/token', methods=['POST'])
def generate_token():
    """Sign a meeting token; moderator tokens are reserved to the practitioner"""
    form = load_form(MeetingTokenForm)
    if form.is_host.data and not current_user.is_authenticated:
        raise AuthorizationError("Authentication required")

    room_name = meeting_service.generate_room_name(form.appointment_id.data)
    token = meeting_service.generate_meeting_token(
        room_name=room_name,
        user_name=form.user_name.data,
        user_email=form.user_email.data or None,
        is_host=form.is_host.data,
        appointment_id=form.appointment_id.data,
        start_time=parse_optional_datetime(form.start_time.data, 'startTime'),
        end_time=parse_optional_datetime(form.end_time.data, 'endTime'),
        meeting_name=form.meeting_name.data or None,
    )
    return jsonify({'token': token, 'roomName': room_name})


@meeting_bp.route('/host-attended', methods=['POST'])
def host_attended():
    form = load_form(AttendanceForm)
    return jsonify(meeting_service.record_host_attendance(form.appointment_id.data, form.jwt.data))


@meeting_bp.route('/client-attended', methods=['POST'])
def client_attended():
    form = load_form(AttendanceForm)
    return jsonify(meeting_service.record_client_attendance(form.appointment_id.data, form.jwt.data))


@meeting_bp.route('/<int:appointment_id>/send-link', methods=['POST'])
@login_required
def send_link(appointment_id):
    """Email the client their join link, issuing tokens first when missing"""
    appointment = get_appointment(appointment_id)
    if not appointment.is_online():
        raise ValidationError("Only online appointments have a meeting link")

    if not appointment.client_jwt:
        meeting_service.issue_appointment_tokens(appointment)
        db.session.commit()

    join_url = meeting_service.meeting_join_url(appointment.id, meeting_service.ROLE_CLIENT, appointment.client_jwt)
    email_service.send_meeting_link(appointment, join_url)
    current_app.logger.info(f"Meeting link for appointment {appointment.id} sent to {appointment.client.email}")
    return jsonify({'message': 'Meeting link sent', 'clientUrl': join_url})
