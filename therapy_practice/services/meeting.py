"""Video meeting tokens for the Jitsi as a Service deployment, and attendance."""
import logging
import re
from datetime import datetime, timedelta
from urllib.parse import urlencode

import jwt
from flask import current_app

from therapy_practice import db
from therapy_practice.errors import ConfigurationError, MeetingAccessError, NotFoundError
from therapy_practice.models.appointment import Appointment

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = 'RS256'
EARLY_ACCESS = timedelta(minutes=30)
NOT_BEFORE_MARGIN = timedelta(hours=1)
EXPIRY_MARGIN = timedelta(days=1)

ROLE_HOST = 'host'
ROLE_CLIENT = 'client'


def _load_private_key(raw_key):
    # Keys stored in a single-line env var carry escaped newlines
    return raw_key.replace('\\n', '\n').strip()


def generate_meeting_token(room_name, user_name, user_email=None, is_host=False, appointment_id=None,
                           start_time=None, end_time=None, meeting_name=None, now=None):
    """
    Sign a meeting JWT

    The token is valid from one hour before the start (or a minute ago when
    no start is known) until one day after the end (or one day from now).
    """
    config = current_app.config
    app_id = config.get('JITSI_APP_ID')
    key_id = config.get('JITSI_API_KEY_ID')
    private_key = config.get('JITSI_PRIVATE_KEY')
    if not app_id or not key_id or not private_key:
        raise ConfigurationError(
            "Jitsi configuration missing - need JITSI_APP_ID, JITSI_API_KEY_ID and JITSI_PRIVATE_KEY"
        )

    now = now or datetime.now()
    issued_at = int(now.timestamp())
    expires = end_time + EXPIRY_MARGIN if end_time else now + EXPIRY_MARGIN
    not_before = start_time - NOT_BEFORE_MARGIN if start_time else now - timedelta(seconds=60)

    payload = {
        'iss': 'chat',
        'aud': 'jitsi',
        'iat': issued_at,
        'exp': int(expires.timestamp()),
        'nbf': int(not_before.timestamp()),
        'sub': app_id,
        'room': '*',
        'context': {
            'user': {
                'id': user_email or f"user-{appointment_id}-{issued_at}",
                'name': user_name,
                'email': user_email or '',
                'avatar': '',
                'moderator': is_host,
            },
            'features': {
                'recording': is_host,
                'livestreaming': is_host,
                'transcription': is_host,
                'outbound-call': is_host,
                'sip-outbound-call': False,
                'sip-inbound-call': False,
            },
            'room': {
                'regex': False,
                'name': meeting_name or f"Appointment {appointment_id}",
            },
        },
    }

    logger.debug(f"Signing meeting token for room {room_name} (host={is_host})")
    return jwt.encode(
        payload,
        _load_private_key(private_key),
        algorithm=TOKEN_ALGORITHM,
        headers={'kid': key_id, 'typ': 'JWT'},
    )


def generate_room_name(appointment_id):
    return re.sub(r'[^a-zA-Z0-9-_]', '-', str(appointment_id)).lower()


def generate_meeting_name(client_name=None, start_time=None, now=None):
    """Readable meeting title, e.g. "Jane Doe - 05/03/2025 14:00\""""
    when = (start_time or now or datetime.now()).strftime('%d/%m/%Y %H:%M')
    if client_name:
        return f"{client_name} - {when}"
    return f"Appointment - {when}"


def generate_tokens_for_appointment(appointment_id, client_name, client_email=None, start_time=None,
                                    end_time=None):
    """Return the (host, client) token pair of an appointment"""
    config = current_app.config
    room_name = generate_room_name(appointment_id)
    meeting_name = generate_meeting_name(client_name, start_time)

    host_jwt = generate_meeting_token(
        room_name=room_name,
        user_name=config['PRACTITIONER_NAME'],
        user_email=config.get('PRACTITIONER_EMAIL') or None,
        is_host=True,
        appointment_id=appointment_id,
        start_time=start_time,
        end_time=end_time,
        meeting_name=meeting_name,
    )
    client_jwt = generate_meeting_token(
        room_name=room_name,
        user_name=client_name,
        user_email=client_email,
        is_host=False,
        appointment_id=appointment_id,
        start_time=start_time,
        end_time=end_time,
        meeting_name=meeting_name,
    )
    return host_jwt, client_jwt


def issue_appointment_tokens(appointment):
    """Store a fresh token pair on an online appointment; needs a flushed id"""
    client = appointment.client
    appointment.host_jwt, appointment.client_jwt = generate_tokens_for_appointment(
        appointment.id,
        client.get_full_name(),
        client.email,
        appointment.start_time,
        appointment.end_time,
    )
    return appointment


def meeting_join_url(appointment_id, role, token):
    base_url = current_app.config['WEBSITE_URL'].rstrip('/')
    params = urlencode({'id': appointment_id, 'userType': role, 'jwt': token})
    return f"{base_url}/meeting/{appointment_id}?{params}"


def check_meeting_window(start_time, end_time, now=None):
    """Raise MeetingAccessError outside of [start - 30 minutes, end]"""
    now = now or datetime.now()
    if now < start_time - EARLY_ACCESS:
        raise MeetingAccessError("Meeting is not yet available. You can join 30 minutes before the start.")
    if now > end_time:
        raise MeetingAccessError("Meeting has already ended")


def _get_appointment(appointment_id):
    appointment = db.session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


def record_host_attendance(appointment_id, token, now=None):
    appointment = _get_appointment(appointment_id)
    if not token or appointment.host_jwt != token:
        raise MeetingAccessError("JWT token does not match appointment")

    if appointment.host_attended:
        return {'message': 'Host attendance already recorded', 'hostAttended': True,
                'status': appointment.status}

    check_meeting_window(appointment.start_time, appointment.end_time, now)

    appointment.mark_host_attended()
    db.session.commit()
    logger.info(f"Host attendance recorded for appointment {appointment.id} (status {appointment.status})")
    return {'success': True, 'hostAttended': True, 'status': appointment.status}


def record_client_attendance(appointment_id, token, now=None):
    appointment = _get_appointment(appointment_id)
    if not token or appointment.client_jwt != token:
        raise MeetingAccessError("JWT token does not match appointment")

    check_meeting_window(appointment.start_time, appointment.end_time, now)

    appointment.mark_client_attended()
    db.session.commit()
    logger.info(f"Client attendance recorded for appointment {appointment.id} (status {appointment.status})")
    return {'success': True, 'clientAttended': True, 'status': appointment.status}
