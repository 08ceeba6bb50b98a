"""Requests coming from the public booking site."""
import logging
from datetime import datetime, timedelta

from therapy_practice import db
from therapy_practice.errors import ConflictError, ValidationError
from therapy_practice.models.appointment import Appointment
from therapy_practice.models.client import Client
from therapy_practice.services import email_service
from therapy_practice.services.availability import check_availability

logger = logging.getLogger(__name__)

SESSION_LENGTH = timedelta(hours=1)


def request_appointment(first_name, last_name, email, phone_number, day, start, format, preferred_contact,
                        now=None):
    """
    Record an unconfirmed one-hour appointment requested by a visitor

    A visitor whose email matches an existing client books as that client,
    whose details are left untouched. Returns (appointment, client).
    """
    now = now or datetime.now()
    start_time = datetime.combine(day, start)
    end_time = start_time + SESSION_LENGTH
    if start_time <= now:
        raise ValidationError("The requested time is in the past")

    availability = check_availability(start_time, end_time)
    if not availability['available']:
        raise ConflictError("This time slot is no longer available", availability['reason'])

    client = Client.query.filter_by(email=email).first()
    if client and client.deleted:
        # A deleted client keeps its email; the request comes back for review
        client.deleted = False
        client.confirmed = False
    elif not client:
        client = Client(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone_number=phone_number,
            preferred_contact=preferred_contact,
            confirmed=False,
        )
        db.session.add(client)
        db.session.flush()

    appointment = Appointment(
        client_id=client.id,
        start_time=start_time,
        end_time=end_time,
        format=format,
        confirmed=False,
    )
    db.session.add(appointment)
    db.session.commit()
    logger.info(f"Booking request {appointment.id} received for client {client.id}")

    for send in (email_service.send_booking_received, email_service.send_booking_notification):
        try:
            send(client, appointment)
        except Exception as e:
            logger.error(f"Error sending {send.__name__} email for booking {appointment.id}: {e}")

    return appointment, client
