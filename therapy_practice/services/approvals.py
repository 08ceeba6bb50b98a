"""Review of the requests made on the public booking site."""
import logging

from therapy_practice import db
from therapy_practice.errors import NotFoundError
from therapy_practice.models.appointment import Appointment
from therapy_practice.models.client import Client
from therapy_practice.services import appointments as appointment_service
from therapy_practice.services import clients as client_service
from therapy_practice.services import email_scheduler, email_service, meeting
from therapy_practice.services.invoices import create_appointment_invoice

logger = logging.getLogger(__name__)


def pending_clients():
    return Client.query.filter_by(confirmed=False, deleted=False).order_by(Client.created_at.desc()).all()


def pending_appointments():
    return Appointment.query.join(Client, Appointment.client_id == Client.id)\
        .filter(Appointment.confirmed.is_(False), Client.deleted.is_(False))\
        .order_by(Appointment.created_at.desc()).all()


def approve_client(client_id):
    client = client_service.get_client(client_id)
    client.confirmed = True
    db.session.commit()
    return client


def reject_client(client_id):
    """Drop the client's pending requests, then the client itself"""
    client = client_service.get_client(client_id)
    for appointment in client.appointments.filter_by(confirmed=False).all():
        appointment_service.delete_appointment(appointment.id)
    return client_service.delete_client(client.id)


def approve_appointment(appointment_id, now=None):
    """
    Confirm a booking request together with its client

    Online sessions get their meeting tokens, the invoice is created at the
    client's default rate, then emails are queued and the confirmation sent.
    """
    appointment = db.session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")

    client = appointment.client
    appointment.confirmed = True
    client.confirmed = True
    if appointment.is_online() and not appointment.client_jwt:
        meeting.issue_appointment_tokens(appointment)
    db.session.commit()

    rate = client.default_rate
    if not appointment.invoice:
        try:
            create_appointment_invoice(appointment, rate)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating invoice for approved appointment {appointment.id}: {e}")

    try:
        email_scheduler.schedule_appointment_emails(appointment, include_all_reminders=True, now=now)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error scheduling emails for approved appointment {appointment.id}: {e}")

    try:
        email_service.send_appointment_confirmation(appointment, rate)
    except Exception as e:
        logger.error(f"Error sending confirmation for approved appointment {appointment.id}: {e}")

    logger.info(f"Approved appointment {appointment.id} for client {client.id}")
    return appointment


def reject_appointment(appointment_id):
    return appointment_service.delete_appointment(appointment_id)
