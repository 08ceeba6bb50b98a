"""Transactional emails rendered from templates/email and sent with Flask-Mail."""
import logging

from flask import current_app, render_template
from flask_mail import Message

from therapy_practice import mail
from therapy_practice.models.appointment import RECURRING_WEEKLY, RECURRING_BIWEEKLY, RECURRING_MONTHLY
from therapy_practice.models.email_schedule import EMAIL_REMINDER_24H

logger = logging.getLogger(__name__)

RECURRENCE_LABELS = {
    RECURRING_WEEKLY: 'every week',
    RECURRING_BIWEEKLY: 'every two weeks',
    RECURRING_MONTHLY: 'every month',
}


def send_email(subject, recipients, html_body, text_body="", attachments=None):
    """General email sending function"""
    msg = Message(subject, recipients=recipients)
    msg.body = text_body
    msg.html = html_body
    for filename, content_type, data in attachments or []:
        msg.attach(filename, content_type, data)
    mail.send(msg)


def _send_template(subject, recipients, template, attachments=None, **context):
    context.setdefault('practitioner_name', current_app.config['PRACTITIONER_NAME'])
    context.setdefault('website_url', current_app.config['WEBSITE_URL'])
    context.setdefault('currency', current_app.config['CURRENCY'])
    send_email(
        subject,
        recipients=recipients,
        html_body=render_template(f'email/{template}.html', **context),
        text_body=render_template(f'email/{template}.txt', **context),
        attachments=attachments,
    )
    logger.info(f"Sent '{template}' email to {', '.join(recipients)}")


def _practitioner_recipients():
    email = current_app.config.get('PRACTITIONER_EMAIL')
    if not email:
        logger.warning("PRACTITIONER_EMAIL is not configured, skipping practitioner notification")
        return []
    return [email]


def _client_join_url(appointment):
    if not appointment.is_online() or not appointment.client_jwt:
        return None
    from therapy_practice.services.meeting import meeting_join_url, ROLE_CLIENT
    return meeting_join_url(appointment.id, ROLE_CLIENT, appointment.client_jwt)


def send_appointment_confirmation(appointment, rate=None):
    client = appointment.client
    _send_template(
        f"Appointment confirmed - {appointment.start_time.strftime('%d/%m/%Y %H:%M')}",
        [client.email],
        'confirmation',
        client=client,
        appointment=appointment,
        rate=rate,
        join_url=_client_join_url(appointment),
    )


def send_series_confirmation(appointments, rate=None):
    """One email listing every occurrence of a new recurring series"""
    first = appointments[0]
    client = first.client
    _send_template(
        f"Recurring appointments confirmed - {len(appointments)} sessions",
        [client.email],
        'series_confirmation',
        client=client,
        appointments=appointments,
        first=first,
        recurrence=RECURRENCE_LABELS.get(first.recurring_type, ''),
        rate=rate,
    )


def send_reminder(entry, appointment):
    """Reminder queued by the email scheduler"""
    template = 'reminder_24h' if entry.email_type == EMAIL_REMINDER_24H else 'reminder_1h'
    _send_template(
        entry.subject,
        [entry.recipient_email],
        template,
        recipient_name=entry.recipient_name,
        appointment=appointment,
        join_url=_client_join_url(appointment),
    )


def send_appointment_updated(appointment):
    _send_template(
        f"Appointment updated - {appointment.start_time.strftime('%d/%m/%Y %H:%M')}",
        [appointment.client.email],
        'appointment_updated',
        client=appointment.client,
        appointment=appointment,
        join_url=_client_join_url(appointment),
    )


def send_appointment_cancelled(appointment):
    _send_template(
        f"Appointment cancelled - {appointment.start_time.strftime('%d/%m/%Y %H:%M')}",
        [appointment.client.email],
        'appointment_cancelled',
        client=appointment.client,
        appointment=appointment,
    )


def send_meeting_link(appointment, join_url):
    client = appointment.client
    _send_template(
        f"Your online session link - {appointment.start_time.strftime('%d/%m/%Y %H:%M')}",
        [client.email],
        'meeting_link',
        client=client,
        appointment=appointment,
        join_url=join_url,
    )


def send_invoice(invoice, pdf_bytes, filename, subject=None):
    client = invoice.client
    _send_template(
        subject or f"Invoice {invoice.number()}",
        [client.email],
        'invoice',
        attachments=[(filename, 'application/pdf', pdf_bytes)],
        client=client,
        invoice=invoice,
        appointment=invoice.appointment,
    )


def send_booking_received(client, appointment):
    """Acknowledge a public booking request to the client"""
    _send_template(
        "We received your appointment request",
        [client.email],
        'booking_received',
        client=client,
        appointment=appointment,
    )


def send_booking_notification(client, appointment):
    recipients = _practitioner_recipients()
    if not recipients:
        return
    _send_template(
        f"New appointment request - {client.get_full_name()}",
        recipients,
        'booking_notification',
        client=client,
        appointment=appointment,
    )


def send_contact_message(first_name, last_name, email, subject, message, phone=None):
    recipients = _practitioner_recipients()
    if not recipients:
        return
    _send_template(
        f"Contact form: {subject}",
        recipients,
        'contact_message',
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        subject=subject,
        message=message,
    )
