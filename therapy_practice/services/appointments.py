"""
Appointment workflows of the admin calendar

Creation books the rows, their meeting tokens, invoices and emails. Invoice
and email side effects are logged on failure and never undo the booking.
"""
import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from flask import current_app

from therapy_practice import db
from therapy_practice.errors import NotFoundError, ValidationError
from therapy_practice.models.appointment import (
    Appointment, FORMATS, FORMAT_ONLINE, STATUSES, STATUS_CANCELLED, RECURRING_TYPES
)
from therapy_practice.models.client import Client
from therapy_practice.models.invoice import Invoice
from therapy_practice.models.note import Note
from therapy_practice.services import email_scheduler, email_service, meeting
from therapy_practice.services.invoices import create_appointment_invoice
from therapy_practice.services.recurrence import expand_occurrences, shift_occurrence

logger = logging.getLogger(__name__)

EDIT_SINGLE = 'single'
EDIT_SERIES = 'series'


def get_appointment(appointment_id):
    appointment = db.session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


def list_appointments(confirmed_only=True):
    query = Appointment.query
    if confirmed_only:
        query = query.filter_by(confirmed=True)
    return query.order_by(Appointment.start_time).all()


def series_of(appointment):
    """Every appointment sharing the series id, or just this one"""
    if not appointment.in_series():
        return [appointment]
    return Appointment.query.filter_by(recurrent_id=appointment.recurrent_id)\
        .order_by(Appointment.start_time).all()


def _check_format(format):
    if format not in FORMATS:
        raise ValidationError(f"Invalid format: {format}")


def _check_times(start, end):
    if not start or not end:
        raise ValidationError("Start and end times are required")
    if end <= start:
        raise ValidationError("End time must be after start time")


def _get_bookable_client(client_id, confirmed_only=False):
    client = db.session.get(Client, client_id)
    if not client or client.deleted or (confirmed_only and not client.confirmed):
        raise NotFoundError("Client not found")
    return client


def _default_rate(client):
    return client.default_rate or current_app.config['DEFAULT_SESSION_RATE']


def _issue_tokens(appointments):
    for appointment in appointments:
        if appointment.is_online():
            meeting.issue_appointment_tokens(appointment)


def _create_invoices(appointments, rate):
    try:
        for appointment in appointments:
            create_appointment_invoice(appointment, rate)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating invoices for appointments {[a.id for a in appointments]}: {e}")


def _schedule_emails(appointments, include_all_reminders=True, now=None):
    try:
        for appointment in appointments:
            email_scheduler.schedule_appointment_emails(appointment, include_all_reminders, now)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error scheduling emails for appointments {[a.id for a in appointments]}: {e}")


def _send(send, *args, **kwargs):
    """Send a notification without letting a mail failure escape"""
    try:
        send(*args, **kwargs)
        return True
    except Exception as e:
        logger.error(f"Error sending {send.__name__} email: {e}")
        return False


def create_appointment(client_id, start_time, end_time, rate=None, format=FORMAT_ONLINE, is_recurring=False,
                       recurring_type=None, recurring_end_date=None, now=None):
    """
    Book a confirmed appointment, or a whole series when ``is_recurring`` is set

    Returns the list of created appointments, ordered by start.
    """
    _check_times(start_time, end_time)
    _check_format(format)
    client = _get_bookable_client(client_id)
    rate = rate if rate is not None else _default_rate(client)
    if Decimal(str(rate)) < 0:
        raise ValidationError("Rate must not be negative")

    if is_recurring:
        if not recurring_type or not recurring_end_date:
            raise ValidationError("Recurring appointments need a recurring type and an end date")
        if recurring_type not in RECURRING_TYPES:
            raise ValidationError(f"Invalid recurring type: {recurring_type}")

        recurrent_id = str(uuid.uuid4())
        appointments = [
            Appointment(
                client_id=client.id,
                start_time=start,
                end_time=end,
                format=format,
                confirmed=True,
                is_recurring=True,
                recurring_type=recurring_type,
                recurring_end_date=recurring_end_date,
                recurrent_id=recurrent_id,
            )
            for start, end in expand_occurrences(start_time, end_time, recurring_type, recurring_end_date)
        ]
        if not appointments:
            raise ValidationError("The recurring end date is before the first appointment")
    else:
        appointments = [Appointment(client_id=client.id, start_time=start_time, end_time=end_time,
                                    format=format, confirmed=True)]

    db.session.add_all(appointments)
    db.session.flush()
    _issue_tokens(appointments)
    db.session.commit()
    logger.info(f"Created {len(appointments)} appointment(s) for client {client.id}")

    _create_invoices(appointments, rate)

    if is_recurring:
        _send(email_service.send_series_confirmation, appointments, rate)
    else:
        _send(email_service.send_appointment_confirmation, appointments[0], rate)
    _schedule_emails(appointments, include_all_reminders=True, now=now)

    return appointments


def create_instant_appointment(client_id, start_time, end_time, format=FORMAT_ONLINE, custom_rate=None, now=None):
    """
    Book a session starting right away

    No reminders are queued, only the invoice delivery. Online sessions get
    their join links emailed to the client. Returns (appointment, links).
    """
    _check_times(start_time, end_time)
    _check_format(format)
    client = _get_bookable_client(client_id, confirmed_only=True)
    rate = custom_rate if custom_rate else _default_rate(client)

    appointment = Appointment(client_id=client.id, start_time=start_time, end_time=end_time,
                              format=format, confirmed=True)
    db.session.add(appointment)
    db.session.flush()
    _issue_tokens([appointment])
    db.session.commit()

    _create_invoices([appointment], rate)
    try:
        email_scheduler.schedule_invoice_delivery(appointment, now)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error scheduling invoice delivery for appointment {appointment.id}: {e}")

    links = {}
    if appointment.is_online():
        links = {
            'hostUrl': meeting.meeting_join_url(appointment.id, meeting.ROLE_HOST, appointment.host_jwt),
            'clientUrl': meeting.meeting_join_url(appointment.id, meeting.ROLE_CLIENT, appointment.client_jwt),
        }
        links['emailSent'] = _send(email_service.send_meeting_link, appointment, links['clientUrl'])

    logger.info(f"Created instant appointment {appointment.id} for client {client.id}")
    return appointment, links


def _apply_rate(appointments, rate):
    """Carry a new rate over to invoices that are not paid yet"""
    amount = Decimal(str(rate))
    for appointment in appointments:
        invoice = appointment.invoice
        if invoice and not invoice.is_paid():
            invoice.amount = amount


def _apply_format(appointment, format):
    if format == appointment.format:
        return False
    appointment.format = format
    if not appointment.is_online():
        appointment.host_jwt = None
        appointment.client_jwt = None
    return True


def update_appointment(appointment_id, data, edit_mode=EDIT_SINGLE, now=None):
    """
    Update one appointment or its whole series

    In series mode ``day_difference`` and ``time_differences`` (minutes, keys
    ``start_time_diff`` and ``end_time_diff``) shift every occurrence; without
    them the remaining fields are applied to each occurrence.
    """
    appointment = get_appointment(appointment_id)
    format = data.get('format')
    if format is not None:
        _check_format(format)

    moved = []
    retokenize = []
    if edit_mode == EDIT_SERIES and appointment.in_series():
        targets = series_of(appointment)
        day_difference = data.get('day_difference') or 0
        time_differences = data.get('time_differences') or {}
        start_diff = time_differences.get('start_time_diff') or 0
        end_diff = time_differences.get('end_time_diff') or 0

        for target in targets:
            if day_difference or start_diff or end_diff:
                target.start_time, target.end_time = shift_occurrence(
                    target.start_time, target.end_time, day_difference, start_diff, end_diff)
                moved.append(target)
            if format is not None and _apply_format(target, format):
                retokenize.append(target)
            if data.get('is_completed') is not None:
                target.is_completed = data['is_completed']
    else:
        targets = [appointment]
        start = data.get('start_time') or appointment.start_time
        end = data.get('end_time') or appointment.end_time
        _check_times(start, end)
        if start != appointment.start_time or end != appointment.end_time:
            appointment.start_time, appointment.end_time = start, end
            moved.append(appointment)
        if format is not None and _apply_format(appointment, format):
            retokenize.append(appointment)
        if data.get('is_completed') is not None:
            appointment.is_completed = data['is_completed']
        if data.get('client_id') is not None and data['client_id'] != appointment.client_id:
            appointment.client_id = _get_bookable_client(data['client_id']).id

    if data.get('rate') is not None:
        _apply_rate(targets, data['rate'])

    _issue_tokens({a.id: a for a in moved + retokenize}.values())
    db.session.commit()
    logger.info(f"Updated {len(targets)} appointment(s) from appointment {appointment.id} ({edit_mode})")

    if moved:
        try:
            for target in moved:
                email_scheduler.reschedule_appointment_emails(target, now)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error rescheduling emails after updating appointment {appointment.id}: {e}")
        if appointment in moved and appointment.status != STATUS_CANCELLED:
            _send(email_service.send_appointment_updated, appointment)

    return appointment


def delete_appointment(appointment_id, delete_mode=EDIT_SINGLE):
    """
    Delete one appointment, or its series in series mode

    Queued emails (through the relationship cascade) and unpaid invoices go
    with it; paid invoices and notes are
    kept and unlinked. Returns the number of deleted appointments.
    """
    appointment = get_appointment(appointment_id)
    targets = series_of(appointment) if delete_mode == EDIT_SERIES else [appointment]
    ids = [target.id for target in targets]

    for invoice in Invoice.query.filter(Invoice.appointment_id.in_(ids)).all():
        if invoice.is_paid():
            invoice.appointment_id = None
        else:
            db.session.delete(invoice)
    Note.query.filter(Note.appointment_id.in_(ids)).update({Note.appointment_id: None}, synchronize_session=False)
    db.session.flush()

    for target in targets:
        db.session.delete(target)
    db.session.commit()
    logger.info(f"Deleted {len(ids)} appointment(s) starting from appointment {appointment_id}")
    return len(ids)


def update_appointment_status(appointment_id, status=None, paid=None):
    """Set the attendance status and, when given, the paid state of the invoice"""
    appointment = get_appointment(appointment_id)
    was_cancelled = appointment.status == STATUS_CANCELLED

    if status is not None:
        if status not in STATUSES:
            raise ValidationError(f"Invalid status: {status}")
        if status == STATUS_CANCELLED:
            appointment.cancel()
        else:
            appointment.status = status

    if paid is not None:
        invoice = appointment.invoice
        if invoice is None and paid:
            invoice = create_appointment_invoice(appointment, _default_rate(appointment.client))
        if invoice is not None:
            if paid:
                invoice.mark_paid()
            else:
                invoice.mark_unpaid()

    db.session.commit()

    if appointment.status == STATUS_CANCELLED and not was_cancelled:
        email_scheduler.cancel_appointment_emails([appointment.id])
        db.session.commit()
        _send(email_service.send_appointment_cancelled, appointment)

    return appointment


def upcoming_online_appointments(now=None):
    """Online appointments that started at most a day ago or are still to come"""
    now = now or datetime.now()
    return Appointment.query.filter(
        Appointment.format == FORMAT_ONLINE,
        Appointment.start_time >= now - timedelta(hours=24)
    ).order_by(Appointment.start_time).all()
