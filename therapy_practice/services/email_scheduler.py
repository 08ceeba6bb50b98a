"""Reminder and invoice emails queued per appointment, sent by the cron job."""
import logging
from datetime import datetime, timedelta

from therapy_practice import db
from therapy_practice.models.appointment import STATUS_ATTENDED
from therapy_practice.models.email_schedule import (
    EmailSchedule, EMAIL_REMINDER_24H, EMAIL_REMINDER_1H, EMAIL_INVOICE_DELIVERY,
    EMAIL_PENDING, EMAIL_CANCELLED
)
from therapy_practice.services import email_service, invoices

logger = logging.getLogger(__name__)

PROCESSING_LOOKAHEAD = timedelta(minutes=5)
DEFAULT_BATCH_SIZE = 50


def schedule_appointment_emails(appointment, include_all_reminders=True, now=None):
    """
    Queue the emails of one appointment

    The 24h reminder is only queued when ``include_all_reminders`` is set.
    The invoice goes out one hour after the session when the client asked
    for automatic invoices. Times already in the past are skipped.
    """
    start = appointment.start_time
    planned = []
    if include_all_reminders:
        planned.append((EMAIL_REMINDER_24H, start - timedelta(hours=24),
                        "Reminder: your appointment is tomorrow"))
    planned.append((EMAIL_REMINDER_1H, start - timedelta(hours=1),
                    "Reminder: your appointment starts in 1 hour"))
    planned.extend(_invoice_delivery(appointment))
    return _queue(appointment, planned, now)


def schedule_invoice_delivery(appointment, now=None):
    """Queue only the invoice email, for sessions that need no reminder"""
    return _queue(appointment, _invoice_delivery(appointment), now)


def _invoice_delivery(appointment):
    client = appointment.client
    if not client.send_invoice_automatically:
        return []
    return [(EMAIL_INVOICE_DELIVERY, appointment.end_time + timedelta(hours=1),
             f"{client.get_full_name()} - Invoice for the session of "
             f"{appointment.start_time.strftime('%d/%m/%Y')}")]


def _queue(appointment, planned, now):
    now = now or datetime.now()
    client = appointment.client
    client_name = client.get_full_name()
    scheduled = []
    for email_type, scheduled_for, subject in planned:
        if scheduled_for <= now:
            continue
        entry = EmailSchedule(
            appointment_id=appointment.id,
            email_type=email_type,
            scheduled_for=scheduled_for,
            recipient_email=client.email,
            recipient_name=client_name,
            subject=subject,
        )
        db.session.add(entry)
        scheduled.append(entry)

    if scheduled:
        logger.info(f"Scheduled {len(scheduled)} emails for appointment {appointment.id}")
    return scheduled


def cancel_appointment_emails(appointment_ids):
    """Cancel the pending emails of the given appointments; returns the count"""
    if not appointment_ids:
        return 0
    count = EmailSchedule.query.filter(
        EmailSchedule.appointment_id.in_(appointment_ids),
        EmailSchedule.status == EMAIL_PENDING
    ).update({EmailSchedule.status: EMAIL_CANCELLED}, synchronize_session=False)
    logger.info(f"Cancelled {count} scheduled emails for {len(appointment_ids)} appointment(s)")
    return count


def reschedule_appointment_emails(appointment, now=None):
    cancel_appointment_emails([appointment.id])
    scheduled = schedule_appointment_emails(appointment, include_all_reminders=True, now=now)
    logger.info(f"Rescheduled emails for appointment {appointment.id}")
    return scheduled


def _deliver(entry):
    appointment = entry.appointment
    if entry.email_type in (EMAIL_REMINDER_24H, EMAIL_REMINDER_1H):
        email_service.send_reminder(entry, appointment)
        return True

    if entry.email_type == EMAIL_INVOICE_DELIVERY:
        if appointment.status != STATUS_ATTENDED:
            return False
        invoices.send_automated_invoice_email(appointment.id)
        return True

    raise ValueError(f"Unknown email type: {entry.email_type}")


def process_due_emails(now=None, batch_size=DEFAULT_BATCH_SIZE):
    """
    Send pending emails due within the next few minutes, oldest first

    Invoice deliveries for sessions that were not attended are cancelled.
    Returns counters for the caller to report.
    """
    now = now or datetime.now()
    due = EmailSchedule.query.filter(
        EmailSchedule.status == EMAIL_PENDING,
        EmailSchedule.scheduled_for <= now + PROCESSING_LOOKAHEAD
    ).order_by(EmailSchedule.scheduled_for).limit(batch_size).all()

    results = {'processed': len(due), 'sent': 0, 'failed': 0, 'cancelled': 0}
    for entry in due:
        try:
            if _deliver(entry):
                entry.mark_sent(now)
                results['sent'] += 1
            else:
                entry.status = EMAIL_CANCELLED
                results['cancelled'] += 1
        except Exception as e:
            db.session.rollback()
            logger.error(f"Failed to send scheduled email {entry.id} ({entry.email_type}): {e}")
            entry.mark_failed(e)
            results['failed'] += 1
        db.session.commit()

    if due:
        logger.info(f"Processed {results['processed']} scheduled emails: {results}")
    return results

