import logging
from datetime import datetime, time, timedelta
from decimal import Decimal

from flask import current_app

from therapy_practice import db
from therapy_practice.errors import NotFoundError, ValidationError
from therapy_practice.models.appointment import Appointment, STATUS_ATTENDED
from therapy_practice.models.client import Client
from therapy_practice.models.invoice import (
    Invoice, INVOICE_UNPAID, INVOICE_PAID, INVOICE_OVERDUE, INVOICE_STATUSES, PAYMENT_METHODS
)
from therapy_practice.services import email_service
from therapy_practice.services.invoice_pdf import InvoicePDFGenerator, invoice_filename

logger = logging.getLogger(__name__)


def get_invoice(invoice_id):
    invoice = db.session.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def list_invoices():
    return Invoice.query.order_by(Invoice.created_at.desc()).all()


def invoices_for_client(client_id):
    return Invoice.query.filter_by(client_id=client_id).order_by(Invoice.created_at.desc()).all()


def create_invoice(client_id, amount, appointment_id=None, description=None, due_date=None,
                   status=INVOICE_UNPAID, payment_method=None):
    if not db.session.get(Client, client_id):
        raise NotFoundError("Client not found")
    if appointment_id is not None:
        if not db.session.get(Appointment, appointment_id):
            raise NotFoundError("Appointment not found")
        if Invoice.query.filter_by(appointment_id=appointment_id).first():
            raise ValidationError("This appointment already has an invoice")

    invoice = Invoice(
        client_id=client_id,
        amount=Decimal(str(amount)),
        appointment_id=appointment_id,
        description=description,
        due_date=due_date,
    )
    _apply_status(invoice, status)
    invoice.payment_method = payment_method
    db.session.add(invoice)
    db.session.commit()
    return invoice


def create_appointment_invoice(appointment, rate):
    """
    Unpaid invoice for a newly booked session

    The due date counts from the session start rather than from the booking,
    so every occurrence of a long series gets the same payment delay.
    """
    invoice = Invoice(
        client_id=appointment.client_id,
        amount=Decimal(str(rate)),
        appointment_id=appointment.id,
        due_date=appointment.start_time + timedelta(days=current_app.config['INVOICE_DUE_DAYS']),
    )
    db.session.add(invoice)
    return invoice


def _apply_status(invoice, status):
    if status not in INVOICE_STATUSES:
        raise ValidationError(f"Invalid invoice status: {status}")
    if status == INVOICE_PAID:
        invoice.mark_paid()
    elif status == INVOICE_UNPAID:
        invoice.mark_unpaid()
    else:
        invoice.status = status


def update_invoice(invoice_id, data):
    """Update an invoice; paid_at follows the PAID/UNPAID transitions"""
    invoice = get_invoice(invoice_id)

    if 'amount' in data and data['amount'] is not None:
        invoice.amount = Decimal(str(data['amount']))
    if 'description' in data:
        invoice.description = data['description']
    if 'due_date' in data:
        invoice.due_date = data['due_date']
    if 'payment_method' in data:
        if data['payment_method'] and data['payment_method'] not in PAYMENT_METHODS:
            raise ValidationError(f"Invalid payment method: {data['payment_method']}")
        invoice.payment_method = data['payment_method'] or None
    if 'email_sent' in data:
        invoice.email_sent = bool(data['email_sent'])
    if data.get('paid_at'):
        invoice.paid_at = data['paid_at']
    if data.get('status'):
        _apply_status(invoice, data['status'])

    db.session.commit()
    return invoice


def delete_invoice(invoice_id):
    invoice = get_invoice(invoice_id)
    db.session.delete(invoice)
    db.session.commit()


def mark_overdue_invoices(today=None):
    """
    Flag unpaid invoices due before today; returns how many changed

    ``today`` may be a date or a datetime. An invoice due at any time today is
    not late yet.
    """
    today = today or datetime.now()
    if isinstance(today, datetime):
        today = today.date()
    start_of_today = datetime.combine(today, time.min)
    count = Invoice.query.filter(
        Invoice.status == INVOICE_UNPAID,
        Invoice.due_date < start_of_today
    ).update({Invoice.status: INVOICE_OVERDUE}, synchronize_session=False)
    db.session.commit()
    if count:
        logger.info(f"Marked {count} invoices as overdue")
    return count


def mark_email_sent(invoice_id):
    invoice = get_invoice(invoice_id)
    invoice.email_sent = True
    db.session.commit()
    return invoice


def render_invoice_pdf(invoice):
    """Return (pdf bytes, filename)"""
    return InvoicePDFGenerator(invoice).generate(), invoice_filename(invoice)


def send_invoice_email(invoice_id):
    """Email an invoice with its PDF on the practitioner's request"""
    invoice = get_invoice(invoice_id)
    pdf_bytes, filename = render_invoice_pdf(invoice)
    email_service.send_invoice(invoice, pdf_bytes, filename)
    invoice.email_sent = True
    db.session.commit()
    return invoice


def send_automated_invoice_email(appointment_id):
    """
    Send the invoice of an attended session

    A session booked without an invoice gets one at the client's default rate.
    """
    appointment = db.session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")
    if appointment.status != STATUS_ATTENDED:
        raise ValidationError("Invoices are only sent automatically for attended appointments")

    invoice = appointment.invoice
    if not invoice:
        rate = appointment.client.default_rate or current_app.config['DEFAULT_SESSION_RATE']
        invoice = create_appointment_invoice(appointment, rate)
        db.session.flush()
        logger.info(f"Created invoice {invoice.id} for attended appointment {appointment.id}")

    pdf_bytes, filename = render_invoice_pdf(invoice)
    subject = (f"{appointment.client.get_full_name()} - Invoice for the session of "
               f"{appointment.start_time.strftime('%d/%m/%Y')}")
    email_service.send_invoice(invoice, pdf_bytes, filename, subject=subject)
    invoice.email_sent = True
    db.session.commit()
    return invoice
