import logging

from therapy_practice import db
from therapy_practice.errors import NotFoundError, ConflictError
from therapy_practice.models.appointment import Appointment
from therapy_practice.models.client import Client, CONTACT_EMAIL, DEFAULT_RATE
from therapy_practice.models.invoice import Invoice
from therapy_practice.models.note import Note

logger = logging.getLogger(__name__)

CLIENT_FIELDS = ('first_name', 'last_name', 'email', 'phone_number', 'preferred_contact',
                 'default_rate', 'send_invoice_automatically')


def get_client(client_id):
    client = db.session.get(Client, client_id)
    if not client:
        raise NotFoundError("Client not found")
    return client


def list_clients():
    """Confirmed clients that were not deleted, newest first"""
    return Client.query.filter_by(confirmed=True, deleted=False).order_by(Client.created_at.desc()).all()


def create_client(first_name, last_name, email, phone_number='', preferred_contact=CONTACT_EMAIL,
                  default_rate=DEFAULT_RATE, send_invoice_automatically=True):
    """
    Create a confirmed client

    An existing client with the same email is updated instead, and restored
    when it had been deleted. Returns (client, created).
    """
    existing = Client.query.filter_by(email=email).first()
    if existing:
        existing.first_name = first_name
        existing.last_name = last_name
        existing.phone_number = phone_number or ''
        existing.preferred_contact = preferred_contact or CONTACT_EMAIL
        existing.default_rate = default_rate if default_rate is not None else DEFAULT_RATE
        existing.send_invoice_automatically = send_invoice_automatically
        existing.confirmed = True
        existing.deleted = False
        db.session.commit()
        logger.info(f"Updated existing client {existing.id} from create request")
        return existing, False

    client = Client(
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone_number=phone_number,
        preferred_contact=preferred_contact,
        default_rate=default_rate if default_rate is not None else DEFAULT_RATE,
        send_invoice_automatically=send_invoice_automatically,
        confirmed=True,
    )
    db.session.add(client)
    db.session.commit()
    return client, True


def update_client(client_id, data):
    client = get_client(client_id)

    new_email = data.get('email')
    if new_email and new_email != client.email:
        if Client.query.filter(Client.email == new_email, Client.id != client.id).first():
            raise ConflictError("Another client already uses this email")

    for field in CLIENT_FIELDS:
        if field in data and data[field] is not None:
            setattr(client, field, data[field])

    db.session.commit()
    return client


def delete_client(client_id):
    """
    Delete a client

    Clients with appointments or invoices are only flagged as deleted.
    Returns True when the row was removed.
    """
    client = get_client(client_id)
    has_history = client.appointments.count() > 0 or client.invoices.count() > 0

    if has_history:
        client.deleted = True
        db.session.commit()
        logger.info(f"Soft deleted client {client.id}")
        return False

    Note.query.filter_by(client_id=client.id).update({Note.client_id: None}, synchronize_session=False)
    db.session.delete(client)
    db.session.commit()
    logger.info(f"Deleted client {client_id}")
    return True


def client_appointments(client_id):
    get_client(client_id)
    return Appointment.query.filter_by(client_id=client_id).order_by(Appointment.start_time.desc()).all()


def client_invoices(client_id):
    get_client(client_id)
    return Invoice.query.filter_by(client_id=client_id).order_by(Invoice.created_at.desc()).all()


def client_notes(client_id):
    get_client(client_id)
    return Note.query.filter_by(client_id=client_id).order_by(Note.updated_at.desc()).all()
