from sqlalchemy import func

from therapy_practice import db
from therapy_practice.errors import NotFoundError
from therapy_practice.models.appointment import Appointment
from therapy_practice.models.client import Client
from therapy_practice.models.note import Note
from therapy_practice.services.meeting import generate_meeting_name


def get_note(note_id):
    note = db.session.get(Note, note_id)
    if not note:
        raise NotFoundError("Note not found")
    return note


def list_notes():
    return Note.query.order_by(Note.updated_at.desc()).all()


def _check_links(client_id, appointment_id):
    if client_id is not None and not db.session.get(Client, client_id):
        raise NotFoundError("Client not found")
    if appointment_id is not None and not db.session.get(Appointment, appointment_id):
        raise NotFoundError("Appointment not found")


def create_note(title, content=None, client_id=None, appointment_id=None):
    _check_links(client_id, appointment_id)
    note = Note(title=title, content=content, client_id=client_id, appointment_id=appointment_id)
    db.session.add(note)
    db.session.commit()
    return note


def update_note(note_id, title=None, content=None):
    note = get_note(note_id)
    if title is not None:
        note.title = title
    if content is not None:
        note.content = content
    db.session.commit()
    return note


def delete_note(note_id):
    note = get_note(note_id)
    db.session.delete(note)
    db.session.commit()


def update_note_client(note_id, client_id):
    """Attach the note to another client, or detach it with None"""
    note = get_note(note_id)
    _check_links(client_id, None)
    note.client_id = client_id
    db.session.commit()
    return note


def notes_for_appointment(appointment_id):
    return Note.query.filter_by(appointment_id=appointment_id).order_by(Note.created_at.desc()).all()


def clients_with_notes():
    """Clients owning at least one note, with the note count and the latest update"""
    rows = db.session.query(
        Client,
        func.count(Note.id).label('note_count'),
        func.max(Note.updated_at).label('last_updated'),
    ).join(Note, Note.client_id == Client.id)\
        .group_by(Client.id)\
        .order_by(func.max(Note.updated_at).desc())\
        .all()

    result = []
    for client, note_count, last_updated in rows:
        data = client.summary()
        data.update({'noteCount': note_count, 'lastUpdated': last_updated})
        result.append(data)
    return result


def get_or_create_for_appointment(appointment_id, title=None):
    """
    Return the note of an appointment, creating it when missing. Returns (note, created).

    A new note takes the given title, else the meeting name of the session.
    """
    existing = Note.query.filter_by(appointment_id=appointment_id).first()
    if existing:
        return existing, False

    appointment = db.session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")

    note = Note(
        title=title or generate_meeting_name(appointment.client.get_full_name(), appointment.start_time),
        content={},
        client_id=appointment.client_id,
        appointment_id=appointment.id,
    )
    db.session.add(note)
    db.session.commit()
    return note, True
