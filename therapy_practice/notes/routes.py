from flask import Blueprint, jsonify
from flask_login import login_required
from therapy_practice.errors import ValidationError
from therapy_practice.notes.forms import NoteForm, NoteUpdateForm, NoteForAppointmentForm
from therapy_practice.services import notes as note_service
from therapy_practice.utils.audit import log_audit
from therapy_practice.utils.common import get_json_payload, load_form
from therapy_practice.utils.parsing import parse_int

notes_bp = Blueprint('notes', __name__, url_prefix='/notes')


def _content(payload):
    content = payload.get('content')
    if content is not None and not isinstance(content, (dict, list)):
        raise ValidationError("content must be an editor document")
    return content


@notes_bp.route('')
@login_required
def list_notes():
    return jsonify([note.to_dict() for note in note_service.list_notes()])


@notes_bp.route('/clients')
@login_required
def clients_with_notes():
    return jsonify(note_service.clients_with_notes())


@notes_bp.route('/<int:note_id>')
@login_required
def get_note(note_id):
    return jsonify(note_service.get_note(note_id).to_dict())


@notes_bp.route('', methods=['POST'])
@login_required
def create_note():
    payload = get_json_payload()
    form = load_form(NoteForm, payload)
    note = note_service.create_note(
        title=form.title.data,
        content=_content(payload),
        client_id=form.client_id.data,
        appointment_id=form.appointment_id.data,
    )
    log_audit('create', 'note', note.id, {'client_id': note.client_id, 'appointment_id': note.appointment_id})
    return jsonify(note.to_dict()), 201


@notes_bp.route('/<int:note_id>', methods=['PUT'])
@login_required
def update_note(note_id):
    payload = get_json_payload()
    form = load_form(NoteUpdateForm, payload)
    note = note_service.update_note(note_id, title=form.title.data or None, content=_content(payload))
    log_audit('update', 'note', note.id)
    return jsonify(note.to_dict())


@notes_bp.route('/<int:note_id>', methods=['DELETE'])
@login_required
def delete_note(note_id):
    note_service.delete_note(note_id)
    log_audit('delete', 'note', note_id)
    return jsonify({'message': 'Note deleted'})


@notes_bp.route('/<int:note_id>/client', methods=['PUT'])
@login_required
def update_note_client(note_id):
    """Move a note to another client, or detach it with a null clientId"""
    payload = get_json_payload()
    client_id = parse_int(payload.get('clientId', payload.get('client_id')), 'clientId', default=None)
    note = note_service.update_note_client(note_id, client_id)
    log_audit('update', 'note', note.id, {'client_id': client_id})
    return jsonify(note.to_dict())


@notes_bp.route('/appointment/<int:appointment_id>')
@login_required
def notes_for_appointment(appointment_id):
    return jsonify([note.to_dict() for note in note_service.notes_for_appointment(appointment_id)])


@notes_bp.route('/get-or-create', methods=['POST'])
@login_required
def get_or_create():
    form = load_form(NoteForAppointmentForm)
    note, created = note_service.get_or_create_for_appointment(form.appointment_id.data, form.title.data or None)
    if created:
        log_audit('create', 'note', note.id, {'appointment_id': note.appointment_id})
    return jsonify({'note': note.to_dict(), 'created': created}), 201 if created else 200
