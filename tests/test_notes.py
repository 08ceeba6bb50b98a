"""Session notes."""
from datetime import datetime

import pytest

from therapy_practice import db
from therapy_practice.errors import NotFoundError
from therapy_practice.models.note import Note
from therapy_practice.services import notes as service

DOCUMENT = {'type': 'doc', 'content': [{'type': 'paragraph', 'content': [{'type': 'text', 'text': 'Intake'}]}]}


class TestNoteService:

    def test_create_and_update(self, make_client):
        client = make_client()
        note = service.create_note('Intake', DOCUMENT, client_id=client.id)
        assert note.content == DOCUMENT

        service.update_note(note.id, title='First session')
        assert note.title == 'First session'
        assert note.content == DOCUMENT

    def test_links_must_exist(self, app):
        with pytest.raises(NotFoundError):
            service.create_note('Orphan', client_id=404)

    def test_reassign_and_detach(self, make_client):
        first, second = make_client(), make_client()
        note = service.create_note('Intake', client_id=first.id)
        service.update_note_client(note.id, second.id)
        assert note.client_id == second.id
        service.update_note_client(note.id, None)
        assert note.client_id is None

    def test_clients_with_notes(self, make_client):
        quiet, busy = make_client(), make_client()
        older = Note(title='a', client_id=quiet.id)
        older.updated_at = datetime(2030, 1, 1)
        recent = [Note(title=str(i), client_id=busy.id) for i in range(2)]
        db.session.add_all([older] + recent)
        db.session.commit()
        for note in recent:
            note.updated_at = datetime(2030, 2, 1)
        db.session.commit()

        rows = service.clients_with_notes()
        assert [(row['id'], row['noteCount']) for row in rows] == [(busy.id, 2), (quiet.id, 1)]

    def test_get_or_create_for_appointment(self, make_appointment):
        appointment = make_appointment(start=datetime(2030, 6, 12, 10, 0))
        note, created = service.get_or_create_for_appointment(appointment.id)
        assert created is True
        assert note.title == f'{appointment.client.get_full_name()} - 12/06/2030 10:00'
        assert note.client_id == appointment.client_id

        again, created = service.get_or_create_for_appointment(appointment.id)
        assert created is False
        assert again.id == note.id

    def test_get_or_create_with_title(self, make_appointment):
        appointment = make_appointment()
        note, created = service.get_or_create_for_appointment(appointment.id, title='Intake session')
        assert created is True
        assert note.title == 'Intake session'

        again, _ = service.get_or_create_for_appointment(appointment.id, title='Other')
        assert again.title == 'Intake session'


class TestNoteRoutes:

    def test_create_with_document(self, auth_http, make_client):
        client = make_client()
        response = auth_http.post('/notes', json={'title': 'Intake', 'content': DOCUMENT, 'clientId': client.id})
        assert response.status_code == 201
        assert response.get_json()['content'] == DOCUMENT
        assert auth_http.get(f'/clients/{client.id}/notes').get_json()[0]['title'] == 'Intake'

    def test_content_must_be_a_document(self, auth_http):
        response = auth_http.post('/notes', json={'title': 'Intake', 'content': 'plain text'})
        assert response.status_code == 400

    def test_get_or_create(self, auth_http, make_appointment):
        appointment = make_appointment()
        response = auth_http.post('/notes/get-or-create', json={'appointmentId': appointment.id})
        assert response.status_code == 201
        response = auth_http.post('/notes/get-or-create', json={'appointmentId': appointment.id})
        assert response.status_code == 200
        assert response.get_json()['created'] is False

    def test_get_or_create_uses_given_title(self, auth_http, make_appointment):
        appointment = make_appointment()
        response = auth_http.post('/notes/get-or-create', json={'appointmentId': appointment.id, 'title': 'Intake'})
        assert response.status_code == 201
        assert response.get_json()['note']['title'] == 'Intake'
