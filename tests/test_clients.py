"""Client directory."""
import pytest

from therapy_practice import db
from therapy_practice.errors import ConflictError, NotFoundError
from therapy_practice.models.client import Client, CONTACT_WHATSAPP
from therapy_practice.models.note import Note
from therapy_practice.services import clients as service


class TestClientService:

    def test_create(self, app):
        client, created = service.create_client('Ada', 'Lovelace', 'ada@example.com', '0611111111')
        assert created is True
        assert client.confirmed is True
        assert client.default_rate == 300

    def test_existing_email_is_updated_and_restored(self, make_client):
        existing = make_client(email='ada@example.com', confirmed=False)
        existing.deleted = True
        db.session.commit()

        client, created = service.create_client('Ada', 'King', 'ada@example.com', default_rate=400)
        assert created is False
        assert client.id == existing.id
        assert client.last_name == 'King'
        assert client.deleted is False
        assert client.confirmed is True
        assert client.default_rate == 400

    def test_list_hides_pending_and_deleted(self, make_client):
        visible = make_client()
        make_client(confirmed=False)
        deleted = make_client()
        deleted.deleted = True
        db.session.commit()
        assert service.list_clients() == [visible]

    def test_update(self, make_client):
        client = make_client()
        service.update_client(client.id, {'preferred_contact': CONTACT_WHATSAPP, 'default_rate': 350})
        assert client.preferred_contact == CONTACT_WHATSAPP
        assert client.default_rate == 350

    def test_update_rejects_taken_email(self, make_client):
        first, second = make_client(), make_client()
        with pytest.raises(ConflictError):
            service.update_client(second.id, {'email': first.email})

    def test_delete_without_history(self, make_client):
        client = make_client()
        note = Note(title='Intake', client_id=client.id)
        db.session.add(note)
        db.session.commit()

        assert service.delete_client(client.id) is True
        assert db.session.get(Client, client.id) is None
        db.session.expire_all()
        assert note.client_id is None

    def test_delete_with_history_is_soft(self, make_appointment):
        appointment = make_appointment()
        client = appointment.client
        assert service.delete_client(client.id) is False
        assert client.deleted is True

    def test_unknown_client(self, app):
        with pytest.raises(NotFoundError):
            service.client_appointments(42)


class TestClientRoutes:

    def test_crud(self, auth_http):
        response = auth_http.post('/clients', json={
            'firstName': 'Ada', 'lastName': 'Lovelace', 'email': 'ada@example.com',
            'phoneNumber': '0611111111', 'sendInvoiceAutomatically': False,
        })
        assert response.status_code == 201
        body = response.get_json()
        assert body['sendInvoiceAutomatically'] is False
        assert body['preferredContact'] == 'EMAIL'

        response = auth_http.put(f"/clients/{body['id']}", json={'lastName': 'King'})
        assert response.get_json()['lastName'] == 'King'
        assert response.get_json()['sendInvoiceAutomatically'] is False

        assert [c['email'] for c in auth_http.get('/clients').get_json()] == ['ada@example.com']

        response = auth_http.delete(f"/clients/{body['id']}")
        assert response.get_json()['removed'] is True

    def test_automatic_invoices_default_on(self, auth_http):
        response = auth_http.post('/clients', json={'firstName': 'Ada', 'lastName': 'L', 'email': 'a@example.com'})
        assert response.get_json()['sendInvoiceAutomatically'] is True

    def test_invalid_email(self, auth_http):
        response = auth_http.post('/clients', json={'firstName': 'Ada', 'lastName': 'L', 'email': 'not-an-email'})
        assert response.status_code == 400
        assert 'email' in response.get_json()['details']

    def test_related_collections(self, auth_http, make_appointment):
        appointment = make_appointment()
        response = auth_http.get(f'/clients/{appointment.client_id}/appointments')
        assert [event['id'] for event in response.get_json()] == [appointment.id]
        assert auth_http.get(f'/clients/{appointment.client_id}/invoices').get_json() == []
