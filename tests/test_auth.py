"""Practitioner sign-in and management commands."""
from therapy_practice import db
from therapy_practice.models.audit import AuditLog
from therapy_practice.models.user import User
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD


class TestLogin:

    def test_login_and_me(self, http, admin):
        response = http.post('/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
        assert response.status_code == 200
        assert response.get_json()['user']['email'] == ADMIN_EMAIL
        assert http.get('/auth/me').get_json()['user']['name'] == 'Dr. Test'

    def test_wrong_password(self, http, admin):
        response = http.post('/auth/login', json={'email': ADMIN_EMAIL, 'password': 'nope'})
        assert response.status_code == 401
        assert AuditLog.query.filter_by(action='attempt').count() == 1

    def test_inactive_account(self, http, admin):
        admin.is_active = False
        db.session.commit()
        response = http.post('/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
        assert response.status_code == 401

    def test_missing_fields(self, http):
        response = http.post('/auth/login', json={'email': ADMIN_EMAIL})
        assert response.status_code == 400
        assert 'password' in response.get_json()['details']

    def test_logout(self, auth_http):
        assert auth_http.post('/auth/logout').status_code == 200
        assert auth_http.get('/auth/me').status_code == 401

    def test_login_is_audited(self, auth_http):
        entry = AuditLog.query.filter_by(action='perform', entity_type='login').one()
        assert entry.get_details_dict()['email'] == ADMIN_EMAIL


class TestCommands:

    def test_create_admin(self, app):
        result = app.test_cli_runner().invoke(args=['create-admin', 'owner@example.com', 'secret-pass'])
        assert 'Created admin owner@example.com' in result.output
        user = User.query.filter_by(email='owner@example.com').one()
        assert user.check_password('secret-pass')
        assert user.name == 'Dr. Test'

    def test_create_admin_resets_password(self, app, admin):
        app.test_cli_runner().invoke(args=['create-admin', ADMIN_EMAIL, 'new-password'])
        db.session.expire_all()
        assert db.session.get(User, admin.id).check_password('new-password')

    def test_process_emails(self, app):
        result = app.test_cli_runner().invoke(args=['process-emails'])
        assert result.exit_code == 0
        assert 'Processed 0 emails' in result.output


class TestAuditTrail:

    def test_lists_newest_first(self, auth_http, make_client):
        client = make_client(confirmed=False)
        auth_http.post(f'/admin/approvals/clients/{client.id}/approve')

        entries = auth_http.get('/admin/audit').get_json()
        assert [entry['entityType'] for entry in entries] == ['client', 'login']
        assert entries[0]['actor'] == ADMIN_EMAIL
        assert entries[0]['details'] == {'approved_by': ADMIN_EMAIL}

    def test_filter_and_limit(self, auth_http):
        entries = auth_http.get('/admin/audit?entityType=client').get_json()
        assert entries == []
        assert auth_http.get('/admin/audit?limit=abc').status_code == 400
