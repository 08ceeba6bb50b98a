"""
Shared pytest fixtures for the therapy practice tests.

Every test gets a fresh in-memory database inside a pushed application
context, so services can be called directly and routes through the Flask
test client share the same session.
"""
from datetime import datetime, time

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from therapy_practice import create_app, db, mail
from therapy_practice.config import TestingConfig
from therapy_practice.models.appointment import Appointment, FORMAT_ONLINE
from therapy_practice.models.availability import WorkingHours
from therapy_practice.models.client import Client
from therapy_practice.models.user import User

# Monday, far enough ahead for every booking rule
NOW = datetime(2030, 6, 10, 9, 0)

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'correct-horse-battery'


@pytest.fixture(scope='session')
def rsa_keys():
    """RSA key pair used to sign and verify meeting tokens"""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def app(rsa_keys):
    app = create_app(TestingConfig)
    app.config['JITSI_PRIVATE_KEY'] = rsa_keys[0]

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def public_key(rsa_keys):
    return rsa_keys[1]


@pytest.fixture
def http(app):
    """Anonymous test client"""
    return app.test_client()


@pytest.fixture
def admin(app):
    user = User(email=ADMIN_EMAIL, name='Dr. Test', password=ADMIN_PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_http(app, admin):
    """Test client signed in as the practitioner"""
    client = app.test_client()
    response = client.post('/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def outbox(app):
    with mail.record_messages() as messages:
        yield messages


@pytest.fixture
def make_client(app):
    """Factory for confirmed clients with unique emails"""
    counter = {'n': 0}

    def _make(**overrides):
        counter['n'] += 1
        values = {
            'first_name': 'Jane',
            'last_name': f'Doe{counter["n"]}',
            'email': f'client{counter["n"]}@example.com',
            'phone_number': '0600000000',
            'confirmed': True,
        }
        values.update(overrides)
        client = Client(**values)
        db.session.add(client)
        db.session.commit()
        return client

    return _make


@pytest.fixture
def make_appointment(app, make_client):
    """Factory for confirmed appointments, one hour long by default"""

    def _make(client=None, start=None, end=None, **overrides):
        client = client or make_client()
        start = start or datetime(2030, 6, 12, 10, 0)
        end = end or start.replace(hour=start.hour + 1)
        values = {'format': FORMAT_ONLINE, 'confirmed': True}
        values.update(overrides)
        appointment = Appointment(client_id=client.id, start_time=start, end_time=end, **values)
        db.session.add(appointment)
        db.session.commit()
        return appointment

    return _make


@pytest.fixture
def weekday_hours(app):
    """Monday to Friday, 09:00-12:00 and 14:00-18:00"""
    periods = []
    for day in range(5):
        periods.append(WorkingHours(day, time(9, 0), time(12, 0)))
        periods.append(WorkingHours(day, time(14, 0), time(18, 0)))
    db.session.add_all(periods)
    db.session.commit()
    return periods
