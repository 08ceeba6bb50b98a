import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Application settings read from the environment"""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-key')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///therapy_practice.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # API forms receive JSON from the front ends
    WTF_CSRF_ENABLED = _env_bool('WTF_CSRF_ENABLED', False)

    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'localhost')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 25))
    MAIL_USE_TLS = _env_bool('MAIL_USE_TLS')
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'no-reply@localhost')

    PRACTITIONER_NAME = os.environ.get('PRACTITIONER_NAME', 'Practitioner')
    PRACTITIONER_EMAIL = os.environ.get('PRACTITIONER_EMAIL', '')
    WEBSITE_URL = os.environ.get('WEBSITE_URL', 'http://localhost:5000')

    # Jitsi as a Service (8x8) credentials
    JITSI_APP_ID = os.environ.get('JITSI_APP_ID')
    JITSI_API_KEY_ID = os.environ.get('JITSI_API_KEY_ID')
    JITSI_PRIVATE_KEY = os.environ.get('JITSI_PRIVATE_KEY')
    JITSI_DOMAIN = os.environ.get('JITSI_DOMAIN', '8x8.vc')

    CRON_SECRET = os.environ.get('CRON_SECRET')

    DEFAULT_SESSION_RATE = int(os.environ.get('DEFAULT_SESSION_RATE', 300))
    INVOICE_DUE_DAYS = int(os.environ.get('INVOICE_DUE_DAYS', 30))
    VAT_RATE = float(os.environ.get('VAT_RATE', 0.20))
    CURRENCY = os.environ.get('CURRENCY', 'MAD')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = 'practice@example.com'
    PRACTITIONER_NAME = 'Dr. Test'
    PRACTITIONER_EMAIL = 'practitioner@example.com'
    WEBSITE_URL = 'https://practice.example.com'
    JITSI_APP_ID = 'vpaas-magic-cookie-test'
    JITSI_API_KEY_ID = 'vpaas-magic-cookie-test/key'
    CRON_SECRET = 'test-cron-secret'
    LOG_LEVEL = 'WARNING'
