from therapy_practice import db
from datetime import datetime

# Preferred contact methods
CONTACT_EMAIL = 'EMAIL'
CONTACT_PHONE = 'PHONE'
CONTACT_SMS = 'SMS'
CONTACT_WHATSAPP = 'WHATSAPP'
CONTACT_METHODS = [CONTACT_EMAIL, CONTACT_PHONE, CONTACT_SMS, CONTACT_WHATSAPP]

DEFAULT_RATE = 300


class Client(db.Model):
    __tablename__ = 'clients'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    phone_number = db.Column(db.String(30), nullable=False, default='')
    preferred_contact = db.Column(db.String(20), nullable=False, default=CONTACT_EMAIL)
    default_rate = db.Column(db.Integer, nullable=False, default=DEFAULT_RATE)
    send_invoice_automatically = db.Column(db.Boolean, nullable=False, default=True)
    confirmed = db.Column(db.Boolean, nullable=False, default=False)
    deleted = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    appointments = db.relationship('Appointment', backref='client', lazy='dynamic')
    invoices = db.relationship('Invoice', backref='client', lazy='dynamic')
    notes = db.relationship('Note', backref='client', lazy='dynamic')

    def __init__(self, first_name, last_name, email, phone_number='', preferred_contact=CONTACT_EMAIL,
                 default_rate=DEFAULT_RATE, send_invoice_automatically=True, confirmed=False):
        self.first_name = first_name
        self.last_name = last_name
        self.email = email
        self.phone_number = phone_number or ''
        self.preferred_contact = preferred_contact or CONTACT_EMAIL
        self.default_rate = default_rate
        self.send_invoice_automatically = send_invoice_automatically
        self.confirmed = confirmed
        self.deleted = False

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}"

    def summary(self):
        """Short representation embedded in appointments, invoices and notes"""
        return {
            'id': self.id,
            'name': self.get_full_name(),
            'firstName': self.first_name,
            'lastName': self.last_name,
            'email': self.email,
            'phoneNumber': self.phone_number,
            'preferredContact': self.preferred_contact,
        }

    def to_dict(self):
        data = self.summary()
        data.update({
            'defaultRate': self.default_rate,
            'sendInvoiceAutomatically': self.send_invoice_automatically,
            'confirmed': self.confirmed,
            'deleted': self.deleted,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        })
        return data

    def __repr__(self):
        return f'<Client {self.email}>'
