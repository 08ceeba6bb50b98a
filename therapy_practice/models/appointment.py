from therapy_practice import db
from datetime import datetime

# Appointment status constants
STATUS_NOT_YET_ATTENDED = 'NOT_YET_ATTENDED'
STATUS_ATTENDED = 'ATTENDED'
STATUS_ABSENT = 'ABSENT'
STATUS_CANCELLED = 'CANCELLED'
STATUSES = [STATUS_NOT_YET_ATTENDED, STATUS_ATTENDED, STATUS_ABSENT, STATUS_CANCELLED]

# Session formats
FORMAT_ONLINE = 'ONLINE'
FORMAT_FACE_TO_FACE = 'FACE_TO_FACE'
FORMATS = [FORMAT_ONLINE, FORMAT_FACE_TO_FACE]

# Recurrence types
RECURRING_WEEKLY = 'WEEKLY'
RECURRING_BIWEEKLY = 'BIWEEKLY'
RECURRING_MONTHLY = 'MONTHLY'
RECURRING_TYPES = [RECURRING_WEEKLY, RECURRING_BIWEEKLY, RECURRING_MONTHLY]


class Appointment(db.Model):
    __tablename__ = 'appointments'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id'), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    format = db.Column(db.String(20), nullable=False, default=FORMAT_FACE_TO_FACE)
    status = db.Column(db.String(20), nullable=False, default=STATUS_NOT_YET_ATTENDED)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False)
    recurring_type = db.Column(db.String(20), nullable=True)
    recurring_end_date = db.Column(db.DateTime, nullable=True)
    recurrent_id = db.Column(db.String(36), nullable=True, index=True)
    confirmed = db.Column(db.Boolean, nullable=False, default=False)

    # Video meeting credentials and attendance
    host_jwt = db.Column(db.Text, nullable=True)
    client_jwt = db.Column(db.Text, nullable=True)
    host_attended = db.Column(db.Boolean, nullable=False, default=False)
    client_attended = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    invoice = db.relationship('Invoice', backref='appointment', uselist=False)
    notes = db.relationship('Note', backref='appointment', lazy='dynamic')
    email_schedules = db.relationship('EmailSchedule', backref='appointment', lazy='dynamic',
                                      cascade='all, delete-orphan')

    def __init__(self, client_id, start_time, end_time, format=FORMAT_FACE_TO_FACE, confirmed=False,
                 is_recurring=False, recurring_type=None, recurring_end_date=None, recurrent_id=None):
        self.client_id = client_id
        self.start_time = start_time
        self.end_time = end_time
        self.format = format
        self.status = STATUS_NOT_YET_ATTENDED
        self.is_completed = False
        self.confirmed = confirmed
        self.is_recurring = is_recurring
        self.recurring_type = recurring_type
        self.recurring_end_date = recurring_end_date
        self.recurrent_id = recurrent_id
        self.host_attended = False
        self.client_attended = False

    def is_online(self):
        return self.format == FORMAT_ONLINE

    def in_series(self):
        return bool(self.is_recurring and self.recurrent_id)

    def cancel(self):
        self.status = STATUS_CANCELLED

    def mark_host_attended(self):
        self.host_attended = True
        if self.client_attended:
            self.status = STATUS_ATTENDED

    def mark_client_attended(self):
        self.client_attended = True
        if self.host_attended:
            self.status = STATUS_ATTENDED

    def describe_format(self):
        return 'Online session' if self.is_online() else 'In-person session'

    def to_event(self):
        """Calendar event representation used by the admin dashboard"""
        invoice = self.invoice
        return {
            'id': self.id,
            'title': self.client.get_full_name(),
            'startDate': self.start_time,
            'endDate': self.end_time,
            'description': self.describe_format(),
            'user': self.client.summary(),
            'clientId': self.client_id,
            'rate': float(invoice.amount) if invoice else 0,
            'paid': bool(invoice and invoice.is_paid()),
            'format': self.format,
            'status': self.status,
            'isCompleted': self.is_completed,
            'isRecurring': self.is_recurring,
            'recurringType': self.recurring_type,
            'recurrentId': self.recurrent_id,
            'confirmed': self.confirmed,
            'hostJwt': self.host_jwt,
            'clientJwt': self.client_jwt,
            'hostAttended': self.host_attended,
            'clientAttended': self.client_attended,
            'notes': [{'id': note.id, 'title': note.title} for note in self.notes],
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }

    def __repr__(self):
        return f'<Appointment {self.id}: {self.start_time} - {self.end_time}>'
