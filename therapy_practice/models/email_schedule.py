from therapy_practice import db
from datetime import datetime

# Scheduled email types
EMAIL_REMINDER_24H = 'REMINDER_24H'
EMAIL_REMINDER_1H = 'REMINDER_1H'
EMAIL_INVOICE_DELIVERY = 'INVOICE_DELIVERY'
EMAIL_TYPES = [EMAIL_REMINDER_24H, EMAIL_REMINDER_1H, EMAIL_INVOICE_DELIVERY]

# Delivery status
EMAIL_PENDING = 'PENDING'
EMAIL_SENT = 'SENT'
EMAIL_FAILED = 'FAILED'
EMAIL_CANCELLED = 'CANCELLED'


class EmailSchedule(db.Model):
    __tablename__ = 'email_schedules'

    id = db.Column(db.Integer, primary_key=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=False)
    email_type = db.Column(db.String(30), nullable=False)
    scheduled_for = db.Column(db.DateTime, nullable=False, index=True)
    recipient_email = db.Column(db.String(120), nullable=False)
    recipient_name = db.Column(db.String(120), nullable=False)
    subject = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=EMAIL_PENDING, index=True)
    sent_at = db.Column(db.DateTime, nullable=True)
    error_message = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, appointment_id, email_type, scheduled_for, recipient_email, recipient_name, subject):
        self.appointment_id = appointment_id
        self.email_type = email_type
        self.scheduled_for = scheduled_for
        self.recipient_email = recipient_email
        self.recipient_name = recipient_name
        self.subject = subject
        self.status = EMAIL_PENDING

    def mark_sent(self, when):
        self.status = EMAIL_SENT
        self.sent_at = when
        self.error_message = None

    def mark_failed(self, error):
        self.status = EMAIL_FAILED
        self.error_message = str(error)

    def to_dict(self):
        return {
            'id': self.id,
            'appointmentId': self.appointment_id,
            'emailType': self.email_type,
            'scheduledFor': self.scheduled_for,
            'recipientEmail': self.recipient_email,
            'status': self.status,
            'sentAt': self.sent_at,
            'errorMessage': self.error_message,
        }

    def __repr__(self):
        return f'<EmailSchedule {self.email_type} for {self.appointment_id} at {self.scheduled_for}>'
