from therapy_practice import db
from datetime import datetime

# Invoice status constants
INVOICE_UNPAID = 'UNPAID'
INVOICE_PAID = 'PAID'
INVOICE_OVERDUE = 'OVERDUE'
INVOICE_STATUSES = [INVOICE_UNPAID, INVOICE_PAID, INVOICE_OVERDUE]

PAYMENT_METHODS = ['CASH', 'CARD', 'BANK_TRANSFER', 'CHECK', 'OTHER']


class Invoice(db.Model):
    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id'), nullable=False)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=True, unique=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=INVOICE_UNPAID)
    payment_method = db.Column(db.String(20), nullable=True)
    description = db.Column(db.String(255), nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    email_sent = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, client_id, amount, appointment_id=None, description=None, due_date=None):
        self.client_id = client_id
        self.amount = amount
        self.appointment_id = appointment_id
        self.description = description
        self.due_date = due_date
        self.status = INVOICE_UNPAID
        self.email_sent = False

    def is_paid(self):
        return self.status == INVOICE_PAID

    def mark_paid(self, when=None):
        self.status = INVOICE_PAID
        if not self.paid_at:
            self.paid_at = when or datetime.now()

    def mark_unpaid(self):
        self.status = INVOICE_UNPAID
        self.paid_at = None

    def number(self):
        """Human-facing invoice number printed on the PDF"""
        return f"{self.id:08d}"[-8:]

    def to_dict(self):
        appointment = self.appointment
        return {
            'id': self.id,
            'number': self.number(),
            'clientId': self.client_id,
            'appointmentId': self.appointment_id,
            'amount': float(self.amount),
            'status': self.status,
            'paymentMethod': self.payment_method,
            'description': self.description,
            'dueDate': self.due_date,
            'paidAt': self.paid_at,
            'emailSent': self.email_sent,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'client': {
                'id': self.client.id,
                'firstName': self.client.first_name,
                'lastName': self.client.last_name,
                'email': self.client.email,
            },
            'appointment': {
                'id': appointment.id,
                'startTime': appointment.start_time,
                'endTime': appointment.end_time,
            } if appointment else None,
        }

    def __repr__(self):
        return f'<Invoice {self.id}: {self.amount} {self.status}>'
