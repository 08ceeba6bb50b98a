from flask_wtf import FlaskForm
from wtforms import StringField, IntegerField, DecimalField, BooleanField
from wtforms.validators import DataRequired, InputRequired, Optional, NumberRange, Length, AnyOf
from therapy_practice.models.invoice import INVOICE_STATUSES, INVOICE_UNPAID, PAYMENT_METHODS


class InvoiceForm(FlaskForm):
    """Invoice created by hand from the dashboard"""
    client_id = IntegerField('Client', validators=[DataRequired()])
    amount = DecimalField('Amount', places=2, validators=[InputRequired(), NumberRange(min=0)])
    appointment_id = IntegerField('Appointment', validators=[Optional()])
    description = StringField('Description', validators=[Optional(), Length(max=255)])
    due_date = StringField('Due date', validators=[Optional()])
    status = StringField('Status', default=INVOICE_UNPAID, validators=[Optional(), AnyOf(INVOICE_STATUSES)])
    payment_method = StringField('Payment method', validators=[Optional(), AnyOf(PAYMENT_METHODS)])


class InvoiceUpdateForm(FlaskForm):
    amount = DecimalField('Amount', places=2, validators=[Optional(), NumberRange(min=0)])
    description = StringField('Description', validators=[Optional(), Length(max=255)])
    due_date = StringField('Due date', validators=[Optional()])
    paid_at = StringField('Paid at', validators=[Optional()])
    status = StringField('Status', validators=[Optional(), AnyOf(INVOICE_STATUSES)])
    payment_method = StringField('Payment method', validators=[Optional(), AnyOf(PAYMENT_METHODS)])
    email_sent = BooleanField('Email sent')
