from flask_wtf import FlaskForm
from wtforms import StringField, IntegerField, BooleanField, SelectField
from wtforms.validators import DataRequired, Email, Length, Optional, NumberRange, AnyOf
from therapy_practice.models.client import CONTACT_METHODS, CONTACT_EMAIL

CONTACT_CHOICES = [(method, method.title()) for method in CONTACT_METHODS]


class ClientForm(FlaskForm):
    """Client created from the admin dashboard"""
    first_name = StringField('First Name', validators=[DataRequired(), Length(min=1, max=50)])
    last_name = StringField('Last Name', validators=[DataRequired(), Length(min=1, max=50)])
    email = StringField('Email', validators=[DataRequired(), Email(), Length(max=120)])
    phone_number = StringField('Phone Number', validators=[Optional(), Length(max=30)])
    preferred_contact = SelectField('Preferred Contact', choices=CONTACT_CHOICES, default=CONTACT_EMAIL)
    default_rate = IntegerField('Default Rate', validators=[Optional(), NumberRange(min=0)])
    send_invoice_automatically = BooleanField('Send invoices automatically')


class ClientUpdateForm(FlaskForm):
    first_name = StringField('First Name', validators=[Optional(), Length(min=1, max=50)])
    last_name = StringField('Last Name', validators=[Optional(), Length(min=1, max=50)])
    email = StringField('Email', validators=[Optional(), Email(), Length(max=120)])
    phone_number = StringField('Phone Number', validators=[Optional(), Length(max=30)])
    preferred_contact = StringField('Preferred Contact', validators=[Optional(), AnyOf(CONTACT_METHODS)])
    default_rate = IntegerField('Default Rate', validators=[Optional(), NumberRange(min=0)])
    send_invoice_automatically = BooleanField('Send invoices automatically')
