from flask_wtf import FlaskForm
from wtforms import StringField, SelectField, TextAreaField
from wtforms.validators import DataRequired, Email, Length, Optional
from therapy_practice.models.appointment import FORMATS, FORMAT_ONLINE
from therapy_practice.models.client import CONTACT_METHODS, CONTACT_EMAIL


class BookingForm(FlaskForm):
    """Appointment request sent from the public website"""
    first_name = StringField('First Name', validators=[DataRequired(), Length(min=1, max=50)])
    last_name = StringField('Last Name', validators=[DataRequired(), Length(min=1, max=50)])
    email = StringField('Email', validators=[DataRequired(), Email(), Length(max=120)])
    phone_number = StringField('Phone Number', validators=[DataRequired(), Length(min=6, max=30)])
    appointment_date = StringField('Date', validators=[DataRequired()])
    appointment_time = StringField('Time', validators=[DataRequired()])
    format = SelectField('Format', choices=[(f, f) for f in FORMATS], default=FORMAT_ONLINE)
    preferred_contact = SelectField('Preferred Contact', choices=[(m, m) for m in CONTACT_METHODS],
                                    default=CONTACT_EMAIL)


class ContactForm(FlaskForm):
    first_name = StringField('First Name', validators=[DataRequired(), Length(max=50)])
    last_name = StringField('Last Name', validators=[DataRequired(), Length(max=50)])
    email = StringField('Email', validators=[DataRequired(), Email(), Length(max=120)])
    phone = StringField('Phone', validators=[Optional(), Length(max=30)])
    subject = StringField('Subject', validators=[DataRequired(), Length(max=200)])
    message = TextAreaField('Message', validators=[DataRequired(), Length(min=10, max=5000)])
