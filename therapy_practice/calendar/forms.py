from flask_wtf import FlaskForm
from wtforms import StringField, BooleanField, DecimalField, IntegerField, SelectField
from wtforms.validators import DataRequired, Optional, NumberRange, AnyOf
from therapy_practice.models.appointment import FORMATS, FORMAT_ONLINE, STATUSES, RECURRING_TYPES

FORMAT_CHOICES = [(format, format.replace('_', ' ').title()) for format in FORMATS]


class AppointmentForm(FlaskForm):
    """Appointment or series booked from the admin calendar"""
    client_id = IntegerField('Client', validators=[DataRequired()])
    start_time = StringField('Start', validators=[DataRequired()])
    end_time = StringField('End', validators=[DataRequired()])
    rate = DecimalField('Rate', places=2, validators=[Optional(), NumberRange(min=0)])
    format = SelectField('Format', choices=FORMAT_CHOICES, default=FORMAT_ONLINE)
    is_recurring = BooleanField('Recurring')
    recurring_type = StringField('Repeats', validators=[Optional(), AnyOf(RECURRING_TYPES)])
    recurring_end_date = StringField('Repeat until', validators=[Optional()])


class InstantAppointmentForm(FlaskForm):
    client_id = IntegerField('Client', validators=[DataRequired()])
    start_time = StringField('Start', validators=[DataRequired()])
    end_time = StringField('End', validators=[DataRequired()])
    format = SelectField('Format', choices=FORMAT_CHOICES, default=FORMAT_ONLINE)
    custom_rate = DecimalField('Rate', places=2, validators=[Optional(), NumberRange(min=0)])


class AppointmentUpdateForm(FlaskForm):
    """Partial update, only the fields present in the payload are applied"""
    client_id = IntegerField('Client', validators=[Optional()])
    start_time = StringField('Start', validators=[Optional()])
    end_time = StringField('End', validators=[Optional()])
    rate = DecimalField('Rate', places=2, validators=[Optional(), NumberRange(min=0)])
    format = StringField('Format', validators=[Optional(), AnyOf(FORMATS)])
    is_completed = BooleanField('Completed')


class AppointmentStatusForm(FlaskForm):
    status = StringField('Status', validators=[Optional(), AnyOf(STATUSES)])
    paid = BooleanField('Paid')
