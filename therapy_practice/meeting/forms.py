from flask_wtf import FlaskForm
from wtforms import StringField, IntegerField, BooleanField
from wtforms.validators import DataRequired, Optional, Email, Length


class MeetingTokenForm(FlaskForm):
    """Token for the meeting room of an appointment"""
    user_name = StringField('Name', validators=[DataRequired(), Length(max=120)])
    user_email = StringField('Email', validators=[Optional(), Email()])
    is_host = BooleanField('Host')
    appointment_id = IntegerField('Appointment', validators=[DataRequired()])
    start_time = StringField('Start', validators=[Optional()])
    end_time = StringField('End', validators=[Optional()])
    meeting_name = StringField('Meeting name', validators=[Optional(), Length(max=255)])


class AttendanceForm(FlaskForm):
    appointment_id = IntegerField('Appointment', validators=[DataRequired()])
    jwt = StringField('Token', validators=[DataRequired()])
