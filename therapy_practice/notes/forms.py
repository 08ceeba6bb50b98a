from flask_wtf import FlaskForm
from wtforms import StringField, IntegerField
from wtforms.validators import DataRequired, Optional, Length


class NoteForm(FlaskForm):
    """Title and links of a note; the editor document travels as nested JSON"""
    title = StringField('Title', validators=[DataRequired(), Length(max=255)])
    client_id = IntegerField('Client', validators=[Optional()])
    appointment_id = IntegerField('Appointment', validators=[Optional()])


class NoteUpdateForm(FlaskForm):
    title = StringField('Title', validators=[Optional(), Length(min=1, max=255)])


class NoteForAppointmentForm(FlaskForm):
    appointment_id = IntegerField('Appointment', validators=[DataRequired()])
    title = StringField('Title', validators=[Optional(), Length(max=255)])
