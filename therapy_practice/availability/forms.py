from flask_wtf import FlaskForm
from wtforms import StringField, IntegerField, BooleanField
from wtforms.validators import DataRequired, InputRequired, Optional, NumberRange, Length


class WorkingHoursForm(FlaskForm):
    """One period of the weekly template"""
    day_of_week = IntegerField('Day', validators=[InputRequired(), NumberRange(min=0, max=6)])
    start_time = StringField('Start', validators=[DataRequired()])
    end_time = StringField('End', validators=[DataRequired()])


class WorkingHoursUpdateForm(FlaskForm):
    start_time = StringField('Start', validators=[Optional()])
    end_time = StringField('End', validators=[Optional()])


class VacationForm(FlaskForm):
    start_date = StringField('From', validators=[DataRequired()])
    end_date = StringField('To', validators=[DataRequired()])
    reason = StringField('Reason', validators=[Optional(), Length(max=255)])


class CheckAvailabilityForm(FlaskForm):
    start_time = StringField('Start', validators=[DataRequired()])
    end_time = StringField('End', validators=[DataRequired()])
    exclude_appointment_id = IntegerField('Ignored appointment', validators=[Optional()])


class BulkDatesForm(FlaskForm):
    closed = BooleanField('Closed')
