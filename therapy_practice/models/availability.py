from therapy_practice import db
from datetime import datetime

# Days of the week constants (0 = Monday, 6 = Sunday)
MONDAY = 0
TUESDAY = 1
WEDNESDAY = 2
THURSDAY = 3
FRIDAY = 4
SATURDAY = 5
SUNDAY = 6
DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']


class WorkingHours(db.Model):
    """One open period of the weekly availability template"""
    __tablename__ = 'working_hours'

    id = db.Column(db.Integer, primary_key=True)
    day_of_week = db.Column(db.Integer, nullable=False, index=True)  # 0-6 (Monday-Sunday)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, day_of_week, start_time, end_time):
        self.day_of_week = day_of_week
        self.start_time = start_time
        self.end_time = end_time

    @classmethod
    def get_by_day(cls):
        """Returns a dictionary of periods by day of week"""
        result = {}
        for period in cls.query.order_by(cls.day_of_week, cls.start_time).all():
            result.setdefault(period.day_of_week, []).append(period)
        return result

    def to_dict(self):
        return {
            'id': self.id,
            'dayOfWeek': self.day_of_week,
            'dayName': DAY_NAMES[self.day_of_week],
            'startTime': self.start_time.strftime('%H:%M'),
            'endTime': self.end_time.strftime('%H:%M'),
        }

    def __repr__(self):
        return f'<WorkingHours: Day {self.day_of_week} - {self.start_time} to {self.end_time}>'


class AvailabilityException(db.Model):
    """Date-specific override of the weekly template. No times means the date is closed."""
    __tablename__ = 'availability_exceptions'

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=True)
    end_time = db.Column(db.Time, nullable=True)
    reason = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, date, start_time=None, end_time=None, reason=None):
        self.date = date
        self.start_time = start_time
        self.end_time = end_time
        self.reason = reason

    def is_closed(self):
        return self.start_time is None or self.end_time is None

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'startTime': self.start_time.strftime('%H:%M') if self.start_time else None,
            'endTime': self.end_time.strftime('%H:%M') if self.end_time else None,
            'reason': self.reason,
            'closed': self.is_closed(),
        }

    def __repr__(self):
        if self.is_closed():
            return f'<AvailabilityException: {self.date} - CLOSED>'
        return f'<AvailabilityException: {self.date} - {self.start_time} to {self.end_time}>'
