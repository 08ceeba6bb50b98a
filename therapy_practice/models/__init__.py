# Import all models here for easier imports elsewhere
from .user import User
from .client import Client
from .appointment import Appointment
from .invoice import Invoice
from .note import Note
from .availability import WorkingHours, AvailabilityException
from .email_schedule import EmailSchedule
from .audit import AuditLog
