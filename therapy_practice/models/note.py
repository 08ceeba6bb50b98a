from therapy_practice import db
from datetime import datetime


class Note(db.Model):
    """Session note written in the rich-text editor, stored as its JSON document"""
    __tablename__ = 'notes'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False, default='Untitled')
    content = db.Column(db.JSON, nullable=False, default=dict)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id'), nullable=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, title='Untitled', content=None, client_id=None, appointment_id=None):
        self.title = title or 'Untitled'
        self.content = content if content is not None else {}
        self.client_id = client_id
        self.appointment_id = appointment_id

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'content': self.content,
            'clientId': self.client_id,
            'appointmentId': self.appointment_id,
            'client': self.client.summary() if self.client else None,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }

    def __repr__(self):
        return f'<Note {self.id}: {self.title}>'
