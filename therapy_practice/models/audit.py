import json
from datetime import datetime

from therapy_practice import db
from therapy_practice.utils.json_utils import PracticeJSONEncoder


class AuditLog(db.Model):
    """Who changed what from the dashboard, and logins"""
    __tablename__ = 'audit_log'

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    actor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    action = db.Column(db.String(50), nullable=False)  # create, update, delete, approve, reject, attempt, perform
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.Integer, nullable=True)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(50), nullable=True)

    actor = db.relationship('User', backref=db.backref('audit_entries', lazy='dynamic'))

    def __init__(self, action, entity_type, entity_id=None, details=None, actor_id=None, ip_address=None):
        self.action = action
        self.entity_type = entity_type
        self.entity_id = entity_id
        # Decimals and datetimes are stored in their JSON form
        self.details = json.loads(json.dumps(details, cls=PracticeJSONEncoder)) if details is not None else None
        self.actor_id = actor_id
        self.ip_address = ip_address

    def get_details_dict(self):
        return self.details if isinstance(self.details, dict) else {}

    def to_dict(self):
        return {
            'id': self.id,
            'createdAt': self.created_at,
            'actor': self.actor.email if self.actor else None,
            'action': self.action,
            'entityType': self.entity_type,
            'entityId': self.entity_id,
            'details': self.get_details_dict(),
            'ipAddress': self.ip_address,
        }

    def __repr__(self):
        return f'<AuditLog {self.action} {self.entity_type} {self.entity_id}>'
