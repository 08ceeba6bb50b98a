from flask import current_app, has_request_context, request
from flask_login import current_user

from therapy_practice import db
from therapy_practice.models.audit import AuditLog


def _request_origin():
    """(actor id, remote address) of the current request, if any"""
    if not has_request_context():
        return None, None
    actor_id = current_user.id if current_user.is_authenticated else None
    return actor_id, request.remote_addr


def log_audit(action, entity_type, entity_id=None, details=None):
    """
    Record a change made from the dashboard

    The entry is committed on its own. A failure is logged and reported with
    ``False`` so the calling request still succeeds.
    """
    actor_id, ip_address = _request_origin()
    try:
        db.session.add(AuditLog(action, entity_type, entity_id=entity_id, details=details,
                                actor_id=actor_id, ip_address=ip_address))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Could not record audit entry {action} {entity_type} {entity_id}: {e}")
        return False
    return True
