from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError


class PracticeError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {'error': self.message}
        if self.details is not None:
            payload['details'] = self.details
        return payload


class ValidationError(PracticeError):
    status_code = 400


class AuthorizationError(PracticeError):
    status_code = 401


class MeetingAccessError(PracticeError):
    status_code = 403


class NotFoundError(PracticeError):
    status_code = 404


class ConflictError(PracticeError):
    status_code = 409


class ConfigurationError(PracticeError):
    status_code = 500


def register_error_handlers(app):
    from therapy_practice import db

    @app.errorhandler(PracticeError)
    def handle_practice_error(error):
        db.session.rollback()
        if error.status_code >= 500:
            app.logger.error(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        app.logger.exception(f"Database error: {error}")
        return jsonify({'error': 'Internal server error'}), 500

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405
