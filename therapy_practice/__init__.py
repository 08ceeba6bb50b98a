# Import important modules and create app package
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_mail import Mail
import logging

from therapy_practice.config import Config

# Initialize extensions
db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
mail = Mail()


def create_app(config_class=Config):
    # Initialize app
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(app.config['LOG_LEVEL'])

    from therapy_practice.utils.json_utils import PracticeJSONProvider
    app.json = PracticeJSONProvider(app)

    # Initialize extensions with app
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # Register blueprints
    from therapy_practice.auth.routes import auth_bp
    from therapy_practice.admin.routes import admin_bp
    from therapy_practice.calendar.routes import calendar_bp
    from therapy_practice.clients.routes import clients_bp
    from therapy_practice.availability.routes import availability_bp
    from therapy_practice.invoices.routes import invoices_bp
    from therapy_practice.notes.routes import notes_bp
    from therapy_practice.meeting.routes import meeting_bp
    from therapy_practice.booking.routes import booking_bp
    from therapy_practice.cron.routes import cron_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(calendar_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(availability_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(notes_bp)
    app.register_blueprint(meeting_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(cron_bp)

    from therapy_practice.errors import register_error_handlers
    register_error_handlers(app)

    from therapy_practice.cli import register_commands
    register_commands(app)

    # Create database tables
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
        with app.app_context():
            db.create_all()
            app.logger.debug("SQLite database tables created")

    return app
