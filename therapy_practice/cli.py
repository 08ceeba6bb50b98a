"""Management commands registered on the ``flask`` command line."""
import click

from therapy_practice import db
from therapy_practice.models.user import User


def register_commands(app):

    @app.cli.command('create-admin')
    @click.argument('email')
    @click.argument('password')
    @click.option('--name', default=None, help="Display name, defaults to PRACTITIONER_NAME.")
    def create_admin(email, password, name):
        """Create the practitioner account, or reset its password"""
        user = User.query.filter_by(email=email).first()
        if user:
            user.set_password(password)
            if name:
                user.name = name
            db.session.commit()
            click.echo(f"Password updated for {email}")
            return

        user = User(email=email, name=name or app.config['PRACTITIONER_NAME'], password=password)
        db.session.add(user)
        db.session.commit()
        click.echo(f"Created admin {email}")

    @app.cli.command('process-emails')
    @click.option('--batch-size', default=50, show_default=True, help="Maximum number of emails sent.")
    def process_emails(batch_size):
        """Send the queued emails that are due and flag overdue invoices"""
        from therapy_practice.services.email_scheduler import process_due_emails
        from therapy_practice.services.invoices import mark_overdue_invoices

        results = process_due_emails(batch_size=batch_size)
        overdue = mark_overdue_invoices()
        click.echo(
            f"Processed {results['processed']} emails: {results['sent']} sent, "
            f"{results['failed']} failed, {results['cancelled']} cancelled. "
            f"{overdue} invoices marked overdue."
        )
