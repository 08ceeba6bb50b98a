from flask import Blueprint, jsonify, current_app
from therapy_practice.services.email_scheduler import process_due_emails
from therapy_practice.services.invoices import mark_overdue_invoices
from therapy_practice.utils.common import cron_auth_required

cron_bp = Blueprint('cron', __name__, url_prefix='/api/cron')


@cron_bp.route('/process-emails', methods=['GET', 'POST'])
@cron_auth_required
def process_emails():
    """Send the queued emails that are due, then flag overdue invoices"""
    results = process_due_emails()
    results['overdueInvoices'] = mark_overdue_invoices()
    current_app.logger.info(f"Cron email run: {results}")
    return jsonify({'success': True, 'results': results})
