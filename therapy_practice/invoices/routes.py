from io import BytesIO

from flask import Blueprint, jsonify, request, send_file, current_app
from flask_login import login_required
from therapy_practice.invoices.forms import InvoiceForm, InvoiceUpdateForm
from therapy_practice.models.invoice import INVOICE_UNPAID
from therapy_practice.services import invoices as invoice_service
from therapy_practice.utils.audit import log_audit
from therapy_practice.utils.common import get_json_payload, load_form, provided_fields
from therapy_practice.utils.parsing import parse_optional_datetime, parse_int

invoices_bp = Blueprint('invoices', __name__, url_prefix='/invoices')


@invoices_bp.route('')
@login_required
def list_invoices():
    """All invoices, or those of one client with ?clientId="""
    client_id = parse_int(request.args.get('clientId'), 'clientId', default=None)
    if client_id is not None:
        invoices = invoice_service.invoices_for_client(client_id)
    else:
        invoices = invoice_service.list_invoices()
    return jsonify([invoice.to_dict() for invoice in invoices])


@invoices_bp.route('/<int:invoice_id>')
@login_required
def get_invoice(invoice_id):
    return jsonify(invoice_service.get_invoice(invoice_id).to_dict())


@invoices_bp.route('', methods=['POST'])
@login_required
def create_invoice():
    form = load_form(InvoiceForm)
    invoice = invoice_service.create_invoice(
        client_id=form.client_id.data,
        amount=form.amount.data,
        appointment_id=form.appointment_id.data,
        description=form.description.data or None,
        due_date=parse_optional_datetime(form.due_date.data, 'dueDate'),
        status=form.status.data or INVOICE_UNPAID,
        payment_method=form.payment_method.data or None,
    )
    log_audit('create', 'invoice', invoice.id, {'client_id': invoice.client_id, 'amount': str(invoice.amount)})
    return jsonify(invoice.to_dict()), 201


@invoices_bp.route('/<int:invoice_id>', methods=['PUT'])
@login_required
def update_invoice(invoice_id):
    payload = get_json_payload()
    form = load_form(InvoiceUpdateForm, payload)
    data = provided_fields(form, payload)
    for field in ('due_date', 'paid_at'):
        if field in data:
            data[field] = parse_optional_datetime(data[field], field)

    invoice = invoice_service.update_invoice(invoice_id, data)
    log_audit('update', 'invoice', invoice.id, {'fields': sorted(data.keys()), 'status': invoice.status})
    return jsonify(invoice.to_dict())


@invoices_bp.route('/<int:invoice_id>', methods=['DELETE'])
@login_required
def delete_invoice(invoice_id):
    invoice_service.delete_invoice(invoice_id)
    log_audit('delete', 'invoice', invoice_id)
    return jsonify({'message': 'Invoice deleted'})


@invoices_bp.route('/<int:invoice_id>/pdf')
@login_required
def download_invoice(invoice_id):
    invoice = invoice_service.get_invoice(invoice_id)
    pdf_bytes, filename = invoice_service.render_invoice_pdf(invoice)
    return send_file(BytesIO(pdf_bytes), mimetype='application/pdf', as_attachment=True,
                     download_name=filename)


@invoices_bp.route('/<int:invoice_id>/send', methods=['POST'])
@login_required
def send_invoice(invoice_id):
    invoice = invoice_service.send_invoice_email(invoice_id)
    log_audit('send', 'invoice', invoice.id, {'email': invoice.client.email})
    current_app.logger.info(f"Invoice {invoice.id} sent to {invoice.client.email}")
    return jsonify({'message': 'Invoice sent', 'invoice': invoice.to_dict()})


@invoices_bp.route('/<int:invoice_id>/email-sent', methods=['POST'])
@login_required
def mark_email_sent(invoice_id):
    invoice = invoice_service.mark_email_sent(invoice_id)
    return jsonify(invoice.to_dict())


@invoices_bp.route('/mark-overdue', methods=['POST'])
@login_required
def mark_overdue():
    count = invoice_service.mark_overdue_invoices()
    return jsonify({'message': f"{count} invoices marked as overdue", 'updated': count})


@invoices_bp.route('/appointment/<int:appointment_id>/send-automated', methods=['POST'])
@login_required
def send_automated(appointment_id):
    invoice = invoice_service.send_automated_invoice_email(appointment_id)
    log_audit('send', 'invoice', invoice.id, {'appointment_id': appointment_id, 'automated': True})
    return jsonify({'message': 'Invoice sent', 'invoice': invoice.to_dict()})
