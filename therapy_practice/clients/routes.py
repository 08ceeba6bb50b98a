from flask import Blueprint, jsonify
from flask_login import login_required
from therapy_practice.clients.forms import ClientForm, ClientUpdateForm
from therapy_practice.services import clients as client_service
from therapy_practice.utils.audit import log_audit
from therapy_practice.utils.common import get_json_payload, load_form, provided_fields

clients_bp = Blueprint('clients', __name__, url_prefix='/clients')


@clients_bp.route('')
@login_required
def list_clients():
    return jsonify([client.to_dict() for client in client_service.list_clients()])


@clients_bp.route('/<int:client_id>')
@login_required
def get_client(client_id):
    return jsonify(client_service.get_client(client_id).to_dict())


@clients_bp.route('', methods=['POST'])
@login_required
def create_client():
    payload = get_json_payload()
    form = load_form(ClientForm, payload)
    provided = provided_fields(form, payload)

    client, created = client_service.create_client(
        first_name=form.first_name.data,
        last_name=form.last_name.data,
        email=form.email.data,
        phone_number=form.phone_number.data or '',
        preferred_contact=form.preferred_contact.data,
        default_rate=form.default_rate.data,
        send_invoice_automatically=provided.get('send_invoice_automatically', True),
    )
    log_audit('create' if created else 'restore', 'client', client.id, {'email': client.email})
    return jsonify(client.to_dict()), 201 if created else 200


@clients_bp.route('/<int:client_id>', methods=['PUT'])
@login_required
def update_client(client_id):
    payload = get_json_payload()
    form = load_form(ClientUpdateForm, payload)
    data = provided_fields(form, payload)
    client = client_service.update_client(client_id, data)
    log_audit('update', 'client', client.id, {'fields': sorted(data.keys())})
    return jsonify(client.to_dict())


@clients_bp.route('/<int:client_id>', methods=['DELETE'])
@login_required
def delete_client(client_id):
    removed = client_service.delete_client(client_id)
    log_audit('delete', 'client', client_id, {'soft': not removed})
    message = 'Client deleted' if removed else 'Client archived, appointments and invoices are kept'
    return jsonify({'message': message, 'removed': removed})


@clients_bp.route('/<int:client_id>/appointments')
@login_required
def client_appointments(client_id):
    return jsonify([a.to_event() for a in client_service.client_appointments(client_id)])


@clients_bp.route('/<int:client_id>/invoices')
@login_required
def client_invoices(client_id):
    return jsonify([invoice.to_dict() for invoice in client_service.client_invoices(client_id)])


@clients_bp.route('/<int:client_id>/notes')
@login_required
def client_notes(client_id):
    return jsonify([note.to_dict() for note in client_service.client_notes(client_id)])
