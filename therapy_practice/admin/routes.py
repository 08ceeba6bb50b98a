from flask import Blueprint, jsonify, current_app, request
from flask_login import login_required, current_user
from therapy_practice.services import approvals, dashboard
from therapy_practice.utils.audit import log_audit
from therapy_practice.models.audit import AuditLog
from therapy_practice.utils.parsing import parse_int

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.route('/dashboard')
@login_required
def dashboard_overview():
    """Every figure of the dashboard in one payload"""
    return jsonify(dashboard.get_dashboard())


@admin_bp.route('/dashboard/stats')
@login_required
def dashboard_stats():
    return jsonify(dashboard.get_stats())


@admin_bp.route('/dashboard/monthly')
@login_required
def dashboard_monthly():
    return jsonify(dashboard.get_monthly_data())


@admin_bp.route('/dashboard/status')
@login_required
def dashboard_status():
    return jsonify(dashboard.get_status_breakdown())


@admin_bp.route('/dashboard/today')
@login_required
def dashboard_today():
    return jsonify(dashboard.get_today_appointments())


@admin_bp.route('/dashboard/activity')
@login_required
def dashboard_activity():
    return jsonify(dashboard.get_recent_activity())


@admin_bp.route('/dashboard/top-clients')
@login_required
def dashboard_top_clients():
    return jsonify(dashboard.get_top_clients())


# Booking requests waiting for review

@admin_bp.route('/approvals/clients')
@login_required
def pending_clients():
    return jsonify([client.to_dict() for client in approvals.pending_clients()])


@admin_bp.route('/approvals/appointments')
@login_required
def pending_appointments():
    return jsonify([appointment.to_event() for appointment in approvals.pending_appointments()])


@admin_bp.route('/approvals/clients/<int:client_id>/approve', methods=['POST'])
@login_required
def approve_client(client_id):
    client = approvals.approve_client(client_id)
    log_audit('approve', 'client', client.id, {'approved_by': current_user.email})
    return jsonify({'message': 'Client approved', 'client': client.to_dict()})


@admin_bp.route('/approvals/clients/<int:client_id>/reject', methods=['POST'])
@login_required
def reject_client(client_id):
    removed = approvals.reject_client(client_id)
    log_audit('reject', 'client', client_id, {'rejected_by': current_user.email, 'removed': removed})
    return jsonify({'message': 'Client rejected', 'removed': removed})


@admin_bp.route('/approvals/appointments/<int:appointment_id>/approve', methods=['POST'])
@login_required
def approve_appointment(appointment_id):
    appointment = approvals.approve_appointment(appointment_id)
    log_audit('approve', 'appointment', appointment.id, {'approved_by': current_user.email})
    current_app.logger.info(f"Appointment {appointment.id} approved by {current_user.email}")
    return jsonify({'message': 'Appointment approved', 'appointment': appointment.to_event()})


@admin_bp.route('/approvals/appointments/<int:appointment_id>/reject', methods=['POST'])
@login_required
def reject_appointment(appointment_id):
    approvals.reject_appointment(appointment_id)
    log_audit('reject', 'appointment', appointment_id, {'rejected_by': current_user.email})
    return jsonify({'message': 'Appointment rejected'})


@admin_bp.route('/audit')
@login_required
def audit_trail():
    """Latest audit entries, optionally for one entity type"""
    limit = min(max(parse_int(request.args.get('limit'), 'limit', 50), 1), 200)
    query = AuditLog.query
    if request.args.get('entityType'):
        query = query.filter_by(entity_type=request.args['entityType'])
    entries = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify([entry.to_dict() for entry in entries])
