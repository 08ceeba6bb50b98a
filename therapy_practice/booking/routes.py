from flask import Blueprint, jsonify, request, current_app
from therapy_practice.booking.forms import BookingForm, ContactForm
from therapy_practice.services import availability as availability_service
from therapy_practice.services import email_service
from therapy_practice.services.booking import request_appointment
from therapy_practice.utils.audit import log_audit
from therapy_practice.utils.common import load_form
from therapy_practice.utils.parsing import parse_date, parse_time

booking_bp = Blueprint('booking', __name__)


@booking_bp.route('/api/appointments', methods=['POST'])
def book_appointment():
    """Record a booking request; the practitioner approves it later"""
    form = load_form(BookingForm)
    appointment, client = request_appointment(
        first_name=form.first_name.data,
        last_name=form.last_name.data,
        email=form.email.data,
        phone_number=form.phone_number.data,
        day=parse_date(form.appointment_date.data, 'appointmentDate'),
        start=parse_time(form.appointment_time.data, 'appointmentTime'),
        format=form.format.data,
        preferred_contact=form.preferred_contact.data,
    )
    log_audit('request', 'appointment', appointment.id, {'client_id': client.id, 'source': 'website'})

    return jsonify({
        'message': 'Appointment request received',
        'appointment': {
            'id': appointment.id,
            'startTime': appointment.start_time,
            'endTime': appointment.end_time,
            'format': appointment.format,
            'confirmed': appointment.confirmed,
        },
        'client': client.summary(),
    }), 201


@booking_bp.route('/api/availability')
def public_availability():
    """Bookable slots for a date, a week, or the next three months"""
    if request.args.get('date'):
        day = parse_date(request.args['date'])
        return jsonify(availability_service.public_day_availability(day))
    if request.args.get('weekStartDate'):
        week_start = parse_date(request.args['weekStartDate'], 'weekStartDate')
        return jsonify(availability_service.public_week_availability(week_start))
    return jsonify(availability_service.public_range_availability())


@booking_bp.route('/api/contact', methods=['POST'])
def contact():
    form = load_form(ContactForm)
    try:
        email_service.send_contact_message(
            first_name=form.first_name.data,
            last_name=form.last_name.data,
            email=form.email.data,
            subject=form.subject.data,
            message=form.message.data,
            phone=form.phone.data or None,
        )
    except Exception as e:
        current_app.logger.error(f"Error forwarding contact message from {form.email.data}: {e}")
        return jsonify({'error': 'Your message could not be sent, please try again later'}), 500

    return jsonify({'message': 'Message sent'})
