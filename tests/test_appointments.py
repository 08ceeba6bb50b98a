"""Calendar workflows: booking, series, edits, deletion and status."""
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from therapy_practice import db
from therapy_practice.errors import NotFoundError, ValidationError
from therapy_practice.models.appointment import (
    Appointment, FORMAT_ONLINE, FORMAT_FACE_TO_FACE, RECURRING_WEEKLY, STATUS_CANCELLED
)
from therapy_practice.models.email_schedule import (
    EmailSchedule, EMAIL_PENDING, EMAIL_CANCELLED, EMAIL_INVOICE_DELIVERY
)
from therapy_practice.models.invoice import Invoice, INVOICE_PAID
from therapy_practice.models.note import Note
from therapy_practice.services import appointments as service
from tests.conftest import NOW

START = datetime(2030, 6, 12, 10, 0)
END = datetime(2030, 6, 12, 11, 0)


@pytest.fixture
def series(make_client):
    client = make_client()
    return service.create_appointment(
        client.id, START, END, rate=300, format=FORMAT_ONLINE, is_recurring=True,
        recurring_type=RECURRING_WEEKLY, recurring_end_date=datetime(2030, 7, 3), now=NOW,
    )


class TestCreateAppointment:

    def test_single_online(self, make_client, outbox):
        client = make_client()
        [appointment] = service.create_appointment(client.id, START, END, rate=350, now=NOW)

        assert appointment.confirmed is True
        assert appointment.host_jwt and appointment.client_jwt
        assert appointment.invoice.amount == Decimal('350.00')
        assert appointment.email_schedules.count() == 3
        assert len(outbox) == 1
        assert outbox[0].recipients == [client.email]
        assert 'userType=client' in outbox[0].body

    def test_face_to_face_has_no_tokens(self, make_client):
        [appointment] = service.create_appointment(make_client().id, START, END, format=FORMAT_FACE_TO_FACE, now=NOW)
        assert appointment.host_jwt is None
        assert appointment.client_jwt is None

    def test_default_rate_comes_from_client(self, make_client):
        [appointment] = service.create_appointment(make_client(default_rate=500).id, START, END, now=NOW)
        assert appointment.invoice.amount == Decimal('500.00')

    def test_weekly_series(self, series, outbox):
        assert [a.start_time.day for a in series] == [12, 19, 26, 3]
        assert len({a.recurrent_id for a in series}) == 1
        assert all(a.in_series() for a in series)
        assert Invoice.query.count() == 4
        assert EmailSchedule.query.count() == 12

    def test_series_invoices_due_after_each_session(self, series):
        assert [a.invoice.due_date for a in series] == [a.start_time + timedelta(days=30) for a in series]

    def test_series_sends_one_confirmation(self, make_client, outbox):
        service.create_appointment(
            make_client().id, START, END, is_recurring=True, recurring_type=RECURRING_WEEKLY,
            recurring_end_date=datetime(2030, 7, 3), now=NOW,
        )
        assert len(outbox) == 1
        assert outbox[0].subject == 'Recurring appointments confirmed - 4 sessions'

    def test_recurring_needs_type_and_end(self, make_client):
        with pytest.raises(ValidationError):
            service.create_appointment(make_client().id, START, END, is_recurring=True,
                                       recurring_type=RECURRING_WEEKLY)

    def test_validation(self, make_client):
        client = make_client()
        with pytest.raises(ValidationError):
            service.create_appointment(client.id, END, START)
        with pytest.raises(ValidationError):
            service.create_appointment(client.id, START, END, format='PHONE')
        with pytest.raises(NotFoundError):
            service.create_appointment(9999, START, END)

    def test_mail_failure_does_not_undo_the_booking(self, make_client, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError('SMTP down')

        monkeypatch.setattr('therapy_practice.services.email_service.send_email', broken)
        [appointment] = service.create_appointment(make_client().id, START, END, now=NOW)
        assert db.session.get(Appointment, appointment.id) is not None


class TestInstantAppointment:

    def test_online_returns_links(self, make_client, outbox):
        client = make_client()
        appointment, links = service.create_instant_appointment(client.id, START, END, custom_rate=200, now=NOW)
        assert links['emailSent'] is True
        assert 'userType=host' in links['hostUrl']
        assert 'userType=client' in links['clientUrl']
        assert appointment.invoice.amount == Decimal('200.00')
        assert [e.email_type for e in appointment.email_schedules] == [EMAIL_INVOICE_DELIVERY]
        assert len(outbox) == 1

    def test_client_must_be_confirmed(self, make_client):
        client = make_client(confirmed=False)
        with pytest.raises(NotFoundError):
            service.create_instant_appointment(client.id, START, END, now=NOW)


class TestUpdateAppointment:

    def test_single_move(self, make_client, outbox):
        [appointment] = service.create_appointment(make_client().id, START, END, now=NOW)
        old_token = appointment.client_jwt

        service.update_appointment(appointment.id, {
            'start_time': START + timedelta(days=1),
            'end_time': END + timedelta(days=1),
        }, now=NOW)

        assert appointment.start_time == START + timedelta(days=1)
        assert appointment.client_jwt != old_token
        pending = appointment.email_schedules.filter_by(status=EMAIL_PENDING).all()
        assert min(entry.scheduled_for for entry in pending) == START
        assert outbox[-1].subject.startswith('Appointment updated')

    def test_series_shift(self, series):
        service.update_appointment(series[1].id, {
            'day_difference': 1,
            'time_differences': {'start_time_diff': 30, 'end_time_diff': 30},
        }, edit_mode=service.EDIT_SERIES, now=NOW)

        shifted = Appointment.query.order_by(Appointment.start_time).all()
        assert [a.start_time for a in shifted] == [
            datetime(2030, 6, 13, 10, 30), datetime(2030, 6, 20, 10, 30),
            datetime(2030, 6, 27, 10, 30), datetime(2030, 7, 4, 10, 30),
        ]
        assert all(a.end_time - a.start_time == timedelta(hours=1) for a in shifted)

    def test_series_field_update_without_deltas(self, series):
        service.update_appointment(series[0].id, {'format': FORMAT_FACE_TO_FACE}, edit_mode=service.EDIT_SERIES)
        for appointment in Appointment.query.all():
            assert appointment.format == FORMAT_FACE_TO_FACE
            assert appointment.client_jwt is None
            assert appointment.start_time.hour == 10

    def test_single_mode_touches_one_occurrence(self, series):
        service.update_appointment(series[0].id, {'format': FORMAT_FACE_TO_FACE})
        formats = [a.format for a in Appointment.query.order_by(Appointment.start_time)]
        assert formats == [FORMAT_FACE_TO_FACE, FORMAT_ONLINE, FORMAT_ONLINE, FORMAT_ONLINE]

    def test_rate_only_changes_unpaid_invoices(self, series):
        series[0].invoice.mark_paid()
        db.session.commit()
        service.update_appointment(series[0].id, {'rate': 400}, edit_mode=service.EDIT_SERIES)
        amounts = [a.invoice.amount for a in Appointment.query.order_by(Appointment.start_time)]
        assert amounts == [Decimal('300.00')] + [Decimal('400.00')] * 3


class TestDeleteAppointment:

    def test_single_occurrence(self, series):
        assert service.delete_appointment(series[0].id) == 1
        assert Appointment.query.count() == 3

    def test_whole_series(self, series):
        assert service.delete_appointment(series[0].id, service.EDIT_SERIES) == 4
        assert Appointment.query.count() == 0
        assert EmailSchedule.query.count() == 0
        assert Invoice.query.count() == 0

    def test_paid_invoices_and_notes_are_kept(self, make_appointment):
        appointment = make_appointment()
        invoice = Invoice(client_id=appointment.client_id, amount=Decimal('300'), appointment_id=appointment.id)
        invoice.mark_paid()
        note = Note(title='Session', client_id=appointment.client_id, appointment_id=appointment.id)
        db.session.add_all([invoice, note])
        db.session.commit()

        service.delete_appointment(appointment.id)
        db.session.expire_all()
        assert invoice.appointment_id is None
        assert note.appointment_id is None


class TestAppointmentStatus:

    def test_cancel(self, make_client, outbox):
        [appointment] = service.create_appointment(make_client().id, START, END, now=NOW)
        service.update_appointment_status(appointment.id, status=STATUS_CANCELLED)

        db.session.expire_all()
        assert appointment.status == STATUS_CANCELLED
        statuses = {entry.status for entry in appointment.email_schedules}
        assert statuses == {EMAIL_CANCELLED}
        assert outbox[-1].subject.startswith('Appointment cancelled')

    def test_cancel_twice_sends_one_email(self, make_client, outbox):
        [appointment] = service.create_appointment(make_client().id, START, END, now=NOW)
        sent = len(outbox)
        service.update_appointment_status(appointment.id, status=STATUS_CANCELLED)
        service.update_appointment_status(appointment.id, status=STATUS_CANCELLED)
        assert len(outbox) == sent + 1

    def test_paid_creates_missing_invoice(self, make_appointment):
        appointment = make_appointment()
        service.update_appointment_status(appointment.id, paid=True)
        assert appointment.invoice.status == INVOICE_PAID

    def test_invalid_status(self, make_appointment):
        with pytest.raises(ValidationError):
            service.update_appointment_status(make_appointment().id, status='DONE')

    def test_upcoming_online(self, make_appointment):
        recent = make_appointment(start=NOW - timedelta(hours=2))
        make_appointment(start=NOW - timedelta(days=2))
        make_appointment(start=NOW + timedelta(hours=2), format=FORMAT_FACE_TO_FACE)
        assert service.upcoming_online_appointments(now=NOW) == [recent]


class TestCalendarRoutes:

    def test_create_series_and_list(self, auth_http, make_client):
        client = make_client()
        response = auth_http.post('/calendar/appointments', json={
            'clientId': client.id,
            'startTime': '2030-06-12T10:00:00',
            'endTime': '2030-06-12T11:00:00',
            'rate': 300,
            'format': FORMAT_ONLINE,
            'isRecurring': True,
            'recurringType': RECURRING_WEEKLY,
            'recurringEndDate': '2030-06-26',
        })
        assert response.status_code == 201
        assert len(response.get_json()['appointments']) == 3

        events = auth_http.get('/calendar/appointments').get_json()
        assert len(events) == 3
        assert events[0]['title'] == client.get_full_name()
        assert events[0]['description'] == 'Online session'
        assert events[0]['rate'] == 300.0
        assert events[0]['paid'] is False

    def test_create_validation(self, auth_http):
        response = auth_http.post('/calendar/appointments', json={'startTime': '2030-06-12T10:00:00'})
        assert response.status_code == 400
        assert 'client_id' in response.get_json()['details']

    def test_not_recurring_when_flag_false(self, auth_http, make_client):
        response = auth_http.post('/calendar/appointments', json={
            'clientId': make_client().id,
            'startTime': '2030-06-12T10:00:00',
            'endTime': '2030-06-12T11:00:00',
            'isRecurring': False,
        })
        assert response.status_code == 201
        assert len(response.get_json()['appointments']) == 1

    def test_series_edit_and_delete(self, auth_http, series):
        response = auth_http.put(f'/calendar/appointments/{series[0].id}?editMode=series',
                                 json={'dayDifference': 2})
        assert response.status_code == 200
        assert Appointment.query.order_by(Appointment.start_time).first().start_time == START + timedelta(days=2)

        response = auth_http.delete(f'/calendar/appointments/{series[0].id}?deleteMode=series')
        assert response.get_json()['deleted'] == 4

    def test_status_route(self, auth_http, make_appointment):
        appointment = make_appointment()
        response = auth_http.patch(f'/calendar/appointments/{appointment.id}/status', json={'paid': True})
        assert response.status_code == 200
        assert response.get_json()['appointment']['paid'] is True

    def test_unknown_appointment(self, auth_http):
        assert auth_http.delete('/calendar/appointments/999').status_code == 404

    def test_bad_mode(self, auth_http, make_appointment):
        response = auth_http.delete(f'/calendar/appointments/{make_appointment().id}?deleteMode=all')
        assert response.status_code == 400
