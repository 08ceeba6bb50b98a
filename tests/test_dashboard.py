"""Dashboard figures."""
from datetime import datetime
from decimal import Decimal

import pytest

from therapy_practice import db
from therapy_practice.models.appointment import STATUS_CANCELLED
from therapy_practice.models.invoice import Invoice, INVOICE_OVERDUE
from therapy_practice.models.note import Note
from therapy_practice.services import dashboard
from tests.conftest import NOW


def _invoice(appointment, amount, paid_at=None, status=None):
    invoice = Invoice(client_id=appointment.client_id, amount=Decimal(amount), appointment_id=appointment.id)
    if paid_at:
        invoice.mark_paid(paid_at)
    if status:
        invoice.status = status
    db.session.add(invoice)
    return invoice


@pytest.fixture
def practice(make_client, make_appointment):
    regular, occasional = make_client(), make_client()
    soon = make_appointment(client=regular, start=datetime(2030, 6, 12, 10, 0))
    later = make_appointment(client=regular, start=datetime(2030, 6, 20, 10, 0))
    last_month = make_appointment(client=occasional, start=datetime(2030, 5, 15, 10, 0))
    cancelled = make_appointment(client=occasional, start=datetime(2030, 6, 11, 10, 0))
    cancelled.status = STATUS_CANCELLED

    _invoice(soon, '300', paid_at=datetime(2030, 6, 5, 12, 0))
    _invoice(later, '200')
    _invoice(last_month, '100', status=INVOICE_OVERDUE)
    db.session.commit()
    return regular, occasional


class TestDashboard:

    def test_stats(self, practice):
        assert dashboard.get_stats(now=NOW) == {
            'totalAppointments': 3,
            'totalRevenue': 300.0,
            'activeClients': 2,
            'pendingInvoicesAmount': 300.0,
            'upcomingAppointments': 1,
            'overdueInvoices': 1,
        }

    def test_monthly_data(self, practice):
        months = dashboard.get_monthly_data(now=NOW)
        assert [month['month'] for month in months] == ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun']
        assert months[-1] == {'month': 'Jun', 'appointments': 3, 'revenue': 300.0}
        assert months[-2] == {'month': 'May', 'appointments': 1, 'revenue': 0.0}

    def test_status_breakdown(self, practice):
        rows = {row['status']: row for row in dashboard.get_status_breakdown()}
        assert rows['Upcoming']['count'] == 3
        assert rows['Cancelled']['count'] == 1
        assert rows['Cancelled']['color'] == '#6b7280'

    def test_today(self, make_appointment):
        make_appointment(start=datetime(2030, 6, 10, 8, 0))
        make_appointment(start=datetime(2030, 6, 10, 11, 0))
        today = dashboard.get_today_appointments(now=NOW)
        assert [row['isUpcoming'] for row in today] == [False, True]
        assert today[1]['minutesUntil'] == 120
        assert today[0]['minutesUntil'] is None

    def test_top_clients(self, practice):
        regular, _ = practice
        top = dashboard.get_top_clients()
        assert [(row['id'], row['totalRevenue']) for row in top] == [(regular.id, 300.0)]
        assert top[0]['appointmentCount'] == 2

    def test_recent_activity(self, practice):
        db.session.add(Note(title='Intake', client_id=practice[0].id))
        db.session.commit()
        activity = dashboard.get_recent_activity()
        assert len(activity) == 8
        assert {row['type'] for row in activity} == {'appointment', 'invoice', 'note'}

    def test_dashboard_route(self, auth_http, practice):
        body = auth_http.get('/admin/dashboard').get_json()
        assert set(body) == {'stats', 'monthlyData', 'statusData', 'todayAppointments', 'recentActivity',
                             'topClients'}
        assert auth_http.get('/admin/dashboard/top-clients').status_code == 200
