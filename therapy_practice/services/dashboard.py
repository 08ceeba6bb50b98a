"""Figures shown on the admin dashboard."""
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy import func

from therapy_practice import db
from therapy_practice.models.appointment import (
    Appointment, STATUS_NOT_YET_ATTENDED, STATUS_ATTENDED, STATUS_ABSENT, STATUS_CANCELLED
)
from therapy_practice.models.client import Client
from therapy_practice.models.invoice import Invoice, INVOICE_PAID, INVOICE_UNPAID, INVOICE_OVERDUE
from therapy_practice.models.note import Note

STATUS_LABELS = {
    STATUS_NOT_YET_ATTENDED: 'Upcoming',
    STATUS_ATTENDED: 'Attended',
    STATUS_ABSENT: 'Absent',
    STATUS_CANCELLED: 'Cancelled',
}
STATUS_COLORS = {
    STATUS_NOT_YET_ATTENDED: '#f59e0b',
    STATUS_ATTENDED: '#10b981',
    STATUS_ABSENT: '#ef4444',
    STATUS_CANCELLED: '#6b7280',
}
DEFAULT_COLOR = '#6b7280'

MONTHS_SHOWN = 6
RECENT_ACTIVITY_LIMIT = 10
RECENT_PER_TYPE = 5
TOP_CLIENTS = 5


def _month_bounds(moment):
    start = moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return start, start + relativedelta(months=1)


def _sum_amount(*criteria):
    total = db.session.query(func.coalesce(func.sum(Invoice.amount), 0)).filter(*criteria).scalar()
    return float(total or 0)


def get_stats(now=None):
    now = now or datetime.now()
    month_start, month_end = _month_bounds(now)

    total_appointments = Appointment.query.filter(
        Appointment.start_time >= month_start,
        Appointment.start_time < month_end
    ).count()

    # Clients with an appointment in the last 3 months
    active_clients = db.session.query(func.count(func.distinct(Appointment.client_id))).filter(
        Appointment.start_time >= now - relativedelta(months=3)
    ).scalar()

    upcoming_appointments = Appointment.query.filter(
        Appointment.start_time >= now,
        Appointment.start_time <= now + timedelta(days=7),
        Appointment.status != STATUS_CANCELLED
    ).count()

    return {
        'totalAppointments': total_appointments,
        'totalRevenue': _sum_amount(Invoice.status == INVOICE_PAID),
        'activeClients': active_clients or 0,
        'pendingInvoicesAmount': _sum_amount(Invoice.status.in_([INVOICE_UNPAID, INVOICE_OVERDUE])),
        'upcomingAppointments': upcoming_appointments,
        'overdueInvoices': Invoice.query.filter_by(status=INVOICE_OVERDUE).count(),
    }


def get_monthly_data(now=None, months=MONTHS_SHOWN):
    """Appointment count and paid revenue per month, oldest month first"""
    now = now or datetime.now()
    data = []
    for offset in range(months - 1, -1, -1):
        month_start, month_end = _month_bounds(now - relativedelta(months=offset))
        appointments = Appointment.query.filter(
            Appointment.start_time >= month_start,
            Appointment.start_time < month_end
        ).count()
        revenue = _sum_amount(
            Invoice.status == INVOICE_PAID,
            Invoice.paid_at >= month_start,
            Invoice.paid_at < month_end
        )
        data.append({'month': month_start.strftime('%b'), 'appointments': appointments, 'revenue': revenue})
    return data


def get_status_breakdown():
    rows = db.session.query(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status).all()
    return [
        {
            'status': STATUS_LABELS.get(status, status),
            'count': count,
            'color': STATUS_COLORS.get(status, DEFAULT_COLOR),
        }
        for status, count in rows
    ]


def get_today_appointments(now=None):
    now = now or datetime.now()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    appointments = Appointment.query.filter(
        Appointment.start_time >= start_of_day,
        Appointment.start_time < start_of_day + timedelta(days=1),
        Appointment.status != STATUS_CANCELLED
    ).order_by(Appointment.start_time).all()

    result = []
    for appointment in appointments:
        is_upcoming = appointment.start_time > now
        result.append({
            'id': appointment.id,
            'clientName': appointment.client.get_full_name(),
            'clientEmail': appointment.client.email,
            'startTime': appointment.start_time,
            'endTime': appointment.end_time,
            'format': appointment.format,
            'status': appointment.status,
            'isUpcoming': is_upcoming,
            'minutesUntil': round((appointment.start_time - now).total_seconds() / 60) if is_upcoming else None,
        })
    return result


def get_recent_activity(now=None):
    """Newest appointments, invoices and notes created during the last month"""
    now = now or datetime.now()
    since = now - relativedelta(months=1)
    activities = []

    for appointment in Appointment.query.filter(Appointment.created_at >= since)\
            .order_by(Appointment.created_at.desc()).limit(RECENT_PER_TYPE):
        activities.append({
            'type': 'appointment',
            'title': 'New appointment',
            'description': f"Appointment scheduled for {appointment.start_time.strftime('%d %b at %H:%M')}",
            'timestamp': appointment.created_at,
            'clientName': appointment.client.get_full_name(),
        })

    for invoice in Invoice.query.filter(Invoice.created_at >= since)\
            .order_by(Invoice.created_at.desc()).limit(RECENT_PER_TYPE):
        activities.append({
            'type': 'invoice',
            'title': 'New invoice',
            'description': f"Invoice of {float(invoice.amount):.2f} created",
            'timestamp': invoice.created_at,
            'clientName': invoice.client.get_full_name(),
        })

    for note in Note.query.filter(Note.created_at >= since)\
            .order_by(Note.created_at.desc()).limit(RECENT_PER_TYPE):
        activities.append({
            'type': 'note',
            'title': 'New note',
            'description': note.title,
            'timestamp': note.created_at,
            'clientName': note.client.get_full_name() if note.client else None,
        })

    activities.sort(key=lambda activity: activity['timestamp'], reverse=True)
    return activities[:RECENT_ACTIVITY_LIMIT]


def get_top_clients(limit=TOP_CLIENTS):
    """Clients ranked by paid revenue"""
    revenue = func.sum(Invoice.amount).label('revenue')
    rows = db.session.query(Client, revenue)\
        .join(Invoice, Invoice.client_id == Client.id)\
        .filter(Invoice.status == INVOICE_PAID)\
        .group_by(Client.id)\
        .having(func.sum(Invoice.amount) > 0)\
        .order_by(revenue.desc())\
        .limit(limit).all()

    return [
        {
            'id': client.id,
            'name': client.get_full_name(),
            'email': client.email,
            'totalRevenue': float(total),
            'appointmentCount': client.appointments.count(),
        }
        for client, total in rows
    ]


def get_dashboard(now=None):
    return {
        'stats': get_stats(now),
        'monthlyData': get_monthly_data(now),
        'statusData': get_status_breakdown(),
        'todayAppointments': get_today_appointments(now),
        'recentActivity': get_recent_activity(now),
        'topClients': get_top_clients(),
    }
