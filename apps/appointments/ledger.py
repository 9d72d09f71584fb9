# apps/appointments/ledger.py

from core.constants import ACTIVE_STATUSES
from core.guard import canonical_id

from .models import Appointment


def active_appointments(clinician_id, date, exclude=None):
    """Appointments of a clinician on a calendar day that still hold a slot"""
    queryset = Appointment.objects.filter(
        clinician_id=canonical_id(clinician_id),
        date=date,
        status__in=ACTIVE_STATUSES,
    )
    if exclude is not None:
        queryset = queryset.exclude(pk=exclude)
    return list(queryset.order_by('time'))


def occupancy(appointments, slot):
    """Number of appointments whose start time falls in [slot.start_time, slot.end_time)"""
    return sum(1 for appointment in appointments if slot.contains(appointment.time))
