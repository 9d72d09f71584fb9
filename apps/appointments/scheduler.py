# apps/appointments/scheduler.py
"""
Appointment lifecycle.

Status machine:
    Scheduled    -> InProgress | Rescheduled | Completed | Cancelled
    Rescheduled  -> InProgress | Rescheduled | Completed | Cancelled
    InProgress   -> Completed | Cancelled
    Completed, Cancelled: terminal

Booking writes (book, clinician_reschedule, patient_reschedule) recompute
availability and write inside slot_guard, so the capacity check and the write
commit as one unit per (clinician, date, slot start). A database conflict during
such a write surfaces as SlotUnavailable and is never retried here.
"""

import logging
from functools import partial

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone

from core.constants import (
    AppointmentActions, AppointmentStatus,
    RESCHEDULABLE_STATUSES, UserRoles
)
from core.exceptions import AuthError, InvalidTransition, NotFound, SlotUnavailable, ValidationError
from core.guard import can_book, can_mutate_appointment, canonical_id
from core.utils import add_minutes, format_time, parse_date, parse_time, to_minutes

from apps.schedules.services import get_clinician, lookup_template

from .availability import compute_available_slots
from .locks import slot_guard
from .models import Appointment
from .signals import appointment_booked, appointment_rescheduled, appointment_status_changed

logger = logging.getLogger(__name__)

User = get_user_model()

S = AppointmentStatus

TRANSITIONS = {
    S.SCHEDULED: {S.IN_PROGRESS, S.RESCHEDULED, S.COMPLETED, S.CANCELLED},
    S.RESCHEDULED: {S.IN_PROGRESS, S.RESCHEDULED, S.COMPLETED, S.CANCELLED},
    S.IN_PROGRESS: {S.COMPLETED, S.CANCELLED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
}

# Targets reachable through set_status; Rescheduled only through a reschedule
DIRECT_STATUS_TARGETS = {S.COMPLETED, S.CANCELLED, S.IN_PROGRESS}

MINUTES_PER_DAY = 24 * 60


def can_transition(current, target):
    return target in TRANSITIONS.get(current, set())


# ===========================================
# HELPERS
# ===========================================
def normalize_duration(value):
    """
    Booking length as sent by callers: None (whole slot), a positive number of
    minutes, or an "HH:MM" end time. Returns None, an int or a datetime.time.
    """
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError({'duration': 'Duration must be minutes or an HH:MM end time'})
    if isinstance(value, int):
        minutes = value
    elif isinstance(value, str) and value.strip().isdigit():
        minutes = int(value.strip())
    else:
        return parse_time(value, 'duration')

    if minutes <= 0:
        raise ValidationError({'duration': 'Duration must be a positive number of minutes'})
    return minutes


def resolve_end_time(start, duration, slot):
    if duration is None:
        return slot.end_time
    if isinstance(duration, int):
        if to_minutes(start) + duration > MINUTES_PER_DAY:
            raise ValidationError({'duration': 'Appointment cannot run past midnight'})
        return add_minutes(start, duration)
    if duration <= start:
        raise ValidationError({'duration': 'End time must be after the start time'})
    return duration


def _match_slot(slots, start, duration=None):
    """The free slot starting at `start` and the booking's end time within it"""
    for slot in slots:
        if slot.start_time != start:
            continue
        end_time = resolve_end_time(start, duration, slot)
        if end_time > slot.end_time:
            raise SlotUnavailable(
                f"{format_time(start)}-{format_time(end_time)} does not fit the "
                f"{format_time(slot.start_time)}-{format_time(slot.end_time)} slot"
            )
        return slot, end_time
    raise SlotUnavailable(f"Slot {format_time(start)} is not available")


def get_patient(patient_id):
    pk = canonical_id(patient_id)
    patient = None
    if pk is not None:
        patient = User.objects.filter(pk=int(pk), role=UserRoles.PATIENT, is_active=True).first()
    if patient is None:
        raise NotFound(f"Patient '{patient_id}' not found")
    return patient


def get_appointment(appointment_id, for_update=False):
    pk = canonical_id(appointment_id)
    queryset = Appointment.objects.select_related('clinician', 'patient')
    if for_update:
        queryset = queryset.select_for_update(of=('self',))
    appointment = queryset.filter(pk=int(pk)).first() if pk is not None else None
    if appointment is None:
        raise NotFound(f"Appointment '{appointment_id}' not found")
    return appointment


def _authorize(caller, appointment, action):
    if not can_mutate_appointment(caller, appointment, action):
        raise AuthError('Not authorized to modify this appointment')


def _send_on_commit(signal, appointment, **kwargs):
    transaction.on_commit(partial(signal.send, sender=Appointment, appointment=appointment, **kwargs))


# ===========================================
# BOOKING
# ===========================================
def book(caller, clinician_id, patient_id, date, time, duration=None, reason=''):
    """Create a Scheduled appointment in a free slot of the clinician's template"""
    if not can_book(caller, clinician_id, patient_id):
        raise AuthError('Not authorized to book this appointment')

    target_date = parse_date(date)
    start = parse_time(time)
    duration = normalize_duration(duration)
    clinician = get_clinician(clinician_id)
    patient = get_patient(patient_id)

    try:
        with slot_guard(clinician.pk, target_date, start):
            template = lookup_template(clinician.pk)
            slots = compute_available_slots(template, target_date)
            _, end_time = _match_slot(slots, start, duration)

            appointment = Appointment(
                clinician=clinician,
                patient=patient,
                date=target_date,
                time=start,
                end_time=end_time,
                status=S.SCHEDULED,
                reason=reason or '',
            )
            appointment.stamp(caller)
            appointment.save()
            _send_on_commit(appointment_booked, appointment, actor=caller)
    except SlotUnavailable:
        logger.warning(
            f"Booking rejected: clinician {clinician.pk} {target_date} {format_time(start)} is not available"
        )
        raise
    except DatabaseError as exc:
        logger.warning(f"Booking conflict for clinician {clinician.pk} {target_date} {format_time(start)}: {exc}")
        raise SlotUnavailable('The slot was taken concurrently, please choose another slot') from exc

    logger.info(f"Booked appointment {appointment.pk} for patient {patient.pk} with clinician {clinician.pk}")
    return appointment


def _reschedule(caller, appointment, new_date, new_time, duration=None):
    target_date = parse_date(new_date, 'new_date')
    start = parse_time(new_time, 'new_time')
    duration = normalize_duration(duration)

    try:
        with slot_guard(appointment.clinician_id, target_date, start):
            locked = get_appointment(appointment.pk, for_update=True)
            if locked.status not in RESCHEDULABLE_STATUSES or not can_transition(locked.status, S.RESCHEDULED):
                raise InvalidTransition(f"Cannot reschedule a {locked.status} appointment")

            template = lookup_template(locked.clinician_id)
            slots = compute_available_slots(template, target_date, exclude=locked.pk)
            _, end_time = _match_slot(slots, start, duration)

            previous_date, previous_time = locked.date, locked.time
            locked.date = target_date
            locked.time = start
            locked.end_time = end_time
            locked.status = S.RESCHEDULED
            locked.stamp(caller)
            locked.save(update_fields=['date', 'time', 'end_time', 'status', 'updated_at', 'updated_by'])
            _send_on_commit(
                appointment_rescheduled, locked, actor=caller,
                previous_date=previous_date, previous_time=previous_time,
            )
    except SlotUnavailable:
        logger.warning(f"Reschedule of appointment {appointment.pk} rejected: {target_date} {format_time(start)} unavailable")
        raise
    except DatabaseError as exc:
        logger.warning(f"Reschedule conflict for appointment {appointment.pk}: {exc}")
        raise SlotUnavailable('The slot was taken concurrently, please choose another slot') from exc

    logger.info(f"Appointment {locked.pk} rescheduled to {target_date} {format_time(start)} by {caller}")
    return locked


def clinician_reschedule(caller, appointment_id, new_date, new_time, duration=None):
    appointment = get_appointment(appointment_id)
    _authorize(caller, appointment, AppointmentActions.RESCHEDULE)
    return _reschedule(caller, appointment, new_date, new_time, duration)


def patient_reschedule(caller, appointment_id, new_date, new_time, duration=None):
    """Only the owning patient, only from Scheduled or Rescheduled"""
    appointment = get_appointment(appointment_id)
    _authorize(caller, appointment, AppointmentActions.PATIENT_RESCHEDULE)
    return _reschedule(caller, appointment, new_date, new_time, duration)


# ===========================================
# STATUS
# ===========================================
def _apply_status(caller, appointment, target):
    previous = appointment.status
    appointment.status = target
    update_fields = ['status', 'updated_at', 'updated_by']
    if target == S.CANCELLED:
        appointment.cancelled_at = timezone.now()
        appointment.cancelled_by = caller
        update_fields += ['cancelled_at', 'cancelled_by']
    appointment.stamp(caller)
    appointment.save(update_fields=update_fields)
    _send_on_commit(appointment_status_changed, appointment, actor=caller, previous_status=previous)
    logger.info(f"Appointment {appointment.pk}: {previous} -> {target} by {caller}")
    return appointment


def cancel(caller, appointment_id):
    """Idempotent: cancelling a Cancelled appointment succeeds without a write"""
    appointment = get_appointment(appointment_id)
    _authorize(caller, appointment, AppointmentActions.CANCEL)

    with transaction.atomic():
        appointment = get_appointment(appointment.pk, for_update=True)
        if appointment.status == S.CANCELLED:
            logger.info(f"Appointment {appointment.pk} already cancelled")
            return appointment
        if not can_transition(appointment.status, S.CANCELLED):
            raise InvalidTransition(f"Cannot cancel a {appointment.status} appointment")
        return _apply_status(caller, appointment, S.CANCELLED)


def set_status(caller, appointment_id, status):
    """Direct transition to Completed, Cancelled or InProgress; the stored status is kept on failure"""
    appointment = get_appointment(appointment_id)
    _authorize(caller, appointment, AppointmentActions.SET_STATUS)

    if status not in S.values:
        raise ValidationError({'status': f"'{status}' is not a valid status"})
    target = S(status)

    with transaction.atomic():
        appointment = get_appointment(appointment.pk, for_update=True)
        if target not in DIRECT_STATUS_TARGETS or not can_transition(appointment.status, target):
            logger.warning(f"Rejected transition {appointment.status} -> {target} on appointment {appointment.pk}")
            raise InvalidTransition(f"Cannot change status from {appointment.status} to {target}")
        return _apply_status(caller, appointment, target)


def mark_in_progress(caller, appointment_id):
    return set_status(caller, appointment_id, S.IN_PROGRESS)


def update_notes(caller, appointment_id, notes):
    """Owning clinician only; allowed in every status"""
    appointment = get_appointment(appointment_id)
    _authorize(caller, appointment, AppointmentActions.UPDATE_NOTES)

    appointment.notes = notes or ''
    appointment.stamp(caller)
    appointment.save(update_fields=['notes', 'updated_at', 'updated_by'])
    logger.info(f"Notes updated on appointment {appointment.pk} by {caller}")
    return appointment
