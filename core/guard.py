# core/guard.py
"""
Authorization decisions for templates and appointments.

Identities are compared on their canonical decimal string form. Any value that
does not canonicalise (None, bools, floats, non-digit strings, whitespace-padded strings)
makes the check fail closed.
"""

import logging

from .constants import AppointmentActions, UserRoles

logger = logging.getLogger(__name__)


def canonical_id(value):
    """Return the canonical string form of a primary key, or None if malformed"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value) if value > 0 else None
    if isinstance(value, str) and value.isascii() and value.isdigit():
        stripped = value.lstrip('0')
        return stripped or None
    return None


def same_identity(left, right):
    left_id = canonical_id(left)
    right_id = canonical_id(right)
    return left_id is not None and left_id == right_id


def _role(caller):
    if caller is None or not getattr(caller, 'is_authenticated', False):
        return None
    if not getattr(caller, 'is_active', True):
        return None
    return getattr(caller, 'role', None)


def can_read_template(caller, clinician_id):
    role = _role(caller)
    if role in (UserRoles.ADMIN, UserRoles.PATIENT):
        return True
    if role == UserRoles.DOCTOR:
        return same_identity(caller.pk, clinician_id)
    return False


def can_write_template(caller, clinician_id):
    role = _role(caller)
    if role == UserRoles.ADMIN:
        return True
    if role == UserRoles.DOCTOR:
        return same_identity(caller.pk, clinician_id)
    return False


def can_book(caller, clinician_id, patient_id):
    """Patients book for themselves, doctors on their own calendar, admins for anyone"""
    role = _role(caller)
    if role == UserRoles.ADMIN:
        return True
    if role == UserRoles.DOCTOR:
        return same_identity(caller.pk, clinician_id)
    if role == UserRoles.PATIENT:
        return same_identity(caller.pk, patient_id)
    return False


PATIENT_ACTIONS = {
    AppointmentActions.READ,
    AppointmentActions.CANCEL,
    AppointmentActions.PATIENT_RESCHEDULE,
}

DOCTOR_ACTIONS = {
    AppointmentActions.READ,
    AppointmentActions.CANCEL,
    AppointmentActions.RESCHEDULE,
    AppointmentActions.SET_STATUS,
    AppointmentActions.UPDATE_NOTES,
}

ADMIN_ACTIONS = {
    AppointmentActions.READ,
    AppointmentActions.CANCEL,
    AppointmentActions.RESCHEDULE,
    AppointmentActions.SET_STATUS,
}


def can_mutate_appointment(caller, appointment, action):
    role = _role(caller)
    if role == UserRoles.ADMIN:
        allowed = action in ADMIN_ACTIONS
    elif role == UserRoles.DOCTOR:
        allowed = action in DOCTOR_ACTIONS and same_identity(caller.pk, appointment.clinician_id)
    elif role == UserRoles.PATIENT:
        allowed = action in PATIENT_ACTIONS and same_identity(caller.pk, appointment.patient_id)
    else:
        allowed = False

    if not allowed:
        logger.warning(
            f"Denied {action} on appointment {appointment.pk} "
            f"for user {getattr(caller, 'pk', None)} ({role})"
        )
    return allowed
