# core/constants.py

from django.db import models


class UserRoles:
    """User role constants for RBAC"""
    PATIENT = 'patient'
    DOCTOR = 'doctor'
    ADMIN = 'admin'

    CHOICES = [
        (PATIENT, 'Patient'),
        (DOCTOR, 'Doctor'),
        (ADMIN, 'Administrator'),
    ]


class AppointmentStatus(models.TextChoices):
    SCHEDULED = 'Scheduled', 'Scheduled'
    RESCHEDULED = 'Rescheduled', 'Rescheduled'
    IN_PROGRESS = 'InProgress', 'In Progress'
    COMPLETED = 'Completed', 'Completed'
    CANCELLED = 'Cancelled', 'Cancelled'


# Statuses that still consume slot occupancy
ACTIVE_STATUSES = (
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.RESCHEDULED,
    AppointmentStatus.IN_PROGRESS,
)

RESCHEDULABLE_STATUSES = (
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.RESCHEDULED,
)

class AppointmentActions:
    """Actions checked by the authorization guard"""
    READ = 'read'
    CANCEL = 'cancel'
    RESCHEDULE = 'reschedule'
    PATIENT_RESCHEDULE = 'patient_reschedule'
    SET_STATUS = 'set_status'
    UPDATE_NOTES = 'update_notes'


# Single-digit hours are accepted ("9:30")
TIME_PATTERN = r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$'
