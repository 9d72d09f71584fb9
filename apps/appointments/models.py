# apps/appointments/models.py

from django.db import models

from core.constants import ACTIVE_STATUSES, AppointmentStatus, UserRoles
from core.mixins.audit_fields import AuditFieldsMixin
from core.utils import to_minutes


class Appointment(AuditFieldsMixin, models.Model):
    """A booking of a patient into one projected slot of a clinician's day. Never hard-deleted."""

    clinician = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='clinician_appointments',
        limit_choices_to={'role': UserRoles.DOCTOR},
    )
    patient = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='patient_appointments',
        limit_choices_to={'role': UserRoles.PATIENT},
    )

    # Timing
    date = models.DateField()
    time = models.TimeField(help_text="Start time")
    end_time = models.TimeField()

    status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED
    )

    reason = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)

    # Cancellation
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='cancelled_appointments'
    )

    class Meta:
        db_table = 'appointments'
        ordering = ['date', 'time']
        indexes = [
            models.Index(fields=['clinician', 'date', 'status'], name='appt_clinician_date_idx'),
            models.Index(fields=['patient', 'date'], name='appt_patient_date_idx'),
        ]

    def __str__(self):
        return f"Appt {self.pk}: {self.patient} with {self.clinician} on {self.date} {self.time:%H:%M}"

    @property
    def duration(self):
        """Length in minutes"""
        return to_minutes(self.end_time) - to_minutes(self.time)

    @property
    def is_active(self):
        return self.status in ACTIVE_STATUSES


class SlotLock(models.Model):
    """
    One row per (clinician, date, slot start) ever contended for.
    Booking writers hold it with SELECT ... FOR UPDATE while they count and write.
    """

    clinician = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='slot_locks'
    )
    date = models.DateField()
    start_time = models.TimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'appointment_slot_locks'
        constraints = [
            models.UniqueConstraint(
                fields=['clinician', 'date', 'start_time'],
                name='unique_slot_lock'
            ),
        ]

    def __str__(self):
        return f"Lock {self.clinician_id} {self.date} {self.start_time:%H:%M}"
