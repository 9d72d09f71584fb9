# apps/appointments/signals.py
"""
Lifecycle hooks for notification delivery. Sent by the scheduler after the
enclosing transaction commits; receivers get the saved Appointment.
"""

import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# kwargs: appointment, actor
appointment_booked = Signal()
# kwargs: appointment, actor, previous_date, previous_time
appointment_rescheduled = Signal()
# kwargs: appointment, actor, previous_status
appointment_status_changed = Signal()


# ===========================================
# DEFAULT RECEIVERS
# ===========================================
@receiver(appointment_booked)
def log_appointment_booked(sender, appointment, actor=None, **kwargs):
    logger.info(
        f"Appointment {appointment.pk} booked: patient {appointment.patient_id} with "
        f"clinician {appointment.clinician_id} on {appointment.date} at {appointment.time:%H:%M}"
    )


@receiver(appointment_rescheduled)
def log_appointment_rescheduled(sender, appointment, actor=None, previous_date=None, previous_time=None, **kwargs):
    logger.info(
        f"Appointment {appointment.pk} moved from {previous_date} {previous_time} "
        f"to {appointment.date} {appointment.time:%H:%M} by {actor}"
    )


@receiver(appointment_status_changed)
def log_appointment_status_changed(sender, appointment, actor=None, previous_status=None, **kwargs):
    logger.info(f"Appointment {appointment.pk} status {previous_status} -> {appointment.status} by {actor}")
