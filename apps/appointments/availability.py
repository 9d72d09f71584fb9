# apps/appointments/availability.py
"""
Bookable slots of a clinician on a date: the projected slots whose active
occupancy is still below the template's max_occupancy_per_slot, in projector
order.
"""

import logging

from core.utils import read_retry

from apps.schedules.projector import project
from apps.schedules.services import lookup_template

from .ledger import active_appointments, occupancy

logger = logging.getLogger(__name__)


def free_slots(snapshot, target_date, appointments):
    capacity = snapshot.max_occupancy_per_slot
    return [
        slot for slot in project(snapshot, target_date)
        if occupancy(appointments, slot) < capacity
    ]


def compute_available_slots(template, target_date, exclude=None):
    """Uncached, unretried computation; safe to call while holding a slot lock"""
    snapshot = template.snapshot()
    appointments = active_appointments(snapshot.clinician_id, target_date, exclude=exclude)
    return free_slots(snapshot, target_date, appointments)


@read_retry
def available_slots(clinician_id, target_date, exclude=None):
    template = lookup_template(clinician_id)
    slots = compute_available_slots(template, target_date, exclude=exclude)
    logger.debug(f"{len(slots)} free slots for clinician {clinician_id} on {target_date}")
    return slots
