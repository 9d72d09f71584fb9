# apps/appointments/locks.py
"""
Per-slot mutual exclusion for booking writers.

slot_guard(clinician_id, date, start_time) serialises every writer of one
(clinician, date, slot start):
    - in-process, through core.locks.keyed_lock
    - across processes, through SELECT ... FOR UPDATE on the matching SlotLock row
The body runs inside the same transaction.atomic() block as the row lock, so
the capacity count and the write commit or roll back together.
"""

import logging
from contextlib import contextmanager

from django.db import transaction
from django.utils import timezone

from core.locks import keyed_lock

from .models import SlotLock

logger = logging.getLogger(__name__)


@contextmanager
def slot_guard(clinician_id, date, start_time):
    with keyed_lock(('slot', str(clinician_id), date, start_time)):
        with transaction.atomic():
            row, _ = SlotLock.objects.get_or_create(
                clinician_id=clinician_id,
                date=date,
                start_time=start_time,
            )
            SlotLock.objects.select_for_update().get(pk=row.pk)
            logger.debug(f"Holding slot lock {row}")
            yield


def purge_slot_locks(before=None):
    """Delete lock rows dated before `before` (default: today). slot_guard recreates rows on demand."""
    before = before or timezone.localdate()
    deleted, _ = SlotLock.objects.filter(date__lt=before).delete()
    if deleted:
        logger.info(f"Purged {deleted} slot locks dated before {before}")
    return deleted
