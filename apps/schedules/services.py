# apps/schedules/services.py
"""
Weekly template store.

get_template     find-or-create, atomic per clinician
lookup_template  plain read, NotFound when the clinician has no template yet
put_template     validate and replace the whole template
patch_day        validate and replace a single weekday

Writers of one clinician's template are serialised in-process by a keyed lock
and across processes by row locks. A database conflict that still slips through
surfaces as ScheduleConflict; nothing is partially written.
"""

import logging

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from core.constants import UserRoles
from core.exceptions import NotFound, ScheduleConflict
from core.guard import canonical_id
from core.locks import keyed_lock
from core.utils import parse_time, read_retry, scheduling_setting

from .models import DaySchedule, TimeSlot, WeeklyTemplate, Weekday
from .validators import validate_day, validate_template

logger = logging.getLogger(__name__)

User = get_user_model()


def _templates():
    return WeeklyTemplate.objects.select_related('clinician').prefetch_related('days__time_slots')


def _template_lock(clinician):
    return keyed_lock(('weekly_template', clinician.pk))


def get_clinician(clinician_id):
    pk = canonical_id(clinician_id)
    clinician = None
    if pk is not None:
        clinician = User.objects.filter(pk=int(pk), role=UserRoles.DOCTOR, is_active=True).first()
    if clinician is None:
        raise NotFound(f"Clinician '{clinician_id}' not found")
    return clinician


def _default_template_fields():
    break_start, break_end = scheduling_setting('DEFAULT_BREAK') or (None, None)
    return {
        'default_slot_duration': scheduling_setting('DEFAULT_SLOT_DURATION'),
        'break_start': parse_time(break_start) if break_start else None,
        'break_end': parse_time(break_end) if break_end else None,
        'max_occupancy_per_slot': scheduling_setting('DEFAULT_MAX_OCCUPANCY'),
    }


def _create_default_template(clinician):
    """All seven days off. The unique clinician key makes concurrent creators converge on one row."""
    with _template_lock(clinician), transaction.atomic():
        template, created = WeeklyTemplate.objects.get_or_create(
            clinician=clinician,
            defaults=_default_template_fields(),
        )
        if created:
            DaySchedule.objects.bulk_create([
                DaySchedule(template=template, day=weekday, position=weekday.position, is_working_day=False)
                for weekday in Weekday
            ])
            logger.info(f"Created default weekly template for clinician {clinician.pk}")
    return _templates().get(pk=template.pk)


def _load_or_create(clinician):
    template = _templates().filter(clinician=clinician).first()
    if template is None:
        template = _create_default_template(clinician)
    return template


@read_retry
def get_template(clinician_id):
    """Template of a clinician, creating the all-days-off default on first read"""
    return _load_or_create(get_clinician(clinician_id))


def lookup_template(clinician_id):
    """Template of a clinician without creating one; NotFound if absent. Not retried."""
    clinician = get_clinician(clinician_id)
    template = _templates().filter(clinician=clinician).first()
    if template is None:
        raise NotFound(f"Schedule not found for clinician {clinician.pk}")
    return template


def _replace_day(day_schedule, is_working_day, time_slots, user=None):
    day_schedule.is_working_day = is_working_day
    if user is not None and getattr(user, 'is_authenticated', False):
        day_schedule.updated_by = user
    day_schedule.save()

    day_schedule.time_slots.all().delete()
    TimeSlot.objects.bulk_create([
        TimeSlot(
            day_schedule=day_schedule,
            start_time=slot['start_time'],
            end_time=slot['end_time'],
            is_available=slot['is_available'],
        )
        for slot in time_slots
    ])


def put_template(clinician_id, data, user=None):
    """Replace the clinician's template wholesale"""
    cleaned = validate_template(data)
    clinician = get_clinician(clinician_id)
    template = _load_or_create(clinician)

    try:
        with _template_lock(clinician), transaction.atomic():
            template = WeeklyTemplate.objects.select_for_update().get(pk=template.pk)

            template.default_slot_duration = cleaned['default_slot_duration']
            template.max_occupancy_per_slot = cleaned['max_occupancy_per_slot']
            template.break_start = cleaned['break_start']
            template.break_end = cleaned['break_end']
            template.stamp(user)
            template.save()

            day_rows = {
                row.day: row
                for row in DaySchedule.objects.select_for_update().filter(template=template)
            }
            for entry in cleaned['days']:
                day_schedule = day_rows.get(entry['day'])
                if day_schedule is None:
                    day_schedule = DaySchedule(template=template, day=entry['day'])
                _replace_day(day_schedule, entry['is_working_day'], entry['time_slots'], user)
    except DatabaseError as exc:
        logger.warning(f"Template write conflict for clinician {clinician.pk}: {exc}")
        raise ScheduleConflict() from exc

    logger.info(f"Weekly template replaced for clinician {clinician.pk} by {user}")
    return _templates().get(pk=template.pk)


def patch_day(clinician_id, day, data, user=None):
    """
    Replace exactly one weekday. Writers of the same template are serialised, so
    concurrent patches of one weekday apply one after the other (last writer
    wins) and never merge; other weekdays are not touched.
    """
    weekday = Weekday.parse(day)
    clinician = get_clinician(clinician_id)
    template = _load_or_create(clinician)

    try:
        with _template_lock(clinician), transaction.atomic():
            slot_duration = WeeklyTemplate.objects.values_list('default_slot_duration', flat=True).get(pk=template.pk)
            cleaned = validate_day(data, slot_duration, day=weekday)

            day_schedule = DaySchedule.objects.select_for_update().filter(template=template, day=weekday).first()
            if day_schedule is None:
                day_schedule = DaySchedule(template=template, day=weekday)
            _replace_day(day_schedule, cleaned['is_working_day'], cleaned['time_slots'], user)
    except DatabaseError as exc:
        logger.warning(f"{weekday.value} write conflict for clinician {clinician.pk}: {exc}")
        raise ScheduleConflict() from exc

    logger.info(f"{weekday.value} schedule updated for clinician {clinician.pk} by {user}")
    return _templates().get(pk=template.pk)
