# core/tests/factories.py
"""Builders shared by the app test suites"""

from datetime import date, timedelta
from itertools import count

from django.contrib.auth import get_user_model

from core.constants import UserRoles

User = get_user_model()

WEEKDAYS = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

_sequence = count(1)


def make_user(role=UserRoles.PATIENT, **extra):
    n = next(_sequence)
    extra.setdefault('full_name', f'{role.title()} {n}')
    return User.objects.create_user(
        email=extra.pop('email', f'{role}{n}@clinic.test'),
        password='pass1234',
        role=role,
        **extra
    )


def make_doctor(**extra):
    return make_user(UserRoles.DOCTOR, **extra)


def make_patient(**extra):
    return make_user(UserRoles.PATIENT, **extra)


def make_admin(**extra):
    return make_user(UserRoles.ADMIN, **extra)


def upcoming(weekday, weeks_ahead=1):
    """A date falling on `weekday` (0 = Monday) at least a week from today"""
    today = date.today()
    start = today + timedelta(weeks=weeks_ahead)
    return start + timedelta(days=(weekday - start.weekday()) % 7)


def week_payload(working=None, duration=30, break_time=None, occupancy=1):
    """
    Full template payload. `working` maps weekday names to lists of
    (start, end) pairs; every other day is off.
    """
    working = working or {}
    return {
        'default_slot_duration': duration,
        'break_time': {'start': break_time[0], 'end': break_time[1]} if break_time else None,
        'max_occupancy_per_slot': occupancy,
        'weekly_schedule': [
            {
                'day': day,
                'is_working_day': day in working,
                'time_slots': [
                    {'start_time': start, 'end_time': end, 'is_available': True}
                    for start, end in working.get(day, [])
                ],
            }
            for day in WEEKDAYS
        ],
    }


def monday_morning_payload(occupancy=1):
    """Monday 09:00-12:00, 30 minute slots, break 10:00-10:30"""
    return week_payload(
        working={'Monday': [('09:00', '12:00')]},
        duration=30,
        break_time=('10:00', '10:30'),
        occupancy=occupancy,
    )
