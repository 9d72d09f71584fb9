# apps/schedules/validators.py

from core.exceptions import ValidationError
from core.utils import format_time, parse_time, scheduling_setting, to_minutes

from .models import Weekday

MIN_SLOT_DURATION = 5
MAX_SLOT_DURATION = 120


def validate_slot_duration(value):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError({'default_slot_duration': 'Slot duration must be an integer number of minutes'})
    if not MIN_SLOT_DURATION <= value <= MAX_SLOT_DURATION:
        raise ValidationError({
            'default_slot_duration': f'Slot duration must be between {MIN_SLOT_DURATION} and {MAX_SLOT_DURATION} minutes'
        })
    return value


def validate_occupancy(value):
    limit = scheduling_setting('MAX_OCCUPANCY_LIMIT')
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError({'max_occupancy_per_slot': 'Capacity must be an integer'})
    if not 1 <= value <= limit:
        raise ValidationError({'max_occupancy_per_slot': f'Capacity must be between 1 and {limit}'})
    return value


def validate_break(break_time):
    """Returns (start, end) times or (None, None) when no break is configured"""
    if not break_time:
        return None, None

    start = break_time.get('start')
    end = break_time.get('end')
    if start is None and end is None:
        return None, None
    if start is None or end is None:
        raise ValidationError({'break_time': 'Break needs both a start and an end time'})

    start = parse_time(start, 'break_time.start')
    end = parse_time(end, 'break_time.end')
    if end <= start:
        raise ValidationError({'break_time': 'Break end time must be after break start time'})
    return start, end


def validate_time_slots(time_slots, slot_duration, day=''):
    """
    Normalise and check a day's intervals:
    valid HH:MM, start < end, spans a multiple of the slot duration, no overlaps.
    Returns the intervals sorted by start time.
    """
    label = f'{day} ' if day else ''
    cleaned = []
    for index, interval in enumerate(time_slots or []):
        start = parse_time(interval.get('start_time'), f'time_slots[{index}].start_time')
        end = parse_time(interval.get('end_time'), f'time_slots[{index}].end_time')

        if end <= start:
            raise ValidationError({
                'time_slots': f'{label}{format_time(start)}-{format_time(end)}: end time must be after start time'
            })

        span = to_minutes(end) - to_minutes(start)
        if span % slot_duration:
            raise ValidationError({
                'time_slots': f'{label}{format_time(start)}-{format_time(end)}: '
                              f'length must be a multiple of {slot_duration} minutes'
            })

        cleaned.append({
            'start_time': start,
            'end_time': end,
            'is_available': bool(interval.get('is_available', True)),
        })

    cleaned.sort(key=lambda item: item['start_time'])
    for previous, current in zip(cleaned, cleaned[1:]):
        if current['start_time'] < previous['end_time']:
            raise ValidationError({
                'time_slots': f"{label}{format_time(current['start_time'])} overlaps the interval ending at "
                              f"{format_time(previous['end_time'])}"
            })
    return cleaned


def validate_day(data, slot_duration, day=None):
    """Validate one DaySchedule payload. `day` overrides the payload's own day name."""
    weekday = Weekday.parse(day) if day is not None else _weekday_from_payload(data)

    is_working_day = data.get('is_working_day')
    if not isinstance(is_working_day, bool):
        raise ValidationError({'is_working_day': 'is_working_day must be a boolean'})

    return {
        'day': weekday,
        'is_working_day': is_working_day,
        'time_slots': validate_time_slots(data.get('time_slots'), slot_duration, weekday.value),
    }


def _weekday_from_payload(data):
    name = data.get('day')
    for weekday in Weekday:
        if weekday.value == name:
            return weekday
    raise ValidationError({'weekly_schedule': f"'{name}' is not a weekday name"})


def validate_template(data):
    """
    Validate a full template payload:
        weekly_schedule: 7 day entries, one per weekday
        default_slot_duration: 5..120
        break_time: optional {start, end}
        max_occupancy_per_slot: 1..limit, defaults to the configured default
    """
    slot_duration = validate_slot_duration(data.get('default_slot_duration'))
    occupancy = validate_occupancy(
        data.get('max_occupancy_per_slot', scheduling_setting('DEFAULT_MAX_OCCUPANCY'))
    )
    break_start, break_end = validate_break(data.get('break_time'))

    week = data.get('weekly_schedule')
    if not isinstance(week, (list, tuple)) or len(week) != len(Weekday.values):
        raise ValidationError({'weekly_schedule': 'weekly_schedule must contain exactly 7 days'})

    days = [validate_day(entry, slot_duration) for entry in week]
    names = [entry['day'] for entry in days]
    if len(set(names)) != len(names):
        raise ValidationError({'weekly_schedule': 'Each weekday must appear exactly once'})

    return {
        'default_slot_duration': slot_duration,
        'max_occupancy_per_slot': occupancy,
        'break_start': break_start,
        'break_end': break_end,
        'days': sorted(days, key=lambda entry: entry['day'].position),
    }
