# apps/schedules/projector.py
"""
Slot projection

Maps a weekly template and a calendar date to the ordered candidate slots of
that date. Pure and synchronous: works on a TemplateSnapshot, never touches the
database.

Algorithm:
    1. Weekday of the date -> that day's schedule
    2. Non-working day or no intervals -> []
    3. Keep intervals marked available
    4. Remove the break (a straddling interval becomes two, a fully
       covered one disappears, zero-length remainders are dropped)
    5. Split each piece into default_slot_duration slots; a shorter
       trailing remainder is kept as its own slot
    6. Sort by start time
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import Dict, List, Optional, Tuple

from core.utils import from_minutes, to_minutes

from .models import Weekday


@dataclass(frozen=True)
class Interval:
    start_time: time
    end_time: time
    is_available: bool = True


@dataclass(frozen=True)
class DaySnapshot:
    day: str
    is_working_day: bool
    time_slots: Tuple[Interval, ...] = ()


@dataclass(frozen=True)
class TemplateSnapshot:
    clinician_id: int
    days: Dict[str, DaySnapshot] = field(default_factory=dict)
    default_slot_duration: int = 30
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    max_occupancy_per_slot: int = 1


@dataclass(frozen=True, order=True)
class Slot:
    start_time: time
    end_time: time

    @property
    def duration_minutes(self):
        return to_minutes(self.end_time) - to_minutes(self.start_time)

    def contains(self, value):
        """Half-open membership: [start_time, end_time)"""
        return self.start_time <= value < self.end_time


def subtract_break(start, end, break_start=None, break_end=None):
    """Remove [break_start, break_end) from [start, end); all values in minutes"""
    if break_start is None or break_end is None:
        return [(start, end)]
    if break_end <= start or break_start >= end:
        return [(start, end)]

    pieces = [(start, min(end, break_start)), (max(start, break_end), end)]
    return [(piece_start, piece_end) for piece_start, piece_end in pieces if piece_start < piece_end]


def split_interval(start, end, duration):
    """Cut [start, end) into consecutive pieces of at most `duration` minutes"""
    pieces = []
    cursor = start
    while cursor < end:
        piece_end = min(cursor + duration, end)
        pieces.append((cursor, piece_end))
        cursor = piece_end
    return pieces


def project(template: TemplateSnapshot, target_date: date) -> List[Slot]:
    day = template.days.get(Weekday.for_date(target_date).value)
    if day is None or not day.is_working_day or not day.time_slots:
        return []

    break_start = to_minutes(template.break_start) if template.break_start is not None else None
    break_end = to_minutes(template.break_end) if template.break_end is not None else None

    slots = []
    for interval in day.time_slots:
        if not interval.is_available:
            continue

        remaining = subtract_break(
            to_minutes(interval.start_time),
            to_minutes(interval.end_time),
            break_start,
            break_end,
        )
        for piece_start, piece_end in remaining:
            for slot_start, slot_end in split_interval(piece_start, piece_end, template.default_slot_duration):
                slots.append(Slot(from_minutes(slot_start), from_minutes(slot_end)))

    return sorted(slots)
