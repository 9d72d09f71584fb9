# apps/schedules/models.py

from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.constants import UserRoles
from core.exceptions import NotFound
from core.mixins.audit_fields import AuditFieldsMixin
from core.utils import scheduling_setting


def validate_max_occupancy(value):
    limit = scheduling_setting('MAX_OCCUPANCY_LIMIT')
    if value > limit:
        raise ValidationError(f"Capacity cannot exceed {limit}")


class Weekday(models.TextChoices):
    MONDAY = 'Monday', 'Monday'
    TUESDAY = 'Tuesday', 'Tuesday'
    WEDNESDAY = 'Wednesday', 'Wednesday'
    THURSDAY = 'Thursday', 'Thursday'
    FRIDAY = 'Friday', 'Friday'
    SATURDAY = 'Saturday', 'Saturday'
    SUNDAY = 'Sunday', 'Sunday'

    @classmethod
    def for_date(cls, value):
        """Weekday of a calendar date (definition order matches date.weekday())"""
        return list(cls)[value.weekday()]

    @classmethod
    def parse(cls, name):
        """Case-insensitive lookup of a canonical weekday name"""
        if isinstance(name, str):
            for weekday in cls:
                if weekday.value.lower() == name.strip().lower():
                    return weekday
        raise NotFound(f"Day '{name}' not found in schedule")

    @property
    def position(self):
        return list(type(self)).index(self)


class WeeklyTemplate(AuditFieldsMixin, models.Model):
    """
    A clinician's recurring weekly availability.
    Always carries exactly one DaySchedule per weekday; replaced in place, never deleted.
    """

    clinician = models.OneToOneField(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='weekly_template',
        limit_choices_to={'role': UserRoles.DOCTOR},
    )

    default_slot_duration = models.PositiveSmallIntegerField(
        default=30,
        validators=[MinValueValidator(5), MaxValueValidator(120)],
        help_text="Slot length in minutes"
    )

    # Clinician-wide break
    break_start = models.TimeField(null=True, blank=True)
    break_end = models.TimeField(null=True, blank=True)

    max_occupancy_per_slot = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), validate_max_occupancy],
        help_text="Simultaneous bookings a single slot tolerates"
    )

    class Meta:
        db_table = 'weekly_templates'
        ordering = ['clinician']

    def __str__(self):
        return f"Weekly template for {self.clinician}"

    def clean(self):
        if bool(self.break_start) != bool(self.break_end):
            raise ValidationError("Break needs both a start and an end time")
        if self.break_start and self.break_end <= self.break_start:
            raise ValidationError("Break end time must be after break start time")

    @property
    def has_break(self):
        return self.break_start is not None and self.break_end is not None

    def day(self, weekday):
        for day_schedule in self.days.all():
            if day_schedule.day == weekday:
                return day_schedule
        return None

    def snapshot(self):
        """Plain-data copy of the template for the slot projector"""
        from .projector import DaySnapshot, Interval, TemplateSnapshot

        days = {}
        for day_schedule in self.days.all():
            days[day_schedule.day] = DaySnapshot(
                day=day_schedule.day,
                is_working_day=day_schedule.is_working_day,
                time_slots=tuple(
                    Interval(slot.start_time, slot.end_time, slot.is_available)
                    for slot in day_schedule.time_slots.all()
                ),
            )

        return TemplateSnapshot(
            clinician_id=self.clinician_id,
            days=days,
            default_slot_duration=self.default_slot_duration,
            break_start=self.break_start,
            break_end=self.break_end,
            max_occupancy_per_slot=self.max_occupancy_per_slot,
        )


class DaySchedule(models.Model):
    """One weekday of a WeeklyTemplate; replaced as a whole by day-scoped updates"""

    template = models.ForeignKey(
        WeeklyTemplate,
        on_delete=models.CASCADE,
        related_name='days'
    )
    day = models.CharField(max_length=9, choices=Weekday.choices)
    position = models.PositiveSmallIntegerField(editable=False)
    is_working_day = models.BooleanField(default=False)

    updated_at = models.DateTimeField(auto_now=True)
    updated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_day_schedules',
        editable=False
    )

    class Meta:
        db_table = 'day_schedules'
        ordering = ['template', 'position']
        constraints = [
            models.UniqueConstraint(fields=['template', 'day'], name='unique_template_day'),
        ]

    def __str__(self):
        state = 'working' if self.is_working_day else 'off'
        return f"{self.template.clinician} - {self.day} ({state})"

    def save(self, *args, **kwargs):
        self.position = Weekday(self.day).position
        super().save(*args, **kwargs)


class TimeSlot(models.Model):
    """Working interval within a day"""

    day_schedule = models.ForeignKey(
        DaySchedule,
        on_delete=models.CASCADE,
        related_name='time_slots'
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = 'day_schedule_time_slots'
        ordering = ['day_schedule', 'start_time']

    def __str__(self):
        return f"{self.day_schedule.day} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def clean(self):
        if self.end_time <= self.start_time:
            raise ValidationError("End time must be after start time")
