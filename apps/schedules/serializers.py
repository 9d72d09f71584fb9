# apps/schedules/serializers.py

import re

from rest_framework import serializers

from core.constants import TIME_PATTERN
from core.utils import format_time, parse_time, scheduling_setting
from .models import DaySchedule, TimeSlot, WeeklyTemplate, Weekday


class HHMMField(serializers.Field):
    """24h wall-clock time exchanged as "HH:MM" """

    default_error_messages = {
        'invalid': "'{value}' is not a valid HH:MM time.",
    }

    def to_internal_value(self, data):
        if not isinstance(data, str) or not re.match(TIME_PATTERN, data.strip()):
            self.fail('invalid', value=data)
        return parse_time(data)

    def to_representation(self, value):
        return format_time(value)


# -----------------------------
# Input serializers
# -----------------------------
class TimeSlotInputSerializer(serializers.Serializer):
    start_time = HHMMField()
    end_time = HHMMField()
    is_available = serializers.BooleanField(default=True)

    def validate(self, attrs):
        if attrs['end_time'] <= attrs['start_time']:
            raise serializers.ValidationError({
                'end_time': 'End time must be after start time'
            })
        return attrs


class DayPatchSerializer(serializers.Serializer):
    """Body of a day-scoped update; the weekday comes from the URL"""
    is_working_day = serializers.BooleanField()
    time_slots = TimeSlotInputSerializer(many=True, required=False, default=list)


class DayScheduleInputSerializer(DayPatchSerializer):
    day = serializers.ChoiceField(choices=Weekday.choices)


class BreakTimeSerializer(serializers.Serializer):
    start = HHMMField()
    end = HHMMField()

    def validate(self, attrs):
        if attrs['end'] <= attrs['start']:
            raise serializers.ValidationError({
                'end': 'Break end time must be after break start time'
            })
        return attrs


class WeeklyTemplateInputSerializer(serializers.Serializer):
    weekly_schedule = DayScheduleInputSerializer(many=True)
    default_slot_duration = serializers.IntegerField(min_value=5, max_value=120)
    break_time = BreakTimeSerializer(required=False, allow_null=True)
    max_occupancy_per_slot = serializers.IntegerField(min_value=1, required=False)

    def validate_weekly_schedule(self, value):
        days = [entry['day'] for entry in value]
        if len(days) != 7 or len(set(days)) != 7:
            raise serializers.ValidationError('weekly_schedule must contain each weekday exactly once')
        return value

    def validate_max_occupancy_per_slot(self, value):
        limit = scheduling_setting('MAX_OCCUPANCY_LIMIT')
        if value > limit:
            raise serializers.ValidationError(f'Ensure this value is less than or equal to {limit}.')
        return value


# -----------------------------
# Output serializers
# -----------------------------
class TimeSlotSerializer(serializers.ModelSerializer):
    start_time = serializers.TimeField(format='%H:%M')
    end_time = serializers.TimeField(format='%H:%M')

    class Meta:
        model = TimeSlot
        fields = ['start_time', 'end_time', 'is_available']


class DayScheduleSerializer(serializers.ModelSerializer):
    time_slots = TimeSlotSerializer(many=True, read_only=True)

    class Meta:
        model = DaySchedule
        fields = ['day', 'is_working_day', 'time_slots', 'updated_at']


class WeeklyTemplateSerializer(serializers.ModelSerializer):
    """Read representation of a clinician's template"""

    clinician_name = serializers.CharField(source='clinician.full_name', read_only=True)
    weekly_schedule = DayScheduleSerializer(source='days', many=True, read_only=True)
    break_time = serializers.SerializerMethodField()

    class Meta:
        model = WeeklyTemplate
        fields = [
            'id', 'clinician', 'clinician_name',
            'weekly_schedule', 'default_slot_duration',
            'break_time', 'max_occupancy_per_slot',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_break_time(self, obj):
        if not obj.has_break:
            return None
        return {
            'start': format_time(obj.break_start),
            'end': format_time(obj.break_end),
        }


class SlotSerializer(serializers.Serializer):
    """A projected, bookable slot"""
    start_time = HHMMField(read_only=True)
    end_time = HHMMField(read_only=True)
    duration = serializers.IntegerField(source='duration_minutes', read_only=True)
