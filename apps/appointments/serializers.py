# apps/appointments/serializers.py

import re

from rest_framework import serializers

from core.constants import AppointmentStatus, TIME_PATTERN
from apps.schedules.serializers import HHMMField

from .models import Appointment


class DurationOrEndField(serializers.Field):
    """Booking length in minutes, or the "HH:MM" end time of the booking"""

    default_error_messages = {
        'invalid': 'Duration must be a number of minutes or an HH:MM end time.',
    }

    def to_internal_value(self, data):
        if isinstance(data, bool):
            self.fail('invalid')
        if isinstance(data, int):
            return data
        if isinstance(data, str):
            value = data.strip()
            if value.isdigit() or re.match(TIME_PATTERN, value):
                return value
        self.fail('invalid')

    def to_representation(self, value):
        return value


class MinimalUserSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    full_name = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)


class AppointmentSerializer(serializers.ModelSerializer):
    """Read representation of an appointment"""

    clinician = MinimalUserSerializer(read_only=True)
    patient = MinimalUserSerializer(read_only=True)
    time = serializers.TimeField(format='%H:%M', read_only=True)
    end_time = serializers.TimeField(format='%H:%M', read_only=True)
    duration = serializers.IntegerField(read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    cancelled_by = MinimalUserSerializer(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'clinician', 'patient', 'date', 'time', 'end_time',
            'duration', 'status', 'reason', 'notes', 'is_active',
            'cancelled_at', 'cancelled_by', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


# -----------------------------
# Action payloads
# -----------------------------
class BookAppointmentSerializer(serializers.Serializer):
    clinician_id = serializers.CharField()
    # Defaults to the caller when a patient books for themself
    patient_id = serializers.CharField(required=False)
    date = serializers.DateField()
    time = HHMMField()
    duration = DurationOrEndField(required=False, allow_null=True)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=200, default='')


class RescheduleSerializer(serializers.Serializer):
    date = serializers.DateField()
    time = HHMMField()
    duration = DurationOrEndField(required=False, allow_null=True)


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AppointmentStatus.choices)


class NotesSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True, trim_whitespace=False)
