# apps/schedules/views.py

import logging

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import AuthError
from core.guard import can_read_template, can_write_template
from core.permissions import IsAuthenticatedAndActive
from core.utils import parse_date

from apps.appointments.availability import available_slots

from .models import Weekday
from .serializers import (
    DayPatchSerializer, SlotSerializer,
    WeeklyTemplateInputSerializer, WeeklyTemplateSerializer
)
from .services import get_template, patch_day, put_template

logger = logging.getLogger(__name__)


# ===========================================
# WEEKLY TEMPLATE
# ===========================================
class ScheduleView(APIView):
    """
    GET  /schedule/<clinician_id>/   read (created with all days off on first access)
    PUT  /schedule/<clinician_id>/   replace the whole week
    """
    permission_classes = [IsAuthenticatedAndActive]

    def get(self, request, clinician_id):
        if not can_read_template(request.user, clinician_id):
            raise AuthError('Not authorized to view this schedule')

        template = get_template(clinician_id)
        return Response({
            'success': True,
            'data': WeeklyTemplateSerializer(template).data
        })

    def put(self, request, clinician_id):
        if not can_write_template(request.user, clinician_id):
            raise AuthError('Not authorized to update this schedule')

        serializer = WeeklyTemplateInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        template = put_template(clinician_id, serializer.validated_data, user=request.user)
        return Response({
            'success': True,
            'message': 'Schedule updated successfully',
            'data': WeeklyTemplateSerializer(template).data
        })


class ScheduleDayView(APIView):
    """PATCH /schedule/<clinician_id>/<day>/ replaces one weekday"""
    permission_classes = [IsAuthenticatedAndActive]

    def patch(self, request, clinician_id, day):
        if not can_write_template(request.user, clinician_id):
            raise AuthError('Not authorized to update this schedule')
        Weekday.parse(day)

        serializer = DayPatchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        template = patch_day(clinician_id, day, serializer.validated_data, user=request.user)
        return Response({
            'success': True,
            'message': 'Day schedule updated successfully',
            'data': WeeklyTemplateSerializer(template).data
        })


# ===========================================
# AVAILABILITY
# ===========================================
class AvailableSlotsView(APIView):
    """GET /schedule/<clinician_id>/available-slots/<date>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, clinician_id, date):
        target_date = parse_date(date)
        slots = available_slots(clinician_id, target_date)

        return Response({
            'success': True,
            'data': {
                'date': target_date.isoformat(),
                'available_slots': SlotSerializer(slots, many=True).data,
            }
        })
