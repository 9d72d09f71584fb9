# apps/appointments/views.py

import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from core.constants import AppointmentActions, UserRoles
from core.exceptions import AuthError
from core.guard import can_mutate_appointment
from core.permissions import IsAuthenticatedAndActive

from . import scheduler
from .filters import AppointmentFilter
from .models import Appointment
from .serializers import (
    AppointmentSerializer, BookAppointmentSerializer,
    NotesSerializer, RescheduleSerializer, StatusUpdateSerializer
)

logger = logging.getLogger(__name__)


# ===========================================
# PAGINATION CLASSES
# ===========================================
class StandardPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100

    def get_paginated_response(self, data):
        return Response({
            'success': True,
            'count': self.page.paginator.count,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
            'data': data,
        })


# ===========================================
# VIEWSETS
# ===========================================
class AppointmentViewSet(mixins.ListModelMixin,
                         mixins.RetrieveModelMixin,
                         viewsets.GenericViewSet):
    """
    Appointments are created and changed only through the scheduler actions;
    there is no generic update or delete.
    """

    queryset = Appointment.objects.select_related('clinician', 'patient', 'cancelled_by').all()
    serializer_class = AppointmentSerializer
    permission_classes = [IsAuthenticatedAndActive]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = AppointmentFilter
    ordering_fields = ['date', 'time', 'created_at', 'status']
    ordering = ['date', 'time']

    def get_queryset(self):
        """Filter queryset based on user role"""
        queryset = super().get_queryset()
        user = self.request.user
        role = getattr(user, 'role', None)

        if role == UserRoles.ADMIN:
            return queryset
        if role == UserRoles.DOCTOR:
            return queryset.filter(clinician=user)
        if role == UserRoles.PATIENT:
            return queryset.filter(patient=user)
        return queryset.none()

    def _respond(self, appointment, message=None, status_code=status.HTTP_200_OK):
        payload = {'success': True, 'data': AppointmentSerializer(appointment).data}
        if message:
            payload['message'] = message
        return Response(payload, status=status_code)

    def retrieve(self, request, *args, **kwargs):
        appointment = self.get_object()
        if not can_mutate_appointment(request.user, appointment, AppointmentActions.READ):
            raise AuthError('Not authorized to view this appointment')
        return self._respond(appointment)

    def create(self, request, *args, **kwargs):
        """Book an appointment in a free slot"""
        serializer = BookAppointmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        patient_id = data.get('patient_id')
        if patient_id is None and request.user.role == UserRoles.PATIENT:
            patient_id = request.user.pk

        appointment = scheduler.book(
            request.user,
            clinician_id=data['clinician_id'],
            patient_id=patient_id,
            date=data['date'],
            time=data['time'],
            duration=data.get('duration'),
            reason=data.get('reason', ''),
        )
        return self._respond(appointment, 'Appointment booked successfully', status.HTTP_201_CREATED)

    @action(detail=True, methods=['patch'])
    def reschedule(self, request, pk=None):
        """Clinician or admin moves an appointment"""
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = scheduler.clinician_reschedule(
            request.user, pk,
            new_date=serializer.validated_data['date'],
            new_time=serializer.validated_data['time'],
            duration=serializer.validated_data.get('duration'),
        )
        return self._respond(appointment, 'Appointment rescheduled successfully')

    @action(detail=True, methods=['patch'], url_path='patient-reschedule')
    def patient_reschedule(self, request, pk=None):
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = scheduler.patient_reschedule(
            request.user, pk,
            new_date=serializer.validated_data['date'],
            new_time=serializer.validated_data['time'],
            duration=serializer.validated_data.get('duration'),
        )
        return self._respond(appointment, 'Appointment rescheduled successfully')

    @action(detail=True, methods=['post', 'patch'])
    def cancel(self, request, pk=None):
        appointment = scheduler.cancel(request.user, pk)
        return self._respond(appointment, 'Appointment cancelled successfully')

    @action(detail=True, methods=['patch'], url_path='status')
    def change_status(self, request, pk=None):
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = scheduler.set_status(request.user, pk, serializer.validated_data['status'])
        return self._respond(appointment, f'Appointment marked as {appointment.get_status_display()}')

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        """Start the consultation"""
        appointment = scheduler.mark_in_progress(request.user, pk)
        return self._respond(appointment, 'Consultation started')

    @action(detail=True, methods=['patch'])
    def notes(self, request, pk=None):
        serializer = NotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = scheduler.update_notes(request.user, pk, serializer.validated_data['notes'])
        return self._respond(appointment, 'Notes updated successfully')
