# apps/appointments/filters.py

from django.db.models import Q
from django.utils import timezone
from django_filters import rest_framework as filters

from core.constants import ACTIVE_STATUSES

from .models import Appointment


class AppointmentFilter(filters.FilterSet):
    """Filter for appointments"""

    date_from = filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = filters.DateFilter(field_name='date', lookup_expr='lte')
    upcoming = filters.BooleanFilter(method='filter_upcoming')
    active = filters.BooleanFilter(method='filter_active')
    search = filters.CharFilter(method='filter_search')

    class Meta:
        model = Appointment
        fields = ['status', 'clinician', 'patient', 'date']

    def filter_upcoming(self, queryset, name, value):
        if value:
            return queryset.filter(date__gte=timezone.localdate(), status__in=ACTIVE_STATUSES)
        return queryset

    def filter_active(self, queryset, name, value):
        if value is None:
            return queryset
        if value:
            return queryset.filter(status__in=ACTIVE_STATUSES)
        return queryset.exclude(status__in=ACTIVE_STATUSES)

    def filter_search(self, queryset, name, value):
        """Search by patient or clinician name / email"""
        return queryset.filter(
            Q(patient__full_name__icontains=value) |
            Q(patient__email__icontains=value) |
            Q(clinician__full_name__icontains=value) |
            Q(clinician__email__icontains=value)
        )
