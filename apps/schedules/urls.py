# apps/schedules/urls.py

from django.urls import path

from .views import AvailableSlotsView, ScheduleDayView, ScheduleView

urlpatterns = [
    path('schedule/<str:clinician_id>/', ScheduleView.as_view(), name='schedule-detail'),
    path(
        'schedule/<str:clinician_id>/available-slots/<str:date>/',
        AvailableSlotsView.as_view(),
        name='schedule-available-slots'
    ),
    path('schedule/<str:clinician_id>/<str:day>/', ScheduleDayView.as_view(), name='schedule-day'),
]
