# apps/schedules/admin.py

from django.contrib import admin

from .models import DaySchedule, TimeSlot, WeeklyTemplate


class DayScheduleInline(admin.TabularInline):
    model = DaySchedule
    extra = 0
    fields = ('day', 'is_working_day', 'updated_at')
    readonly_fields = ('day', 'updated_at')
    can_delete = False


class TimeSlotInline(admin.TabularInline):
    model = TimeSlot
    extra = 0


@admin.register(WeeklyTemplate)
class WeeklyTemplateAdmin(admin.ModelAdmin):
    list_display = ('clinician', 'default_slot_duration', 'break_start', 'break_end', 'max_occupancy_per_slot', 'updated_at')
    search_fields = ('clinician__email', 'clinician__full_name')
    readonly_fields = ('created_at', 'updated_at', 'created_by', 'updated_by')
    raw_id_fields = ('clinician',)
    inlines = [DayScheduleInline]


@admin.register(DaySchedule)
class DayScheduleAdmin(admin.ModelAdmin):
    list_display = ('template', 'day', 'is_working_day', 'updated_at')
    list_filter = ('day', 'is_working_day')
    inlines = [TimeSlotInline]
