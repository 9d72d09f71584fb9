# apps/appointments/admin.py

from django.contrib import admin, messages

from .locks import purge_slot_locks
from .models import Appointment, SlotLock


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'clinician', 'date', 'time', 'end_time', 'status')
    list_filter = ('status', 'date')
    search_fields = ('patient__email', 'patient__full_name', 'clinician__email', 'clinician__full_name')
    readonly_fields = ('status', 'cancelled_at', 'cancelled_by', 'created_at', 'updated_at', 'created_by', 'updated_by')
    raw_id_fields = ('patient', 'clinician')
    date_hierarchy = 'date'

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SlotLock)
class SlotLockAdmin(admin.ModelAdmin):
    list_display = ('clinician', 'date', 'start_time', 'created_at')
    list_filter = ('date',)
    raw_id_fields = ('clinician',)

    actions = ['purge_past_locks']

    def purge_past_locks(self, request, queryset):
        """Delete every lock row dated before today, whatever is selected"""
        deleted = purge_slot_locks()
        self.message_user(request, f"Purged {deleted} past slot locks.", messages.INFO)
    purge_past_locks.short_description = "Purge locks for past dates"
