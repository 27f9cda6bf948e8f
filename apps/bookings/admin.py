from django.contrib import admin

from .models import Booking, BookingStatusHistory


class BookingStatusHistoryInline(admin.TabularInline):
    model = BookingStatusHistory
    extra = 0
    readonly_fields = ['old_status', 'new_status', 'changed_at', 'changed_by', 'reason']
    fields = ['old_status', 'new_status', 'changed_at', 'changed_by', 'reason']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'room', 'check_in', 'check_out', 'total_price', 'status', 'is_deleted']
    list_filter = ['status', 'is_deleted', ('check_in', admin.DateFieldListFilter)]
    search_fields = ['user__email', 'room__room_number', 'room__hotel__name']
    readonly_fields = ['total_price', 'created_at', 'updated_at']
    date_hierarchy = 'check_in'
    inlines = [BookingStatusHistoryInline]

    def get_queryset(self, request):
        return Booking.all_objects.select_related('user', 'room', 'room__hotel')
