from django.contrib import admin

from .models import Room


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ['room_number', 'hotel', 'type', 'price', 'capacity', 'is_deleted']
    list_filter = ['type', 'is_deleted', 'hotel']
    search_fields = ['room_number', 'hotel__name']
    readonly_fields = ['created_at', 'updated_at']

    def get_queryset(self, request):
        return Room.all_objects.select_related('hotel')
