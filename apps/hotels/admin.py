from django.contrib import admin

from apps.rooms.models import Room
from .models import Hotel


class RoomInline(admin.TabularInline):
    model = Room
    extra = 0
    fields = ['room_number', 'type', 'price', 'capacity', 'is_deleted']


@admin.register(Hotel)
class HotelAdmin(admin.ModelAdmin):
    list_display = ['name', 'city', 'country', 'rating', 'is_deleted', 'created_at']
    list_filter = ['country', 'is_deleted']
    search_fields = ['name', 'city', 'address']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [RoomInline]

    def get_queryset(self, request):
        return Hotel.all_objects.all()
