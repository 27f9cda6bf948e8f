from django.contrib import admin

from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['id', 'hotel', 'user', 'rating', 'is_deleted', 'created_at']
    list_filter = ['rating', 'is_deleted']
    search_fields = ['hotel__name', 'user__email', 'comment']
    readonly_fields = ['created_at', 'updated_at']

    def get_queryset(self, request):
        return Review.all_objects.select_related('hotel', 'user')
