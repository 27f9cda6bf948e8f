from django.contrib import admin

from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(admin.ModelAdmin):
    list_display = ['email', 'first_name', 'last_name', 'role', 'is_active', 'is_deleted', 'date_joined']
    list_filter = ['role', 'is_active', 'is_deleted']
    search_fields = ['email', 'first_name', 'last_name']
    ordering = ['-date_joined']
    readonly_fields = ['date_joined', 'last_login', 'updated_at']
    exclude = ['password', 'groups', 'user_permissions']

    def get_queryset(self, request):
        return CustomUser.all_objects.all()
