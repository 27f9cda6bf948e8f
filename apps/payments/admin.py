from django.contrib import admin

from .models import Payment, PaymentEvent


class PaymentEventInline(admin.TabularInline):
    model = PaymentEvent
    extra = 0
    readonly_fields = ['event_id', 'event_type', 'received_at']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'booking', 'amount', 'currency', 'status', 'payment_method', 'paid_at']
    list_filter = ['status', 'payment_method', 'currency']
    search_fields = ['transaction_id', 'booking__user__email']
    readonly_fields = ['transaction_id', 'paid_at', 'created_at', 'updated_at']
    inlines = [PaymentEventInline]

    def get_queryset(self, request):
        return Payment.all_objects.select_related('booking')
