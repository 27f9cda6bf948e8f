from django.urls import path

from .views import booking_payment, create_payment_intent, payment_detail, payment_webhook

urlpatterns = [
    path('payments/intents', create_payment_intent, name='payment-intent'),
    path('payments/webhook', payment_webhook, name='payment-webhook'),
    path('payments/<int:pk>', payment_detail, name='payment-detail'),
    path('bookings/<int:booking_id>/payment', booking_payment, name='booking-payment'),
]
