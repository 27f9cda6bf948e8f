from django.dispatch import Signal

# Sent after the payment transaction commits; kwargs: event (PaymentSucceeded)
payment_succeeded = Signal()
