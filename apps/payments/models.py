from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import BaseModel


class PaymentStatus(models.IntegerChoices):
    PENDING = 1, 'Pending'
    SUCCEEDED = 2, 'Succeeded'
    FAILED = 3, 'Failed'
    REFUNDED = 4, 'Refunded'
    CANCELLED = 5, 'Cancelled'


class PaymentMethod(models.IntegerChoices):
    CREDIT_CARD = 1, 'CreditCard'
    DEBIT_CARD = 2, 'DebitCard'
    PAYPAL = 3, 'PayPal'
    BANK_TRANSFER = 4, 'BankTransfer'
    CASH = 5, 'Cash'


PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED, PaymentStatus.CANCELLED},
    PaymentStatus.SUCCEEDED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
    PaymentStatus.CANCELLED: set(),
}


class Payment(BaseModel):
    booking = models.OneToOneField(
        'bookings.Booking',
        on_delete=models.CASCADE,
        related_name='payment'
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    currency = models.CharField(max_length=3, default='usd')
    status = models.PositiveSmallIntegerField(choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    payment_method = models.PositiveSmallIntegerField(choices=PaymentMethod.choices, default=PaymentMethod.CREDIT_CARD)
    transaction_id = models.CharField(max_length=100, unique=True, null=True, blank=True)
    failure_reason = models.CharField(max_length=500, blank=True, null=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta(BaseModel.Meta):
        db_table = 'payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='payments_status_idx'),
        ]

    def __str__(self):
        return f"{self.amount} {self.currency.upper()} - booking #{self.booking_id} ({self.get_status_display()})"

    def can_transition_to(self, new_status):
        if new_status == self.status:
            return True
        return new_status in PAYMENT_TRANSITIONS.get(PaymentStatus(self.status), set())


class PaymentEvent(models.Model):
    """
    Gateway events already applied, keyed by the gateway's event id so a
    redelivered event is recognised and skipped.
    """
    event_id = models.CharField(max_length=100, unique=True)
    event_type = models.CharField(max_length=50)
    payment = models.ForeignKey(
        Payment,
        on_delete=models.CASCADE,
        related_name='events',
        null=True,
        blank=True
    )
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payment_events'
        ordering = ['-received_at']

    def __str__(self):
        return f"{self.event_type} ({self.event_id})"
