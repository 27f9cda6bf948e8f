import logging
import secrets
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from apps.bookings.models import Booking, BookingStatus
from apps.bookings.services import BookingService
from apps.core.caching import CacheKeys, cache_service
from apps.core.exceptions import BadRequestException, ConflictException, NotFoundException
from apps.core.repositories import Relation, Repository
from .events import PaymentSucceeded
from .models import Payment, PaymentEvent, PaymentStatus
from .signals import payment_succeeded

EVENT_SUCCEEDED = 'payment.succeeded'
EVENT_FAILED = 'payment.failed'
EVENT_CANCELLED = 'payment.cancelled'
EVENT_REFUNDED = 'payment.refunded'

EVENT_STATUSES = {
    EVENT_SUCCEEDED: PaymentStatus.SUCCEEDED,
    EVENT_FAILED: PaymentStatus.FAILED,
    EVENT_CANCELLED: PaymentStatus.CANCELLED,
    EVENT_REFUNDED: PaymentStatus.REFUNDED,
}


class PaymentRelation(Relation):
    BOOKING = ('booking', False)
    USER = ('booking__user', False)


def new_transaction_id():
    return f"pi_{secrets.token_hex(12)}"


class PaymentService:
    """
    Payment intents and gateway event processing.

    Events are applied at most once (keyed by event id) and only along the
    payment status machine; the booking follows the payment: a successful
    payment confirms it, a cancelled payment or a refund cancels it.
    """

    def __init__(self, payments=None, bookings=None, booking_service=None, cache=None, logger=None):
        self.payments = payments or Repository(Payment, PaymentRelation)
        self.bookings = bookings or Repository(Booking)
        self.logger = logger or logging.getLogger(__name__)
        self.booking_service = booking_service or BookingService(logger=self.logger)
        self.cache = cache or cache_service

    def get(self, payment_id):
        payment = self.payments.get_by_id(payment_id, include=(PaymentRelation.BOOKING,))
        if payment is None:
            raise NotFoundException("Payment", payment_id)
        return payment

    def for_booking(self, booking_id):
        if not self.bookings.exists(pk=booking_id):
            raise NotFoundException("Booking", booking_id)
        payment = self.payments.find(include=(PaymentRelation.BOOKING,), booking_id=booking_id).first()
        if payment is None:
            raise NotFoundException(detail=f"No payment found for booking {booking_id}.")
        return payment

    def create_intent(self, booking_id, payment_method, currency='usd'):
        booking = self.bookings.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking", booking_id)
        if booking.total_price <= 0:
            raise BadRequestException("Booking total must be greater than zero.")

        payment = Payment.all_objects.filter(booking=booking).first()
        if payment is not None and payment.status == PaymentStatus.SUCCEEDED:
            raise ConflictException(f"Booking {booking.id} has already been paid.")
        if booking.status != BookingStatus.PENDING:
            raise BadRequestException("Only pending bookings can be paid.")

        currency = currency.lower()
        if payment is not None and payment.status == PaymentStatus.PENDING and not payment.is_deleted:
            self.logger.info(f"Reusing pending payment {payment.id} for booking {booking.id}")
            return payment

        with transaction.atomic():
            if payment is None:
                payment = Payment(booking=booking)
            # A failed or cancelled attempt is reopened with a fresh transaction id
            payment.amount = booking.total_price
            payment.currency = currency
            payment.payment_method = payment_method
            payment.status = PaymentStatus.PENDING
            payment.transaction_id = new_transaction_id()
            payment.failure_reason = None
            payment.paid_at = None
            payment.is_deleted = False
            if payment.pk:
                self.payments.update(payment)
            else:
                self.payments.add(payment)

        self.logger.info(
            f"Payment intent {payment.transaction_id} created for booking {booking.id}: "
            f"{payment.amount} {payment.currency}"
        )
        return payment

    def process_event(self, event_id, event_type, transaction_id, amount=None, currency=None, failure_reason=None):
        """
        Apply one gateway event. Returns the payment, or None when the event
        was ignored (unknown type, unknown transaction, already processed).
        """
        target = EVENT_STATUSES.get(event_type)
        if target is None:
            self.logger.info(f"Ignoring unsupported payment event {event_type} ({event_id})")
            return None

        with transaction.atomic():
            if PaymentEvent.objects.filter(event_id=event_id).exists():
                self.logger.info(f"Payment event {event_id} already processed")
                return None

            payment = Payment.objects.select_for_update().filter(transaction_id=transaction_id).first()
            if payment is None:
                self.logger.warning(f"Payment event {event_id} for unknown transaction {transaction_id}")
                return None

            if amount is not None and Decimal(str(amount)) != payment.amount:
                raise BadRequestException(
                    f"Event amount {amount} does not match payment amount {payment.amount}."
                )
            if currency and currency.lower() != payment.currency:
                raise BadRequestException(
                    f"Event currency {currency} does not match payment currency {payment.currency}."
                )

            PaymentEvent.objects.create(event_id=event_id, event_type=event_type, payment=payment)

            if payment.status == target:
                return payment
            if not payment.can_transition_to(target):
                self.logger.info(
                    f"Skipping {event_type} for payment {payment.id} in status {payment.get_status_display()}"
                )
                return payment

            self._apply(payment, target, failure_reason)

        self.cache.remove(CacheKeys.ADMIN_STATS)
        return payment

    def _apply(self, payment, target, failure_reason=None):
        booking = self.bookings.get_by_id(payment.booking_id)
        payment.status = target

        if target == PaymentStatus.SUCCEEDED:
            payment.paid_at = timezone.now()
            if booking is not None and booking.status == BookingStatus.PENDING:
                self.booking_service.change_status(booking.id, BookingStatus.CONFIRMED, reason="Payment succeeded")
            event = PaymentSucceeded(
                payment_id=payment.id,
                booking_id=payment.booking_id,
                user_id=booking.user_id if booking is not None else 0,
                amount=payment.amount,
                transaction_id=payment.transaction_id,
            )
            transaction.on_commit(lambda: self._publish(event))

        elif target == PaymentStatus.FAILED:
            payment.failure_reason = failure_reason or "Payment failed"

        elif target == PaymentStatus.CANCELLED:
            if booking is not None and booking.status == BookingStatus.PENDING:
                self.booking_service.change_status(
                    booking.id, BookingStatus.CANCELLED, reason="Payment was cancelled"
                )

        elif target == PaymentStatus.REFUNDED:
            if booking is not None and booking.status == BookingStatus.CONFIRMED:
                self.booking_service.change_status(
                    booking.id, BookingStatus.CANCELLED, reason="Payment refunded"
                )

        self.payments.update(payment)
        self.logger.info(f"Payment {payment.id} moved to {payment.get_status_display()}")

    def _publish(self, event):
        for receiver, result in payment_succeeded.send_robust(sender=self.__class__, event=event):
            if isinstance(result, Exception):
                name = getattr(receiver, '__name__', receiver)
                self.logger.error(f"PaymentSucceeded handler {name} failed: {result}")
        self.logger.info(f"Published PaymentSucceeded for payment {event.payment_id}")
