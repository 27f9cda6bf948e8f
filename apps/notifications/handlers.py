import logging

from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.bookings.models import Booking
from apps.core.repositories import Repository
from .mailer import EmailJob
from .template_loader import load_template, render_template
from .worker import get_email_worker

logger = logging.getLogger(__name__)

CONFIRMATION_TEMPLATE = 'booking_confirmation.html'


class PaymentSucceededHandler:
    """
    Builds the booking confirmation email for a successful payment and hands
    it to the background worker. Never raises into the payment flow.
    """

    def __init__(self, users=None, bookings=None, worker=None, logger=None):
        self.users = users or Repository(get_user_model())
        self.bookings = bookings or Repository(Booking)
        self.worker = worker or get_email_worker()
        self.logger = logger or logging.getLogger(__name__)

    def handle(self, event):
        user = self.users.get_by_id(event.user_id)
        if user is None:
            self.logger.warning(f"Confirmation email skipped, user {event.user_id} not found")
            return
        booking = self.bookings.get_by_id(event.booking_id)
        if booking is None:
            self.logger.warning(f"Confirmation email skipped, booking {event.booking_id} not found")
            return

        try:
            body = render_template(load_template(CONFIRMATION_TEMPLATE), {
                'UserName': user.get_full_name(),
                'BookingId': booking.id,
                'Amount': f"{event.amount:.2f}",
                'PaymentDate': timezone.now().strftime('%Y-%m-%d %H:%M UTC'),
                'TransactionId': event.transaction_id,
            })
        except OSError as e:
            self.logger.error(f"Could not load email template {CONFIRMATION_TEMPLATE}: {e}")
            return

        self.worker.enqueue(EmailJob(
            to=user.email,
            subject=f"Booking Confirmation - Payment Successful #{booking.id}",
            html_body=body,
        ))
        self.logger.info(f"Confirmation email queued for booking {booking.id}")


def send_payment_confirmation(sender, event, **kwargs):
    PaymentSucceededHandler(logger=logger).handle(event)
