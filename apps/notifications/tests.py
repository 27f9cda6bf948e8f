from datetime import timedelta
from decimal import Decimal

from django.core import mail
from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from apps.bookings.models import Booking
from apps.core.caching import CacheKeys, CacheService
from apps.hotels.models import Hotel
from apps.payments.events import PaymentSucceeded
from apps.rooms.models import Room
from apps.users.models import CustomUser
from .handlers import PaymentSucceededHandler
from .mailer import EmailJob, send_email
from .template_loader import load_template, render_template
from .worker import EmailWorker


class FakeSender:
    def __init__(self, failures=0):
        self.failures = failures
        self.sent = []
        self.calls = 0

    def __call__(self, job):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError('SMTP unavailable')
        self.sent.append(job)


class EmailWorkerTestCase(SimpleTestCase):
    def setUp(self):
        self.job = EmailJob(to='guest@example.com', subject='Hello', html_body='<p>Hi</p>')
        self.sleeps = []

    def _worker(self, sender, **kwargs):
        return EmailWorker(send=sender, max_attempts=3, base_delay=1, sleep=self.sleeps.append, **kwargs)

    def test_first_attempt_succeeds(self):
        sender = FakeSender()
        self.assertTrue(self._worker(sender).deliver(self.job))
        self.assertEqual(sender.sent, [self.job])
        self.assertEqual(self.sleeps, [])

    def test_retries_with_exponential_backoff(self):
        sender = FakeSender(failures=2)
        self.assertTrue(self._worker(sender).deliver(self.job))
        self.assertEqual(sender.calls, 3)
        self.assertEqual(self.sleeps, [2, 4])

    def test_gives_up_after_three_attempts_without_raising(self):
        sender = FakeSender(failures=5)
        with self.assertLogs('apps.notifications.worker', level='ERROR'):
            self.assertFalse(self._worker(sender).deliver(self.job))
        self.assertEqual(sender.calls, 3)
        self.assertEqual(sender.sent, [])

    def test_background_thread_drains_queue(self):
        sender = FakeSender(failures=1)
        worker = self._worker(sender, sync=False)
        worker.enqueue(self.job)
        worker.enqueue(EmailJob(to='other@example.com', subject='Hi', html_body='<p>Hi</p>'))
        worker.join()

        self.assertEqual([job.to for job in sender.sent], ['guest@example.com', 'other@example.com'])

    def test_sync_mode_sends_inline(self):
        sender = FakeSender()
        self._worker(sender, sync=True).enqueue(self.job)
        self.assertEqual(sender.sent, [self.job])


class TemplateTestCase(SimpleTestCase):
    def test_render_replaces_every_placeholder(self):
        html = render_template('<p>{{UserName}} paid {{Amount}} for #{{BookingId}} ({{BookingId}})</p>', {
            'UserName': 'Ana', 'Amount': '450.00', 'BookingId': 7,
        })
        self.assertEqual(html, '<p>Ana paid 450.00 for #7 (7)</p>')

    def test_unknown_placeholders_are_left_alone(self):
        self.assertEqual(render_template('{{Missing}}', {'UserName': 'Ana'}), '{{Missing}}')

    def test_template_source_is_cached(self):
        cache.clear()
        service = CacheService(backend=cache)

        source = load_template('booking_confirmation.html', cache=service)

        self.assertIn('{{TransactionId}}', source)
        self.assertEqual(service.get(CacheKeys.email_template('booking_confirmation.html')), source)

    def test_send_email_uses_html_alternative(self):
        send_email(EmailJob(to='guest@example.com', subject='Receipt', html_body='<p>Thanks</p>'))

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].body, 'Thanks')
        self.assertEqual(mail.outbox[0].alternatives[0][1], 'text/html')


class PaymentSucceededHandlerTestCase(TestCase):
    def setUp(self):
        cache.clear()
        hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        room = Room.objects.create(hotel=hotel, room_number='101', price=Decimal('150.00'), capacity=2)
        self.user = CustomUser.objects.create_user('guest@example.com', 'secret123', first_name='Ana')
        check_in = timezone.now() + timedelta(days=5)
        self.booking = Booking.objects.create(
            user=self.user, room=room, check_in=check_in, check_out=check_in + timedelta(days=3),
            total_price=Decimal('450.00'),
        )
        self.sender = FakeSender()
        self.handler = PaymentSucceededHandler(worker=EmailWorker(send=self.sender, sync=True))

    def _event(self, **overrides):
        fields = {
            'payment_id': 1,
            'booking_id': self.booking.id,
            'user_id': self.user.id,
            'amount': Decimal('450.00'),
            'transaction_id': 'pi_abc123',
        }
        fields.update(overrides)
        return PaymentSucceeded(**fields)

    def test_queues_confirmation_email(self):
        self.handler.handle(self._event())

        self.assertEqual(len(self.sender.sent), 1)
        job = self.sender.sent[0]
        self.assertEqual(job.to, 'guest@example.com')
        self.assertEqual(job.subject, f'Booking Confirmation - Payment Successful #{self.booking.id}')
        self.assertIn('pi_abc123', job.html_body)
        self.assertNotIn('{{', job.html_body)

    def test_missing_user_is_skipped(self):
        with self.assertLogs('apps.notifications.handlers', level='WARNING'):
            self.handler.handle(self._event(user_id=999))
        self.assertEqual(self.sender.sent, [])

    def test_missing_booking_is_skipped(self):
        with self.assertLogs('apps.notifications.handlers', level='WARNING'):
            self.handler.handle(self._event(booking_id=999))
        self.assertEqual(self.sender.sent, [])
