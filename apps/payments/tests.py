from datetime import timedelta
from decimal import Decimal

from django.core import mail
from django.core.cache import cache
from django.db import transaction
from django.test import TestCase, TransactionTestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, BookingStatus
from apps.core.exceptions import BadRequestException, ConflictException
from apps.hotels.models import Hotel
from apps.rooms.models import Room, RoomType
from apps.users.models import CustomUser
from .models import Payment, PaymentEvent, PaymentMethod, PaymentStatus
from .services import EVENT_CANCELLED, EVENT_FAILED, EVENT_REFUNDED, EVENT_SUCCEEDED, PaymentService
from .signals import payment_succeeded


class PaymentFixtureMixin:
    def create_fixtures(self):
        cache.clear()
        hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        self.room = Room.objects.create(hotel=hotel, room_number='101', type=RoomType.STANDARD,
                                        price=Decimal('150.00'), capacity=2)
        self.customer = CustomUser.objects.create_user('guest@example.com', 'secret123',
                                                       first_name='Ana', last_name='Lima')
        check_in = timezone.now() + timedelta(days=10)
        self.booking = Booking.objects.create(
            user=self.customer, room=self.room, check_in=check_in, check_out=check_in + timedelta(days=3),
            total_price=Decimal('450.00'), status=BookingStatus.PENDING,
        )


class PaymentServiceTestCase(PaymentFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.service = PaymentService()
        self.payment = self.service.create_intent(self.booking.id, PaymentMethod.CREDIT_CARD)

    def _succeed(self, event_id='evt_1', **kwargs):
        with self.captureOnCommitCallbacks(execute=True):
            return self.service.process_event(event_id, EVENT_SUCCEEDED, self.payment.transaction_id, **kwargs)

    def test_intent_takes_booking_total(self):
        self.assertEqual(self.payment.amount, Decimal('450.00'))
        self.assertEqual(self.payment.status, PaymentStatus.PENDING)
        self.assertEqual(self.payment.currency, 'usd')
        self.assertTrue(self.payment.transaction_id.startswith('pi_'))

    def test_pending_intent_is_reused(self):
        again = self.service.create_intent(self.booking.id, PaymentMethod.CREDIT_CARD)
        self.assertEqual(again.id, self.payment.id)
        self.assertEqual(again.transaction_id, self.payment.transaction_id)

    def test_success_confirms_booking_and_emails_guest(self):
        payment = self._succeed(amount=Decimal('450.00'), currency='USD')

        self.assertEqual(payment.status, PaymentStatus.SUCCEEDED)
        self.assertIsNotNone(payment.paid_at)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, BookingStatus.CONFIRMED)

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['guest@example.com'])
        self.assertEqual(message.subject, f'Booking Confirmation - Payment Successful #{self.booking.id}')
        html = message.alternatives[0][0]
        self.assertIn('Ana Lima', html)
        self.assertIn('450.00', html)
        self.assertIn(payment.transaction_id, html)

    def test_redelivered_event_is_applied_once(self):
        received = []

        def listener(sender, event, **kwargs):
            received.append(event)

        payment_succeeded.connect(listener)
        try:
            self._succeed()
            self.assertIsNone(self._succeed())
        finally:
            payment_succeeded.disconnect(listener)

        self.assertEqual(len(received), 1)
        self.assertEqual(received[0].booking_id, self.booking.id)
        self.assertEqual(PaymentEvent.objects.filter(event_id='evt_1').count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_failing_listener_does_not_break_payment(self):
        def broken(sender, event, **kwargs):
            raise RuntimeError('listener down')

        payment_succeeded.connect(broken)
        try:
            payment = self._succeed()
        finally:
            payment_succeeded.disconnect(broken)

        self.assertEqual(payment.status, PaymentStatus.SUCCEEDED)

    def test_amount_mismatch_is_rejected(self):
        with self.assertRaises(BadRequestException):
            self._succeed(amount=Decimal('10.00'))
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.PENDING)
        self.assertFalse(PaymentEvent.objects.exists())

    def test_unknown_event_type_and_transaction_are_ignored(self):
        self.assertIsNone(self.service.process_event('evt_x', 'charge.dispute', self.payment.transaction_id))
        self.assertIsNone(self.service.process_event('evt_y', EVENT_SUCCEEDED, 'pi_unknown'))

    def test_failure_records_reason_and_allows_retry(self):
        payment = self.service.process_event('evt_f', EVENT_FAILED, self.payment.transaction_id,
                                             failure_reason='Card declined')
        self.assertEqual(payment.status, PaymentStatus.FAILED)
        self.assertEqual(payment.failure_reason, 'Card declined')

        retry = self.service.create_intent(self.booking.id, PaymentMethod.PAYPAL)
        self.assertEqual(retry.id, payment.id)
        self.assertEqual(retry.status, PaymentStatus.PENDING)
        self.assertNotEqual(retry.transaction_id, payment.transaction_id)

    def test_cancelled_payment_cancels_booking(self):
        self.service.process_event('evt_c', EVENT_CANCELLED, self.payment.transaction_id)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, BookingStatus.CANCELLED)

    def test_refund_cancels_confirmed_booking(self):
        self._succeed()
        payment = self.service.process_event('evt_r', EVENT_REFUNDED, self.payment.transaction_id)

        self.assertEqual(payment.status, PaymentStatus.REFUNDED)
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, BookingStatus.CANCELLED)

    def test_out_of_order_refund_is_skipped(self):
        payment = self.service.process_event('evt_r', EVENT_REFUNDED, self.payment.transaction_id)
        self.assertEqual(payment.status, PaymentStatus.PENDING)

    def test_paid_booking_cannot_be_paid_again(self):
        self._succeed()
        with self.assertRaises(ConflictException):
            self.service.create_intent(self.booking.id, PaymentMethod.CREDIT_CARD)

    def test_only_pending_bookings_can_be_paid(self):
        self.booking.status = BookingStatus.CANCELLED
        self.booking.save()
        Payment.objects.all().delete()
        with self.assertRaises(BadRequestException):
            self.service.create_intent(self.booking.id, PaymentMethod.CREDIT_CARD)


class PaymentAPITestCase(PaymentFixtureMixin, APITestCase):
    def setUp(self):
        self.create_fixtures()
        self.other = CustomUser.objects.create_user('other@example.com', 'secret123')

    def _create_intent(self):
        self.client.force_authenticate(user=self.customer)
        return self.client.post('/api/payments/intents', {'booking_id': self.booking.id}, format='json')

    def test_create_intent(self):
        response = self._create_intent()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['amount'], '450.00')
        self.assertEqual(response.data['status_name'], 'Pending')
        self.assertEqual(response.data['payment_method_name'], 'CreditCard')

    def test_stranger_cannot_pay_or_read(self):
        payment_id = self._create_intent().data['id']

        self.client.force_authenticate(user=self.other)
        response = self.client.post('/api/payments/intents', {'booking_id': self.booking.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get(f'/api/payments/{payment_id}').status_code, status.HTTP_403_FORBIDDEN)

    def test_booking_payment_lookup(self):
        payment_id = self._create_intent().data['id']
        response = self.client.get(f'/api/bookings/{self.booking.id}/payment')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], payment_id)

    def test_webhook_confirms_booking(self):
        transaction_id = self._create_intent().data['transaction_id']
        self.client.force_authenticate(user=None)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post('/api/payments/webhook', {
                'id': 'evt_100',
                'type': EVENT_SUCCEEDED,
                'data': {'transaction_id': transaction_id, 'amount': '450.00', 'currency': 'usd'},
            }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['received'])
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, BookingStatus.CONFIRMED)
        self.assertEqual(len(mail.outbox), 1)

    def test_webhook_with_unknown_transaction_is_acknowledged(self):
        response = self.client.post('/api/payments/webhook', {
            'id': 'evt_101',
            'type': EVENT_SUCCEEDED,
            'data': {'transaction_id': 'pi_missing'},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['payment_id'])

    @override_settings(PAYMENT_WEBHOOK_SECRET='whsec_test')
    def test_webhook_secret_is_checked(self):
        body = {'id': 'evt_102', 'type': EVENT_SUCCEEDED, 'data': {'transaction_id': 'pi_missing'}}

        response = self.client.post('/api/payments/webhook', body, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/payments/webhook', body, format='json', HTTP_X_WEBHOOK_SECRET='wrong')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        response = self.client.post('/api/payments/webhook', body, format='json', HTTP_X_WEBHOOK_SECRET='whsec_test')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class PaymentCommitTestCase(PaymentFixtureMixin, TransactionTestCase):
    """PaymentSucceeded is only published once the payment transaction commits"""

    def setUp(self):
        self.create_fixtures()
        self.service = PaymentService()
        self.payment = self.service.create_intent(self.booking.id, PaymentMethod.CREDIT_CARD)
        self.received = []
        payment_succeeded.connect(self._listener)

    def tearDown(self):
        payment_succeeded.disconnect(self._listener)

    def _listener(self, sender, event, **kwargs):
        self.received.append(event.payment_id)

    def test_published_after_commit(self):
        self.service.process_event('evt_1', EVENT_SUCCEEDED, self.payment.transaction_id)

        self.assertEqual(self.received, [self.payment.id])
        self.assertEqual(len(mail.outbox), 1)

    def test_not_published_when_outer_transaction_rolls_back(self):
        with self.assertRaises(RuntimeError):
            with transaction.atomic():
                self.service.process_event('evt_1', EVENT_SUCCEEDED, self.payment.transaction_id)
                raise RuntimeError('abort')

        self.assertEqual(self.received, [])
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, PaymentStatus.PENDING)
        self.assertFalse(PaymentEvent.objects.exists())
