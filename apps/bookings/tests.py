from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.core.cache import cache
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.exceptions import BadRequestException, ConflictException, ForbiddenException, NotFoundException
from apps.hotels.models import Hotel
from apps.rooms.models import Room, RoomType
from apps.rooms.services import RoomService
from apps.users.models import CustomUser
from .models import Booking, BookingStatus, BookingStatusHistory
from .services import BookingService


def _day(days_ahead, hour=14):
    return (timezone.now() + timedelta(days=days_ahead)).replace(hour=hour, minute=0, second=0, microsecond=0)


class BookingFixtureMixin:
    def create_fixtures(self):
        cache.clear()
        self.hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        self.room = Room.objects.create(hotel=self.hotel, room_number='101', type=RoomType.STANDARD,
                                        price=Decimal('150.00'), capacity=2)
        self.customer = CustomUser.objects.create_user('guest@example.com', 'secret123', first_name='Ana')
        self.other = CustomUser.objects.create_user('other@example.com', 'secret123')
        self.admin = CustomUser.objects.create_user('admin@example.com', 'secret123', role=CustomUser.ROLE_ADMIN)

    def book(self, check_in, check_out, status=BookingStatus.PENDING, user=None, room=None):
        room = room or self.room
        return Booking.objects.create(
            user=user or self.customer, room=room, check_in=check_in, check_out=check_out,
            total_price=room.price * (check_out - check_in).days, status=status,
        )


class PricingTestCase(BookingFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.service = BookingService()

    def test_three_nights_at_150(self):
        quote = self.service.calculate_price(
            self.room.id,
            datetime(2025, 6, 1, 14, tzinfo=dt_timezone.utc),
            datetime(2025, 6, 4, 11, tzinfo=dt_timezone.utc),
        )
        # 2 full days and 21 hours: partial days are not charged
        self.assertEqual(quote.nights, 2)

        quote = self.service.calculate_price(
            self.room.id,
            datetime(2025, 6, 1, tzinfo=dt_timezone.utc),
            datetime(2025, 6, 4, tzinfo=dt_timezone.utc),
        )
        self.assertEqual(quote.nights, 3)
        self.assertEqual(quote.nightly_rate, Decimal('150.00'))
        self.assertEqual(quote.total, Decimal('450.00'))

    def test_invalid_range(self):
        with self.assertRaises(BadRequestException):
            self.service.calculate_price(self.room.id, _day(5), _day(5))

    def test_unknown_room(self):
        with self.assertRaises(NotFoundException):
            self.service.calculate_price(999, _day(5), _day(6))


class AvailabilityTestCase(BookingFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.service = BookingService()
        self.existing = self.book(_day(10), _day(13), status=BookingStatus.CONFIRMED)

    def test_overlap_is_unavailable(self):
        self.assertFalse(self.service.is_available(self.room.id, _day(12), _day(15)))
        self.assertFalse(self.service.is_available(self.room.id, _day(9), _day(11)))
        self.assertFalse(self.service.is_available(self.room.id, _day(11), _day(12)))

    def test_adjacent_ranges_are_available(self):
        self.assertTrue(self.service.is_available(self.room.id, _day(13), _day(15)))
        self.assertTrue(self.service.is_available(self.room.id, _day(8), _day(10)))

    def test_booking_can_be_excluded(self):
        self.assertTrue(self.service.is_available(
            self.room.id, _day(11), _day(14), exclude_booking_id=self.existing.id
        ))

    def test_only_pending_and_confirmed_block(self):
        for blocking, status_ in (
            (False, BookingStatus.CANCELLED),
            (False, BookingStatus.COMPLETED),
            (False, BookingStatus.NO_SHOW),
            (True, BookingStatus.PENDING),
        ):
            self.existing.status = status_
            self.existing.save()
            self.assertEqual(not self.service.is_available(self.room.id, _day(10), _day(13)), blocking)

    def test_soft_deleted_booking_does_not_block(self):
        self.existing.soft_delete()
        self.assertTrue(self.service.is_available(self.room.id, _day(10), _day(13)))

    def test_unknown_room_is_not_found(self):
        with self.assertRaises(NotFoundException):
            self.service.is_available(9999, _day(10), _day(13))

    def test_deleted_room_is_not_found(self):
        RoomService().delete(self.room.id, soft=True, force=True)
        with self.assertRaises(NotFoundException):
            self.service.is_available(self.room.id, _day(20), _day(22))

    def test_check_out_must_follow_check_in_in_database(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                self.book(_day(20), _day(19))


class CreateBookingTestCase(BookingFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.service = BookingService()

    def test_create_prices_and_marks_pending(self):
        booking = self.service.create(self.customer.id, self.room.id, _day(10), _day(13))

        self.assertEqual(booking.status, BookingStatus.PENDING)
        self.assertEqual(booking.total_price, Decimal('450.00'))
        history = BookingStatusHistory.objects.get(booking=booking)
        self.assertIsNone(history.old_status)
        self.assertEqual(history.new_status, BookingStatus.PENDING)

    def test_overlapping_create_is_rejected(self):
        self.service.create(self.customer.id, self.room.id, _day(10), _day(13))
        with self.assertRaises(ConflictException):
            self.service.create(self.other.id, self.room.id, _day(12), _day(15))
        self.assertEqual(Booking.objects.count(), 1)

    def test_past_check_in_is_rejected(self):
        with self.assertRaises(BadRequestException):
            self.service.create(self.customer.id, self.room.id, _day(-1), _day(2))

    def test_stay_longer_than_thirty_days(self):
        with self.assertRaises(BadRequestException):
            self.service.create(self.customer.id, self.room.id, _day(1), _day(32))

    def test_unknown_room_and_user(self):
        with self.assertRaises(NotFoundException):
            self.service.create(self.customer.id, 999, _day(1), _day(2))
        with self.assertRaises(NotFoundException):
            self.service.create(999, self.room.id, _day(1), _day(2))


class UpdateBookingTestCase(BookingFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.service = BookingService()
        self.booking = self.service.create(self.customer.id, self.room.id, _day(10), _day(13))

    def test_new_dates_recompute_total(self):
        booking = self.service.update(self.booking.id, check_out=_day(15))

        self.assertEqual(booking.nights, 5)
        self.assertEqual(booking.total_price, Decimal('750.00'))

    def test_moving_onto_other_booking_conflicts(self):
        self.book(_day(20), _day(22), user=self.other)
        with self.assertRaises(ConflictException):
            self.service.update(self.booking.id, check_in=_day(19), check_out=_day(21))

    def test_status_change_is_validated_and_recorded(self):
        self.service.update(self.booking.id, status=BookingStatus.CONFIRMED, actor=self.admin)
        with self.assertRaises(BadRequestException):
            self.service.update(self.booking.id, status=BookingStatus.PENDING)

        entry = BookingStatusHistory.objects.filter(booking=self.booking).order_by('-id').first()
        self.assertEqual(entry.old_status, BookingStatus.PENDING)
        self.assertEqual(entry.new_status, BookingStatus.CONFIRMED)
        self.assertEqual(entry.changed_by, self.admin)

    def test_cancelled_booking_cannot_be_updated(self):
        self.service.cancel(self.booking.id)
        with self.assertRaises(BadRequestException):
            self.service.update(self.booking.id, check_out=_day(14))


class CancelBookingTestCase(BookingFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.now = timezone.now()
        self.service = BookingService(clock=lambda: self.now)

    def test_cancel_more_than_a_day_ahead(self):
        booking = self.book(self.now + timedelta(days=3), self.now + timedelta(days=5))
        booking = self.service.cancel(booking.id, reason='Change of plans')

        self.assertEqual(booking.status, BookingStatus.CANCELLED)
        self.assertEqual(booking.cancellation_reason, 'Change of plans')
        self.assertTrue(self.service.is_available(self.room.id, booking.check_in, booking.check_out))

    def test_cancel_within_cutoff_is_rejected(self):
        booking = self.book(self.now + timedelta(hours=12), self.now + timedelta(days=2))
        with self.assertRaises(BadRequestException) as ctx:
            self.service.cancel(booking.id)
        self.assertEqual(str(ctx.exception.detail), 'Bookings cannot be cancelled within 24 hours of check-in.')

    def test_cancel_twice(self):
        booking = self.book(self.now + timedelta(days=3), self.now + timedelta(days=5))
        self.service.cancel(booking.id)
        with self.assertRaises(BadRequestException) as ctx:
            self.service.cancel(booking.id)
        self.assertEqual(str(ctx.exception.detail), 'Booking is already cancelled.')

    def test_completed_booking_cannot_be_cancelled(self):
        booking = self.book(self.now - timedelta(days=5), self.now - timedelta(days=2),
                            status=BookingStatus.COMPLETED)
        with self.assertRaises(BadRequestException) as ctx:
            self.service.cancel(booking.id)
        self.assertEqual(str(ctx.exception.detail), 'Cannot cancel a completed booking.')


class DeleteBookingTestCase(BookingFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.service = BookingService()

    def test_active_booking_needs_force(self):
        booking = self.book(_day(3), _day(5))
        with self.assertRaises(BadRequestException):
            self.service.delete(booking.id)

        self.service.delete(booking.id, force=True)
        deleted = Booking.all_objects.get(pk=booking.id)
        self.assertTrue(deleted.is_deleted)
        self.assertEqual(deleted.status, BookingStatus.CANCELLED)

    def test_checked_out_early_booking_deletes_without_force(self):
        booking = self.book(_day(-1), _day(2), status=BookingStatus.COMPLETED)
        self.service.delete(booking.id)

        deleted = Booking.all_objects.get(pk=booking.id)
        self.assertTrue(deleted.is_deleted)
        self.assertEqual(deleted.status, BookingStatus.COMPLETED)

    def test_completed_booking_cannot_be_hard_deleted(self):
        booking = self.book(_day(-5), _day(-2), status=BookingStatus.COMPLETED)
        with self.assertRaises(BadRequestException):
            self.service.delete(booking.id, soft=False)

    def test_hard_delete(self):
        booking = self.book(_day(-5), _day(-2), status=BookingStatus.CANCELLED)
        self.service.delete(booking.id, soft=False)
        self.assertFalse(Booking.all_objects.filter(pk=booking.id).exists())

    def test_access_is_limited_to_owner_and_staff(self):
        booking = self.book(_day(3), _day(5))
        self.service.ensure_can_access(booking, self.customer)
        self.service.ensure_can_access(booking, self.admin)
        with self.assertRaises(ForbiddenException):
            self.service.ensure_can_access(booking, self.other)


class BookingAPITestCase(BookingFixtureMixin, APITestCase):
    def setUp(self):
        self.create_fixtures()

    def test_customer_books_a_room(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post('/api/bookings', {
            'room_id': self.room.id,
            'check_in': _day(10).isoformat(),
            'check_out': _day(13).isoformat(),
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_price'], '450.00')
        self.assertEqual(response.data['status_name'], 'Pending')
        self.assertEqual(response.data['nights'], 3)
        self.assertEqual(response.data['user_id'], self.customer.id)

    def test_double_booking_returns_conflict(self):
        self.book(_day(10), _day(13), user=self.other)
        self.client.force_authenticate(user=self.customer)
        response = self.client.post('/api/bookings', {
            'room_id': self.room.id,
            'check_in': _day(11).isoformat(),
            'check_out': _day(12).isoformat(),
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Room is not available for the selected dates.')

    def test_customer_cannot_book_for_someone_else(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post('/api/bookings', {
            'room_id': self.room.id,
            'user_id': self.other.id,
            'check_in': _day(10).isoformat(),
            'check_out': _day(13).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_customer_only_lists_own_bookings(self):
        mine = self.book(_day(10), _day(12))
        self.book(_day(20), _day(22), user=self.other)

        self.client.force_authenticate(user=self.customer)
        response = self.client.get('/api/bookings')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], mine.id)

        self.client.force_authenticate(user=self.admin)
        self.assertEqual(self.client.get('/api/bookings').data['count'], 2)

    def test_other_customer_cannot_read_booking(self):
        booking = self.book(_day(10), _day(12))
        self.client.force_authenticate(user=self.other)
        response = self.client.get(f'/api/bookings/{booking.id}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cancel_endpoint(self):
        booking = self.book(_day(10), _day(12))
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(f'/api/bookings/{booking.id}/cancel', {'reason': 'Sick'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['booking']['status_name'], 'Cancelled')
        self.assertEqual(response.data['booking']['cancellation_reason'], 'Sick')

    def test_status_endpoint_is_staff_only(self):
        booking = self.book(_day(10), _day(12))
        self.client.force_authenticate(user=self.customer)
        response = self.client.patch(f'/api/bookings/{booking.id}/status', {'status': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(f'/api/bookings/{booking.id}/status', {'status': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status_name'], 'Confirmed')

    def test_customer_cannot_change_status_through_update(self):
        booking = self.book(_day(10), _day(12))
        self.client.force_authenticate(user=self.customer)
        response = self.client.patch(f'/api/bookings/{booking.id}', {'status': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_dates_reprices(self):
        booking = self.book(_day(10), _day(12))
        self.client.force_authenticate(user=self.customer)
        response = self.client.patch(f'/api/bookings/{booking.id}', {
            'check_out': _day(14).isoformat(),
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_price'], '600.00')

    def test_detail_cache_is_dropped_after_cancel(self):
        booking = self.book(_day(10), _day(12))
        self.client.force_authenticate(user=self.customer)
        self.assertEqual(self.client.get(f'/api/bookings/{booking.id}').data['status_name'], 'Pending')

        self.client.post(f'/api/bookings/{booking.id}/cancel', {}, format='json')

        self.assertEqual(self.client.get(f'/api/bookings/{booking.id}').data['status_name'], 'Cancelled')

    def test_check_availability_and_price(self):
        self.book(_day(10), _day(12))
        self.client.force_authenticate(user=self.other)

        response = self.client.get('/api/bookings/check-availability', {
            'room_id': self.room.id,
            'check_in': _day(11).isoformat(),
            'check_out': _day(13).isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_available'])

        response = self.client.get('/api/bookings/calculate-price', {
            'room_id': self.room.id,
            'check_in': _day(11).isoformat(),
            'check_out': _day(13).isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['nights'], 2)
        self.assertEqual(response.data['total'], '300.00')

    def test_check_availability_for_missing_room(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.get('/api/bookings/check-availability', {
            'room_id': 9999,
            'check_in': _day(11).isoformat(),
            'check_out': _day(13).isoformat(),
        })
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_bookings_by_user_and_hotel(self):
        self.book(_day(10), _day(12))

        self.client.force_authenticate(user=self.other)
        response = self.client.get(f'/api/bookings/user/{self.customer.id}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get(f'/api/bookings/hotel/{self.hotel.id}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        self.assertEqual(len(self.client.get(f'/api/bookings/user/{self.customer.id}').data), 1)
        self.assertEqual(len(self.client.get(f'/api/bookings/hotel/{self.hotel.id}').data), 1)
