from datetime import timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, BookingStatus
from apps.core.exceptions import BadRequestException, ConflictException, NotFoundException
from apps.hotels.models import Hotel
from apps.users.models import CustomUser
from .models import Room, RoomType
from .services import RoomService


def _day(days_ahead, hour=14):
    return (timezone.now() + timedelta(days=days_ahead)).replace(hour=hour, minute=0, second=0, microsecond=0)


class RoomServiceTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.service = RoomService()
        self.hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        self.room = self.service.create(self.hotel.id, '101', RoomType.STANDARD, Decimal('150.00'), 2)
        self.suite = self.service.create(self.hotel.id, '201', RoomType.SUITE, Decimal('400.00'), 4)
        self.user = CustomUser.objects.create_user('guest@example.com', 'secret123')

    def _book(self, room, check_in, check_out, status=BookingStatus.CONFIRMED):
        return Booking.objects.create(
            user=self.user, room=room, check_in=check_in, check_out=check_out,
            total_price=room.price * (check_out - check_in).days, status=status,
        )

    def test_capacity_limited_by_room_type(self):
        with self.assertRaises(BadRequestException):
            self.service.create(self.hotel.id, '102', RoomType.STANDARD, Decimal('120.00'), 3)

    def test_room_number_unique_per_hotel_ignoring_case(self):
        self.service.create(self.hotel.id, 'A1', RoomType.DELUXE, Decimal('200.00'), 3)
        with self.assertRaises(ConflictException):
            self.service.create(self.hotel.id, 'a1', RoomType.DELUXE, Decimal('200.00'), 3)

    def test_same_number_allowed_in_other_hotel(self):
        other = Hotel.objects.create(name='Sea Breeze', address='7 Beach Road', city='Malaga', country='Spain')
        room = self.service.create(other.id, '101', RoomType.STANDARD, Decimal('90.00'), 2)
        self.assertEqual(room.hotel_id, other.id)

    def test_create_in_missing_hotel(self):
        with self.assertRaises(NotFoundException):
            self.service.create(999, '101', RoomType.STANDARD, Decimal('90.00'), 2)

    def test_update_checks_capacity_against_new_type(self):
        with self.assertRaises(BadRequestException):
            self.service.update(self.suite.id, type=RoomType.STANDARD)
        room = self.service.update(self.suite.id, type=RoomType.PRESIDENTIAL, capacity=6)
        self.assertEqual(room.capacity, 6)

    def test_list_filters(self):
        self.assertEqual(list(self.service.list(room_type=RoomType.SUITE)), [self.suite])
        self.assertEqual(list(self.service.list(min_capacity=3)), [self.suite])
        self.assertEqual(list(self.service.list(max_price=Decimal('200'))), [self.room])

    def test_available_excludes_overlapping_bookings(self):
        self._book(self.room, _day(10), _day(13))

        free = list(self.service.available(_day(11), _day(12)))
        self.assertEqual(free, [self.suite])

    def test_back_to_back_stays_do_not_overlap(self):
        self._book(self.room, _day(10), _day(13))

        free = list(self.service.available(_day(13), _day(15)))
        self.assertIn(self.room, free)

    def test_cancelled_booking_does_not_block(self):
        self._book(self.room, _day(10), _day(13), status=BookingStatus.CANCELLED)

        free = list(self.service.available(_day(10), _day(13)))
        self.assertIn(self.room, free)

    def test_available_validates_range(self):
        with self.assertRaises(BadRequestException):
            self.service.available(_day(5), _day(5))
        with self.assertRaises(BadRequestException):
            self.service.available(_day(-2), _day(1))
        with self.assertRaises(BadRequestException):
            self.service.available(_day(1), _day(40))
        with self.assertRaises(NotFoundException):
            self.service.available(_day(1), _day(2), hotel_id=999)

    def test_delete_with_active_booking_requires_force(self):
        self._book(self.room, _day(10), _day(13))
        with self.assertRaises(BadRequestException):
            self.service.delete(self.room.id)

    def test_forced_soft_delete_cascades_to_bookings(self):
        booking = self._book(self.room, _day(10), _day(13))
        self.service.delete(self.room.id, force=True)

        self.assertTrue(Room.all_objects.get(pk=self.room.id).is_deleted)
        self.assertTrue(Booking.all_objects.get(pk=booking.id).is_deleted)

    def test_hard_delete_refused_while_booking_rows_exist(self):
        self._book(self.room, _day(-10), _day(-8), status=BookingStatus.COMPLETED)
        with self.assertRaises(ConflictException):
            self.service.delete(self.room.id, soft=False)

    def test_hard_delete_of_unbooked_room(self):
        self.service.delete(self.suite.id, soft=False)
        self.assertFalse(Room.all_objects.filter(pk=self.suite.id).exists())

    def test_room_types(self):
        types = RoomService.room_types()
        self.assertEqual(types[0], {'value': 1, 'name': 'Standard', 'max_capacity': 2})
        self.assertEqual(types[-1]['max_capacity'], 6)


class RoomAPITestCase(APITestCase):
    def setUp(self):
        cache.clear()
        self.manager = CustomUser.objects.create_user(
            'manager@example.com', 'secret123', role=CustomUser.ROLE_HOTEL_MANAGER
        )
        self.customer = CustomUser.objects.create_user('guest@example.com', 'secret123')
        self.hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')

    def test_manager_creates_room(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.post('/api/rooms', {
            'hotel_id': self.hotel.id,
            'room_number': '101',
            'type': RoomType.DELUXE,
            'price': '180.00',
            'capacity': 3,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['type_name'], 'Deluxe')
        self.assertEqual(response.data['price'], '180.00')
        self.assertEqual(response.data['hotel_name'], 'Grand Plaza')

    def test_customer_cannot_create_room(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post('/api/rooms', {
            'hotel_id': self.hotel.id, 'room_number': '101', 'type': 1, 'price': '100.00', 'capacity': 2,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_price_above_limit(self):
        self.client.force_authenticate(user=self.manager)
        response = self.client.post('/api/rooms', {
            'hotel_id': self.hotel.id, 'room_number': '101', 'type': 1, 'price': '10000.01', 'capacity': 2,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data['errors'])

    def test_available_rooms_is_public(self):
        room = Room.objects.create(hotel=self.hotel, room_number='101', type=RoomType.STANDARD,
                                   price=Decimal('150.00'), capacity=2)
        response = self.client.get('/api/rooms/available', {
            'check_in': _day(3).isoformat(),
            'check_out': _day(5).isoformat(),
            'hotel_id': self.hotel.id,
        })

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], room.id)

    def test_room_types_endpoint(self):
        response = self.client.get('/api/rooms/types')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 4)
