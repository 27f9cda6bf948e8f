from datetime import timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, BookingStatus
from apps.core.exceptions import BadRequestException, ConflictException, NotFoundException
from apps.rooms.models import Room, RoomType
from apps.users.models import CustomUser
from .models import Hotel
from .services import HotelService


class HotelServiceTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.service = HotelService()
        self.hotel = self.service.create('Grand Plaza', '12 Main Street, Downtown', 'Madrid', 'Spain', Decimal('4.50'))
        self.room = Room.objects.create(hotel=self.hotel, room_number='101', type=RoomType.STANDARD,
                                        price=Decimal('150.00'), capacity=2)
        self.user = CustomUser.objects.create_user('guest@example.com', 'secret123')

    def _book(self, days_ahead=5, status=BookingStatus.CONFIRMED):
        check_in = timezone.now() + timedelta(days=days_ahead)
        return Booking.objects.create(
            user=self.user, room=self.room, check_in=check_in, check_out=check_in + timedelta(days=2),
            total_price=Decimal('300.00'), status=status,
        )

    def test_duplicate_name_is_rejected(self):
        with self.assertRaises(ConflictException):
            self.service.create('grand plaza', '99 Other Street, Uptown', 'Madrid', 'Spain')

    def test_rename_to_existing_name_is_rejected(self):
        other = self.service.create('Sea Breeze', '7 Beach Road, Seafront', 'Malaga', 'Spain')
        with self.assertRaises(ConflictException):
            self.service.update(other.id, name='GRAND PLAZA')

    def test_update_keeps_own_name(self):
        hotel = self.service.update(self.hotel.id, name='Grand Plaza', city='Barcelona')
        self.assertEqual(hotel.city, 'Barcelona')

    def test_get_missing_hotel(self):
        with self.assertRaises(NotFoundException):
            self.service.get(999)

    def test_delete_with_active_booking_requires_force(self):
        booking = self._book()
        with self.assertRaises(BadRequestException) as ctx:
            self.service.delete(self.hotel.id)
        self.assertIn(str(booking.id), str(ctx.exception.detail))

    def test_forced_soft_delete_cascades_to_rooms_and_bookings(self):
        booking = self._book()
        self.service.delete(self.hotel.id, soft=True, force=True)

        self.assertFalse(Hotel.objects.filter(pk=self.hotel.id).exists())
        self.assertTrue(Hotel.all_objects.get(pk=self.hotel.id).is_deleted)
        self.assertTrue(Room.all_objects.get(pk=self.room.id).is_deleted)
        self.assertTrue(Booking.all_objects.get(pk=booking.id).is_deleted)

    def test_hard_delete_refused_while_bookings_reference_rooms(self):
        self._book(status=BookingStatus.CANCELLED)
        with self.assertRaises(ConflictException):
            self.service.delete(self.hotel.id, soft=False)
        self.assertTrue(Hotel.objects.filter(pk=self.hotel.id).exists())

    def test_hard_delete_without_bookings_removes_rooms(self):
        self.service.delete(self.hotel.id, soft=False)

        self.assertFalse(Hotel.all_objects.filter(pk=self.hotel.id).exists())
        self.assertFalse(Room.all_objects.filter(pk=self.room.id).exists())


class HotelAPITestCase(APITestCase):
    def setUp(self):
        cache.clear()
        self.admin = CustomUser.objects.create_user('admin@example.com', 'secret123', role=CustomUser.ROLE_ADMIN)
        self.customer = CustomUser.objects.create_user('guest@example.com', 'secret123')
        self.payload = {
            'name': 'Grand Plaza',
            'address': '12 Main Street, Downtown',
            'city': 'Madrid',
            'country': 'Spain',
            'rating': '4.50',
        }

    def test_admin_creates_hotel(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/hotels', self.payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Grand Plaza')
        self.assertEqual(response.data['rating'], '4.50')
        self.assertEqual(response.data['room_count'], 0)

    def test_customer_cannot_create_hotel(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post('/api/hotels', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_rating_out_of_range(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/hotels', {**self.payload, 'rating': '5.50'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data['errors'])

    def test_list_is_public_and_filterable(self):
        Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        Hotel.objects.create(name='Sea Breeze', address='7 Beach Road', city='Malaga', country='Spain')

        response = self.client.get('/api/hotels', {'city': 'madrid'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Grand Plaza')

    def test_list_cache_is_dropped_when_hotel_is_created(self):
        self.assertEqual(self.client.get('/api/hotels').data['count'], 0)

        self.client.force_authenticate(user=self.admin)
        self.client.post('/api/hotels', self.payload, format='json')

        self.assertEqual(self.client.get('/api/hotels').data['count'], 1)

    def test_detail_reflects_update(self):
        hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        self.assertEqual(self.client.get(f'/api/hotels/{hotel.id}').data['city'], 'Madrid')

        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(f'/api/hotels/{hotel.id}', {'city': 'Seville'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertEqual(self.client.get(f'/api/hotels/{hotel.id}').data['city'], 'Seville')

    def test_soft_delete(self):
        hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        self.client.force_authenticate(user=self.admin)

        response = self.client.delete(f'/api/hotels/{hotel.id}')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(f'/api/hotels/{hotel.id}').status_code, status.HTTP_404_NOT_FOUND)

    def test_soft_delete_drops_cached_bookings(self):
        hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        room = Room.objects.create(hotel=hotel, room_number='101', price=Decimal('150.00'), capacity=2)
        check_in = timezone.now() + timedelta(days=5)
        booking = Booking.objects.create(
            user=self.customer, room=room, check_in=check_in, check_out=check_in + timedelta(days=2),
            total_price=Decimal('300.00'), status=BookingStatus.CONFIRMED,
        )
        self.client.force_authenticate(user=self.customer)
        self.assertEqual(self.client.get(f'/api/bookings/{booking.id}').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/api/bookings').data['count'], 1)

        HotelService().delete(hotel.id, soft=True, force=True)

        self.assertEqual(self.client.get(f'/api/bookings/{booking.id}').status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get('/api/bookings').data['count'], 0)
