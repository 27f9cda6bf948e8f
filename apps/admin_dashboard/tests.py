from datetime import timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, BookingStatus
from apps.core.caching import CacheKeys
from apps.hotels.models import Hotel
from apps.payments.models import Payment, PaymentStatus
from apps.rooms.models import Room
from apps.users.models import CustomUser
from .services import DashboardService


class DashboardServiceTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.now = timezone.now()
        hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain',
                                     rating=Decimal('4.00'))
        self.room = Room.objects.create(hotel=hotel, room_number='101', price=Decimal('100.00'), capacity=2)
        Room.objects.create(hotel=hotel, room_number='102', price=Decimal('100.00'), capacity=2)
        self.user = CustomUser.objects.create_user('guest@example.com', 'secret123')

        current = Booking.objects.create(
            user=self.user, room=self.room, check_in=self.now - timedelta(days=1),
            check_out=self.now + timedelta(days=1), total_price=Decimal('200.00'),
            status=BookingStatus.CONFIRMED,
        )
        Booking.objects.create(
            user=self.user, room=self.room, check_in=self.now + timedelta(days=10),
            check_out=self.now + timedelta(days=14), total_price=Decimal('400.00'),
            status=BookingStatus.CANCELLED,
        )
        Payment.objects.create(booking=current, amount=Decimal('200.00'), status=PaymentStatus.SUCCEEDED)
        self.service = DashboardService(clock=lambda: self.now)

    def test_stats(self):
        stats = self.service.stats()

        self.assertEqual(stats['users']['customers'], 1)
        self.assertEqual(stats['hotels']['total'], 1)
        self.assertEqual(stats['hotels']['top_by_bookings'][0]['booking_count'], 2)
        self.assertEqual(stats['rooms']['occupied_now'], 1)
        self.assertEqual(stats['rooms']['occupancy_rate'], 50.0)
        self.assertEqual(stats['bookings']['total'], 2)
        self.assertEqual(stats['bookings']['by_status']['Cancelled'], 1)
        self.assertEqual(stats['bookings']['cancellation_rate'], 50.0)
        self.assertEqual(stats['bookings']['average_stay_nights'], 2.0)
        self.assertEqual(stats['payments']['total_revenue'], 200.0)
        self.assertEqual(stats['payments']['success_rate'], 100.0)

    def test_stats_are_cached(self):
        first = self.service.stats()
        Hotel.objects.create(name='Sea Breeze', address='7 Beach Road', city='Malaga', country='Spain')

        self.assertEqual(self.service.stats()['hotels']['total'], first['hotels']['total'])

        cache.delete(CacheKeys.ADMIN_STATS)
        self.assertEqual(self.service.stats()['hotels']['total'], 2)


class DashboardAPITestCase(APITestCase):
    def setUp(self):
        cache.clear()

    def test_admin_only(self):
        customer = CustomUser.objects.create_user('guest@example.com', 'secret123')
        admin = CustomUser.objects.create_user('admin@example.com', 'secret123', role=CustomUser.ROLE_ADMIN)

        self.client.force_authenticate(user=customer)
        self.assertEqual(self.client.get('/api/admin/dashboard').status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=admin)
        response = self.client.get('/api/admin/dashboard')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['users']['admins'], 1)
