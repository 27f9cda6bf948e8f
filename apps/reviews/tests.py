from datetime import timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, BookingStatus
from apps.core.exceptions import BadRequestException, ForbiddenException
from apps.hotels.models import Hotel
from apps.rooms.models import Room
from apps.users.models import CustomUser
from .models import Review
from .services import ReviewService


class ReviewFixtureMixin:
    def create_fixtures(self):
        cache.clear()
        self.hotel = Hotel.objects.create(name='Grand Plaza', address='12 Main Street', city='Madrid', country='Spain')
        self.room = Room.objects.create(hotel=self.hotel, room_number='101', price=Decimal('150.00'), capacity=2)
        self.guest = CustomUser.objects.create_user('guest@example.com', 'secret123', first_name='Ana')
        self.other = CustomUser.objects.create_user('other@example.com', 'secret123')
        self.admin = CustomUser.objects.create_user('admin@example.com', 'secret123', role=CustomUser.ROLE_ADMIN)

    def stay(self, user, status=BookingStatus.COMPLETED):
        check_in = timezone.now() - timedelta(days=10)
        return Booking.objects.create(
            user=user, room=self.room, check_in=check_in, check_out=check_in + timedelta(days=2),
            total_price=Decimal('300.00'), status=status,
        )


class ReviewServiceTestCase(ReviewFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.service = ReviewService()

    def test_review_requires_completed_stay(self):
        self.stay(self.guest, status=BookingStatus.CANCELLED)
        with self.assertRaises(BadRequestException) as ctx:
            self.service.create(self.guest.id, self.hotel.id, 5, 'Lovely')
        self.assertEqual(
            str(ctx.exception.detail),
            'You can only review hotels where you have a completed booking.',
        )

    def test_one_review_per_hotel(self):
        self.stay(self.guest)
        self.service.create(self.guest.id, self.hotel.id, 5, 'Lovely')
        with self.assertRaises(BadRequestException) as ctx:
            self.service.create(self.guest.id, self.hotel.id, 4)
        self.assertEqual(str(ctx.exception.detail), 'You have already reviewed this hotel.')

    def test_review_again_after_deleting(self):
        self.stay(self.guest)
        review = self.service.create(self.guest.id, self.hotel.id, 2)
        self.service.delete(review.id, self.guest)

        again = self.service.create(self.guest.id, self.hotel.id, 4)
        self.assertNotEqual(again.id, review.id)

    def test_only_author_edits(self):
        self.stay(self.guest)
        review = self.service.create(self.guest.id, self.hotel.id, 3)

        with self.assertRaises(ForbiddenException):
            self.service.update(review.id, self.other, rating=1)
        updated = self.service.update(review.id, self.guest, rating=4, comment='Better on reflection')
        self.assertEqual(updated.rating, 4)

    def test_admin_can_delete_any_review(self):
        self.stay(self.guest)
        review = self.service.create(self.guest.id, self.hotel.id, 1)

        with self.assertRaises(ForbiddenException):
            self.service.delete(review.id, self.other)
        self.service.delete(review.id, self.admin, soft=False)
        self.assertFalse(Review.all_objects.filter(pk=review.id).exists())

    def test_lists_by_hotel_and_user(self):
        self.stay(self.guest)
        self.stay(self.other)
        self.service.create(self.guest.id, self.hotel.id, 5)
        self.service.create(self.other.id, self.hotel.id, 3)

        self.assertEqual(self.service.for_hotel(self.hotel.id).count(), 2)
        self.assertEqual(self.service.for_user(self.guest.id).count(), 1)


class ReviewAPITestCase(ReviewFixtureMixin, APITestCase):
    def setUp(self):
        self.create_fixtures()

    def test_post_review(self):
        self.stay(self.guest)
        self.client.force_authenticate(user=self.guest)
        response = self.client.post('/api/reviews', {
            'hotel_id': self.hotel.id,
            'rating': 5,
            'comment': 'Great breakfast',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user_id'], self.guest.id)
        self.assertEqual(response.data['hotel_name'], 'Grand Plaza')

    def test_post_review_without_stay(self):
        self.client.force_authenticate(user=self.guest)
        response = self.client.post('/api/reviews', {'hotel_id': self.hotel.id, 'rating': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_rating_out_of_range(self):
        self.stay(self.guest)
        self.client.force_authenticate(user=self.guest)
        response = self.client.post('/api/reviews', {'hotel_id': self.hotel.id, 'rating': 6}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data['errors'])

    def test_hotel_reviews_are_public(self):
        self.stay(self.guest)
        Review.objects.create(user=self.guest, hotel=self.hotel, rating=4)

        response = self.client.get(f'/api/reviews/hotel/{self.hotel.id}')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['rating'], 4)

    def test_edit_by_another_user_is_forbidden(self):
        review = Review.objects.create(user=self.guest, hotel=self.hotel, rating=4)
        self.client.force_authenticate(user=self.other)
        response = self.client.patch(f'/api/reviews/{review.id}', {'rating': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
