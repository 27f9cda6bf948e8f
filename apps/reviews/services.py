import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from apps.bookings.models import Booking, BookingStatus
from apps.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from apps.core.repositories import Relation, Repository
from apps.hotels.models import Hotel
from .models import Review


class ReviewRelation(Relation):
    USER = ('user', False)
    HOTEL = ('hotel', False)


class ReviewService:
    """
    A user may review a hotel once, and only after a completed stay there.
    """

    def __init__(self, reviews=None, hotels=None, users=None, logger=None):
        self.reviews = reviews or Repository(Review, ReviewRelation)
        self.hotels = hotels or Repository(Hotel)
        self.users = users or Repository(get_user_model())
        self.logger = logger or logging.getLogger(__name__)

    def get(self, review_id):
        review = self.reviews.get_by_id(review_id, include=(ReviewRelation.USER, ReviewRelation.HOTEL))
        if review is None:
            raise NotFoundException("Review", review_id)
        return review

    def list(self):
        return self.reviews.find(include=(ReviewRelation.USER, ReviewRelation.HOTEL)).order_by('-created_at')

    def for_hotel(self, hotel_id):
        if not self.hotels.exists(pk=hotel_id):
            raise NotFoundException("Hotel", hotel_id)
        return self.list().filter(hotel_id=hotel_id)

    def for_user(self, user_id):
        if not self.users.exists(pk=user_id):
            raise NotFoundException("User", user_id)
        return self.list().filter(user_id=user_id)

    def create(self, user_id, hotel_id, rating, comment=''):
        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User", user_id)
        hotel = self.hotels.get_by_id(hotel_id)
        if hotel is None:
            raise NotFoundException("Hotel", hotel_id)

        if self.reviews.exists(user_id=user.id, hotel_id=hotel.id):
            raise BadRequestException("You have already reviewed this hotel.")

        has_stayed = Booking.objects.filter(
            user_id=user.id,
            room__hotel_id=hotel.id,
            status=BookingStatus.COMPLETED,
        ).exists()
        if not has_stayed:
            raise BadRequestException("You can only review hotels where you have a completed booking.")

        review = self.reviews.add(Review(user=user, hotel=hotel, rating=rating, comment=comment or ''))
        self.logger.info(f"Review {review.id} created by user {user.id} for hotel {hotel.id}")
        return review

    def update(self, review_id, user, **changes):
        review = self.get(review_id)
        if review.user_id != user.id:
            raise ForbiddenException("You can only edit your own reviews.")

        for field, value in changes.items():
            setattr(review, field, value)
        self.reviews.update(review)
        self.logger.info(f"Review {review.id} updated")
        return review

    def delete(self, review_id, user, soft=True):
        review = self.get(review_id)
        if review.user_id != user.id and getattr(user, 'role', None) != 'admin':
            raise ForbiddenException("You can only delete your own reviews.")

        with transaction.atomic():
            if soft:
                self.reviews.soft_delete(review)
            else:
                self.reviews.hard_delete(review)
        self.logger.info(f"Review {review_id} {'soft' if soft else 'permanently'} deleted")
