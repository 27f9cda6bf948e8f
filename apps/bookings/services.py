import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from apps.core.caching import CacheKeys, cache_service
from apps.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from apps.core.repositories import Relation, Repository
from apps.hotels.models import Hotel
from apps.rooms.models import Room
from apps.users.permissions import is_staff_user
from .models import (
    BLOCKING_STATUSES,
    Booking,
    BookingStatus,
    BookingStatusHistory,
)

MAX_STAY_DAYS = 30
CANCELLATION_CUTOFF = timedelta(hours=24)
MAX_REASON_LENGTH = 500


class BookingRelation(Relation):
    USER = ('user', False)
    ROOM = ('room', False)
    HOTEL = ('room__hotel', False)
    PAYMENT = ('payment', False)
    STATUS_HISTORY = ('status_history', True)


DETAIL_RELATIONS = (
    BookingRelation.USER,
    BookingRelation.ROOM,
    BookingRelation.HOTEL,
    BookingRelation.PAYMENT,
)


@dataclass(frozen=True)
class PriceQuote:
    room_id: int
    room_number: str
    nights: int
    nightly_rate: Decimal
    total: Decimal


def count_nights(check_in, check_out):
    """Whole days between the two instants; partial days are dropped"""
    return (check_out - check_in).days


class BookingService:
    """
    Availability, pricing and lifecycle rules for bookings.

    A booking holds its room for [check_in, check_out) while it is Pending or
    Confirmed and not soft-deleted. Date-changing writes lock the room row
    first so two requests for the same room are serialized.
    """

    def __init__(self, bookings=None, rooms=None, users=None, cache=None, logger=None, clock=None):
        self.bookings = bookings or Repository(Booking, BookingRelation)
        self.rooms = rooms or Repository(Room)
        self.users = users or Repository(get_user_model())
        self.cache = cache or cache_service
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or timezone.now

    # Availability / pricing

    def is_available(self, room_id, check_in, check_out, exclude_booking_id=None):
        if not self.rooms.exists(pk=room_id):
            raise NotFoundException("Room", room_id)
        conflicts = self.bookings.find(room_id=room_id).overlapping(check_in, check_out)
        if exclude_booking_id is not None:
            conflicts = conflicts.exclude(pk=exclude_booking_id)
        return not conflicts.exists()

    def calculate_price(self, room_id, check_in, check_out):
        if check_out <= check_in:
            raise BadRequestException("Check-out date must be after check-in date.")
        room = self.rooms.get_by_id(room_id)
        if room is None:
            raise NotFoundException("Room", room_id)
        return self._quote(room, check_in, check_out)

    def _quote(self, room, check_in, check_out):
        nights = count_nights(check_in, check_out)
        return PriceQuote(
            room_id=room.id,
            room_number=room.room_number,
            nights=nights,
            nightly_rate=room.price,
            total=room.price * nights,
        )

    def _validate_range(self, check_in, check_out):
        if check_out <= check_in:
            raise BadRequestException("Check-out date must be after check-in date.")
        if check_in.date() < self.clock().date():
            raise BadRequestException("Check-in date cannot be in the past.")
        if count_nights(check_in, check_out) > MAX_STAY_DAYS:
            raise BadRequestException(f"Booking cannot exceed {MAX_STAY_DAYS} days.")

    # Queries

    def get(self, booking_id, include=DETAIL_RELATIONS):
        booking = self.bookings.get_by_id(booking_id, include=include)
        if booking is None:
            raise NotFoundException("Booking", booking_id)
        return booking

    def ensure_can_access(self, booking, user):
        if is_staff_user(user) or booking.user_id == user.id:
            return
        raise ForbiddenException("You can only access your own bookings.")

    def list(self, user_id=None, room_id=None, hotel_id=None, status=None, date_from=None, date_to=None):
        filters = {}
        if user_id is not None:
            filters['user_id'] = user_id
        if room_id is not None:
            filters['room_id'] = room_id
        if hotel_id is not None:
            filters['room__hotel_id'] = hotel_id
        if status is not None:
            filters['status'] = status
        if date_from is not None:
            filters['check_out__gt'] = date_from
        if date_to is not None:
            filters['check_in__lt'] = date_to
        return self.bookings.find(include=DETAIL_RELATIONS, **filters).order_by('-created_at')

    def for_user(self, user_id):
        if not self.users.exists(pk=user_id):
            raise NotFoundException("User", user_id)
        return self.list(user_id=user_id)

    def for_hotel(self, hotel_id):
        if not Hotel.objects.filter(pk=hotel_id).exists():
            raise NotFoundException("Hotel", hotel_id)
        return self.list(hotel_id=hotel_id)

    # Commands

    def create(self, user_id, room_id, check_in, check_out):
        self._validate_range(check_in, check_out)

        user = self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User", user_id)

        with transaction.atomic():
            room = self.rooms.lock(room_id)
            if room is None:
                raise NotFoundException("Room", room_id)

            if not self.is_available(room.id, check_in, check_out):
                self.logger.warning(
                    f"Room {room.id} unavailable for {check_in:%Y-%m-%d} - {check_out:%Y-%m-%d}"
                )
                raise ConflictException("Room is not available for the selected dates.")

            quote = self._quote(room, check_in, check_out)
            booking = self.bookings.add(Booking(
                user=user,
                room=room,
                check_in=check_in,
                check_out=check_out,
                total_price=quote.total,
                status=BookingStatus.PENDING,
            ))

        self._invalidate()
        self.logger.info(
            f"Booking {booking.id} created for user {user.id}, room {room.id}: "
            f"{quote.nights} nights, total {quote.total}"
        )
        return booking

    def update(self, booking_id, check_in=None, check_out=None, status=None, actor=None):
        with transaction.atomic():
            booking = self.get(booking_id, include=(BookingRelation.ROOM,))

            if booking.status in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
                raise BadRequestException(
                    f"Cannot update a booking with status {booking.get_status_display()}."
                )

            new_check_in = check_in or booking.check_in
            new_check_out = check_out or booking.check_out
            if new_check_in != booking.check_in or new_check_out != booking.check_out:
                self._validate_range(new_check_in, new_check_out)

                room = self.rooms.lock(booking.room_id)
                if room is None:
                    raise NotFoundException("Room", booking.room_id)
                if not self.is_available(room.id, new_check_in, new_check_out, exclude_booking_id=booking.id):
                    raise ConflictException("Room is not available for the selected dates.")

                booking.check_in = new_check_in
                booking.check_out = new_check_out
                booking.total_price = self._quote(room, new_check_in, new_check_out).total

            if status is not None and status != booking.status:
                self._transition(booking, status, actor)

            self.bookings.update(booking)

        self._invalidate()
        self.logger.info(f"Booking {booking.id} updated")
        return booking

    def cancel(self, booking_id, reason=None, actor=None):
        with transaction.atomic():
            booking = self.get(booking_id, include=())

            if booking.status == BookingStatus.CANCELLED:
                raise BadRequestException("Booking is already cancelled.")
            if booking.status == BookingStatus.COMPLETED:
                raise BadRequestException("Cannot cancel a completed booking.")
            if booking.status not in BLOCKING_STATUSES:
                raise BadRequestException(
                    f"Cannot cancel a booking with status {booking.get_status_display()}."
                )
            if booking.check_in - self.clock() < CANCELLATION_CUTOFF:
                raise BadRequestException("Bookings cannot be cancelled within 24 hours of check-in.")
            if reason and len(reason) > MAX_REASON_LENGTH:
                raise BadRequestException(f"Cancellation reason cannot exceed {MAX_REASON_LENGTH} characters.")

            self._transition(booking, BookingStatus.CANCELLED, actor, reason)
            booking.cancellation_reason = reason
            self.bookings.update(booking)

        self._invalidate()
        self.logger.info(f"Booking {booking.id} cancelled")
        return booking

    def change_status(self, booking_id, new_status, reason=None, actor=None):
        with transaction.atomic():
            booking = self.get(booking_id, include=())
            if new_status == booking.status:
                return booking

            self._transition(booking, new_status, actor, reason)
            if new_status == BookingStatus.CANCELLED:
                booking.cancellation_reason = reason
            self.bookings.update(booking)

        self._invalidate()
        self.logger.info(f"Booking {booking.id} moved to {booking.get_status_display()}")
        return booking

    def delete(self, booking_id, soft=True, force=False, actor=None):
        booking = self.get(booking_id, include=())

        if not soft and booking.status == BookingStatus.COMPLETED:
            raise BadRequestException("Completed bookings cannot be permanently deleted.")
        if booking.is_active and not force:
            raise BadRequestException(
                f"Booking {booking.id} is still active. Use force=true to delete it anyway."
            )

        with transaction.atomic():
            if soft:
                if booking.status in BLOCKING_STATUSES:
                    self._transition(booking, BookingStatus.CANCELLED, actor, "Booking deleted")
                    self.bookings.update(booking, fields=['status'])
                self.bookings.soft_delete(booking)
            else:
                self.bookings.hard_delete(booking)

        self._invalidate()
        self.logger.info(f"Booking {booking_id} {'soft' if soft else 'permanently'} deleted")

    def _transition(self, booking, new_status, actor=None, reason=None):
        new_status = BookingStatus(new_status)
        if not booking.can_transition_to(new_status):
            raise BadRequestException(
                f"Invalid status transition from {booking.get_status_display()} to {new_status.label}."
            )
        BookingStatusHistory.objects.create(
            booking=booking,
            old_status=booking.status,
            new_status=new_status,
            changed_by=actor,
            reason=reason,
        )
        booking.status = new_status

    def _invalidate(self):
        self.cache.remove_by_prefix(CacheKeys.BOOKINGS_PREFIX)
        self.cache.remove(CacheKeys.ADMIN_STATS)
