import logging

from django.db import transaction
from django.utils import timezone

from apps.bookings.models import Booking
from apps.core.caching import CacheKeys, cache_service
from apps.core.exceptions import BadRequestException, ConflictException, NotFoundException
from apps.core.repositories import Relation, Repository
from apps.hotels.models import Hotel
from .models import MAX_ROOM_CAPACITY, MAX_ROOM_PRICE, ROOM_TYPE_CAPACITY, Room, RoomType

MAX_SEARCH_DAYS = 30


class RoomRelation(Relation):
    HOTEL = ('hotel', False)
    BOOKINGS = ('bookings', True)


class RoomService:
    def __init__(self, rooms=None, hotels=None, cache=None, logger=None, clock=None):
        self.rooms = rooms or Repository(Room, RoomRelation)
        self.hotels = hotels or Repository(Hotel)
        self.cache = cache or cache_service
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or timezone.now

    def get(self, room_id):
        room = self.rooms.get_by_id(room_id, include=(RoomRelation.HOTEL,))
        if room is None:
            raise NotFoundException("Room", room_id)
        return room

    def list(self, hotel_id=None, room_type=None, min_capacity=None, max_price=None):
        queryset = self.rooms.find(include=(RoomRelation.HOTEL,), hotel__is_deleted=False)
        if hotel_id is not None:
            queryset = queryset.filter(hotel_id=hotel_id)
        if room_type is not None:
            queryset = queryset.filter(type=room_type)
        if min_capacity is not None:
            queryset = queryset.filter(capacity__gte=min_capacity)
        if max_price is not None:
            queryset = queryset.filter(price__lte=max_price)
        return queryset.order_by('hotel_id', 'room_number')

    def available(self, check_in, check_out, hotel_id=None, room_type=None, min_capacity=None, max_price=None):
        """Rooms with no Pending/Confirmed booking overlapping [check_in, check_out)"""
        if check_out <= check_in:
            raise BadRequestException("Check-out date must be after check-in date.")
        if check_in.date() < self.clock().date():
            raise BadRequestException("Check-in date cannot be in the past.")
        if (check_out - check_in).days > MAX_SEARCH_DAYS:
            raise BadRequestException(f"Search range cannot exceed {MAX_SEARCH_DAYS} days.")
        if min_capacity is not None and not 1 <= min_capacity <= MAX_ROOM_CAPACITY:
            raise BadRequestException(f"Minimum capacity must be between 1 and {MAX_ROOM_CAPACITY}.")
        if max_price is not None and not 0 < max_price <= MAX_ROOM_PRICE:
            raise BadRequestException(f"Maximum price must be greater than 0 and at most {MAX_ROOM_PRICE}.")
        if hotel_id is not None and not self.hotels.exists(pk=hotel_id):
            raise NotFoundException("Hotel", hotel_id)

        busy_rooms = Booking.objects.overlapping(check_in, check_out).values('room_id')
        return self.list(
            hotel_id=hotel_id,
            room_type=room_type,
            min_capacity=min_capacity,
            max_price=max_price,
        ).exclude(pk__in=busy_rooms)

    @staticmethod
    def room_types():
        return [
            {'value': value, 'name': label, 'max_capacity': ROOM_TYPE_CAPACITY[RoomType(value)]}
            for value, label in RoomType.choices
        ]

    def _check_capacity(self, room_type, capacity):
        limit = ROOM_TYPE_CAPACITY[RoomType(room_type)]
        if capacity > limit:
            raise BadRequestException(
                f"A {RoomType(room_type).label} room can hold at most {limit} guests."
            )

    def _check_unique_number(self, hotel_id, room_number, exclude_id=None):
        duplicates = self.rooms.find(hotel_id=hotel_id, room_number__iexact=room_number)
        if exclude_id is not None:
            duplicates = duplicates.exclude(pk=exclude_id)
        if duplicates.exists():
            raise ConflictException(f"Room number '{room_number}' already exists in this hotel.")

    def create(self, hotel_id, room_number, type, price, capacity):
        hotel = self.hotels.get_by_id(hotel_id)
        if hotel is None:
            raise NotFoundException("Hotel", hotel_id)

        self._check_capacity(type, capacity)
        self._check_unique_number(hotel.id, room_number)

        room = self.rooms.add(Room(
            hotel=hotel,
            room_number=room_number,
            type=type,
            price=price,
            capacity=capacity,
        ))
        self._invalidate()
        self.logger.info(f"Room {room.room_number} created in hotel {hotel.id} (id {room.id})")
        return room

    def update(self, room_id, **changes):
        room = self.get(room_id)

        hotel_id = changes.get('hotel_id', room.hotel_id)
        if hotel_id != room.hotel_id and not self.hotels.exists(pk=hotel_id):
            raise NotFoundException("Hotel", hotel_id)

        room_number = changes.get('room_number', room.room_number)
        room_type = changes.get('type', room.type)
        capacity = changes.get('capacity', room.capacity)

        self._check_capacity(room_type, capacity)
        if hotel_id != room.hotel_id or room_number.lower() != room.room_number.lower():
            self._check_unique_number(hotel_id, room_number, exclude_id=room.id)

        for field, value in changes.items():
            setattr(room, field, value)
        self.rooms.update(room)

        self._invalidate()
        self.logger.info(f"Room {room.id} updated")
        return room

    def delete(self, room_id, soft=True, force=False):
        """
        Soft delete cascades to the room's bookings. Without force, a room
        that still has active bookings is refused. A room is only removed
        from the table when no booking row references it.
        """
        room = self.get(room_id)

        if not force:
            active_ids = list(room.bookings.active().values_list('id', flat=True))
            if active_ids:
                ids = ', '.join(str(pk) for pk in active_ids)
                self.logger.warning(f"Refusing to delete room {room.id}, active bookings: {ids}")
                raise BadRequestException(
                    f"Cannot delete room '{room.room_number}' because it has active bookings "
                    f"(IDs: {ids}). Use force=true to override."
                )

        with transaction.atomic():
            if soft:
                Booking.objects.filter(room=room).soft_delete()
                self.rooms.soft_delete(room)
            else:
                if Booking.all_objects.filter(room=room).exists():
                    raise ConflictException(
                        f"Room '{room.room_number}' still has booking records and cannot be "
                        f"permanently deleted. Use a soft delete instead."
                    )
                self.rooms.hard_delete(room)

        self._invalidate()
        self.logger.info(f"Room {room_id} {'soft' if soft else 'permanently'} deleted")
        return room

    def _invalidate(self):
        self.cache.remove_by_prefix(CacheKeys.ROOMS_PREFIX)
        self.cache.remove_by_prefix(CacheKeys.HOTELS_PREFIX)
        self.cache.remove_by_prefix(CacheKeys.BOOKINGS_PREFIX)
        self.cache.remove(CacheKeys.ADMIN_STATS)
