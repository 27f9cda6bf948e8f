import logging

from django.db import transaction

from apps.bookings.models import Booking
from apps.core.caching import CacheKeys, cache_service
from apps.core.exceptions import BadRequestException, ConflictException, NotFoundException
from apps.core.repositories import Relation, Repository
from apps.rooms.models import Room
from .models import Hotel


class HotelRelation(Relation):
    ROOMS = ('rooms', True)
    REVIEWS = ('reviews', True)


class HotelService:
    def __init__(self, hotels=None, cache=None, logger=None):
        self.hotels = hotels or Repository(Hotel, HotelRelation)
        self.cache = cache or cache_service
        self.logger = logger or logging.getLogger(__name__)

    def get(self, hotel_id, include=()):
        hotel = self.hotels.get_by_id(hotel_id, include=include)
        if hotel is None:
            raise NotFoundException("Hotel", hotel_id)
        return hotel

    def list(self):
        return self.hotels.find().order_by('name')

    def _check_unique_name(self, name, exclude_id=None):
        duplicates = self.hotels.find(name__iexact=name)
        if exclude_id is not None:
            duplicates = duplicates.exclude(pk=exclude_id)
        if duplicates.exists():
            raise ConflictException(f"A hotel named '{name}' already exists.")

    def create(self, name, address, city, country, rating=None):
        self._check_unique_name(name)
        hotel = Hotel(name=name, address=address, city=city, country=country)
        if rating is not None:
            hotel.rating = rating
        self.hotels.add(hotel)
        self._invalidate()
        self.logger.info(f"Hotel '{hotel.name}' created with id {hotel.id}")
        return hotel

    def update(self, hotel_id, **changes):
        hotel = self.get(hotel_id)
        name = changes.get('name')
        if name and name.lower() != hotel.name.lower():
            self._check_unique_name(name, exclude_id=hotel.id)

        for field, value in changes.items():
            setattr(hotel, field, value)
        self.hotels.update(hotel)
        self._invalidate()
        self.logger.info(f"Hotel {hotel.id} updated")
        return hotel

    def delete(self, hotel_id, soft=True, force=False):
        """Same rules as room deletion, applied across every room of the hotel"""
        hotel = self.get(hotel_id)
        hotel_bookings = Booking.objects.filter(room__hotel=hotel)

        if not force:
            active_ids = list(hotel_bookings.active().values_list('id', flat=True))
            if active_ids:
                ids = ', '.join(str(pk) for pk in active_ids)
                self.logger.warning(f"Refusing to delete hotel {hotel.id}, active bookings: {ids}")
                raise BadRequestException(
                    f"Cannot delete hotel '{hotel.name}' because it has active bookings "
                    f"(IDs: {ids}). Use force=true to override."
                )

        with transaction.atomic():
            if soft:
                hotel_bookings.soft_delete()
                Room.objects.filter(hotel=hotel).soft_delete()
                self.hotels.soft_delete(hotel)
            else:
                if Booking.all_objects.filter(room__hotel=hotel).exists():
                    raise ConflictException(
                        f"Hotel '{hotel.name}' still has booking records and cannot be "
                        f"permanently deleted. Use a soft delete instead."
                    )
                self.hotels.hard_delete(hotel)

        self._invalidate()
        self.logger.info(f"Hotel {hotel_id} {'soft' if soft else 'permanently'} deleted")
        return hotel

    def _invalidate(self):
        self.cache.remove_by_prefix(CacheKeys.HOTELS_PREFIX)
        self.cache.remove_by_prefix(CacheKeys.ROOMS_PREFIX)
        self.cache.remove_by_prefix(CacheKeys.BOOKINGS_PREFIX)
        self.cache.remove(CacheKeys.ADMIN_STATS)
