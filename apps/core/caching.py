import hashlib
import json
import logging
from dataclasses import dataclass

from django.core.cache import cache as default_cache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheProfile:
    name: str
    timeout: int


CACHE_PROFILES = {
    'Default': CacheProfile('Default', 300),
    'AdminStats': CacheProfile('AdminStats', 60),
    'EmailTemplate': CacheProfile('EmailTemplate', 600),
    'HotelsList': CacheProfile('HotelsList', 300),
    'HotelDetails': CacheProfile('HotelDetails', 600),
    'RoomsList': CacheProfile('RoomsList', 300),
    'RoomDetails': CacheProfile('RoomDetails', 600),
    'BookingsList': CacheProfile('BookingsList', 60),
    'BookingDetails': CacheProfile('BookingDetails', 120),
}


def _hash_params(params):
    payload = json.dumps(params or {}, sort_keys=True, default=str)
    return hashlib.md5(payload.encode('utf-8')).hexdigest()


class CacheKeys:
    ADMIN_STATS = 'admin:dashboard:stats'

    HOTELS_PREFIX = 'hotels:'
    ROOMS_PREFIX = 'rooms:'
    BOOKINGS_PREFIX = 'bookings:'

    @staticmethod
    def email_template(name):
        return f'templates:email:{name}'

    @staticmethod
    def hotels_list(params=None):
        return f'hotels:list:{_hash_params(params)}'

    @staticmethod
    def hotel_details(hotel_id):
        return f'hotels:details:{hotel_id}'

    @staticmethod
    def rooms_list(params=None):
        return f'rooms:list:{_hash_params(params)}'

    @staticmethod
    def room_details(room_id):
        return f'rooms:details:{room_id}'

    @staticmethod
    def bookings_list(params=None):
        return f'bookings:list:{_hash_params(params)}'

    @staticmethod
    def booking_details(booking_id):
        return f'bookings:details:{booking_id}'


class CacheService:
    """
    Thin layer over the Django cache that applies named TTL profiles and
    remembers every key it wrote, so callers can drop a whole key family
    by prefix (e.g. every "hotels:" entry after a hotel changes).
    """

    INDEX_KEY = 'cache:index'

    def __init__(self, backend=None, logger=None):
        self.backend = backend or default_cache
        self.logger = logger or logging.getLogger(__name__)

    def _timeout(self, profile):
        return CACHE_PROFILES.get(profile, CACHE_PROFILES['Default']).timeout

    def _remember(self, key):
        index = self.backend.get(self.INDEX_KEY) or set()
        if key not in index:
            index.add(key)
            self.backend.set(self.INDEX_KEY, index, None)

    def get(self, key):
        return self.backend.get(key)

    def set(self, key, value, profile='Default'):
        self.backend.set(key, value, self._timeout(profile))
        self._remember(key)

    def get_or_set(self, key, factory, profile='Default'):
        value = self.backend.get(key)
        if value is not None:
            self.logger.debug(f"Cache hit: {key}")
            return value
        self.logger.debug(f"Cache miss: {key}")
        value = factory()
        if value is not None:
            self.set(key, value, profile)
        return value

    def remove(self, key):
        self.backend.delete(key)
        index = self.backend.get(self.INDEX_KEY) or set()
        if key in index:
            index.discard(key)
            self.backend.set(self.INDEX_KEY, index, None)

    def remove_by_prefix(self, prefix):
        """Delete every remembered key starting with prefix; returns how many were dropped"""
        index = self.backend.get(self.INDEX_KEY) or set()
        matched = {key for key in index if key.startswith(prefix)}
        if matched:
            self.backend.delete_many(list(matched))
            self.backend.set(self.INDEX_KEY, index - matched, None)
            self.logger.info(f"Invalidated {len(matched)} cache entries with prefix '{prefix}'")
        return len(matched)


cache_service = CacheService()
