from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from apps.hotels.models import Hotel
from apps.hotels.services import HotelRelation
from .caching import CacheKeys, CacheService
from .repositories import Repository


class CacheServiceTestCase(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.service = CacheService(backend=cache)

    def test_get_or_set_calls_factory_once(self):
        calls = []

        def factory():
            calls.append(1)
            return {'value': 42}

        self.assertEqual(self.service.get_or_set('hotels:details:1', factory), {'value': 42})
        self.assertEqual(self.service.get_or_set('hotels:details:1', factory), {'value': 42})
        self.assertEqual(len(calls), 1)

    def test_none_is_not_cached(self):
        self.assertIsNone(self.service.get_or_set('rooms:details:9', lambda: None))
        self.assertIsNone(cache.get('rooms:details:9'))

    def test_remove_by_prefix_only_drops_matching_keys(self):
        self.service.set(CacheKeys.hotels_list({'city': 'Paris'}), ['a'], 'HotelsList')
        self.service.set(CacheKeys.hotel_details(1), {'id': 1}, 'HotelDetails')
        self.service.set(CacheKeys.room_details(1), {'id': 1}, 'RoomDetails')

        removed = self.service.remove_by_prefix(CacheKeys.HOTELS_PREFIX)

        self.assertEqual(removed, 2)
        self.assertIsNone(self.service.get(CacheKeys.hotel_details(1)))
        self.assertEqual(self.service.get(CacheKeys.room_details(1)), {'id': 1})

    def test_remove_by_prefix_with_nothing_cached(self):
        self.assertEqual(self.service.remove_by_prefix('bookings:'), 0)

    def test_remove_single_key(self):
        self.service.set(CacheKeys.ADMIN_STATS, {'users': 1}, 'AdminStats')
        self.service.remove(CacheKeys.ADMIN_STATS)
        self.assertIsNone(self.service.get(CacheKeys.ADMIN_STATS))
        self.assertEqual(self.service.remove_by_prefix('admin:'), 0)

    def test_list_keys_depend_on_params_not_their_order(self):
        self.assertEqual(
            CacheKeys.rooms_list({'hotel_id': '1', 'type': '2'}),
            CacheKeys.rooms_list({'type': '2', 'hotel_id': '1'}),
        )
        self.assertNotEqual(CacheKeys.rooms_list({'hotel_id': '1'}), CacheKeys.rooms_list({'hotel_id': '2'}))


class RepositoryTestCase(TestCase):
    def setUp(self):
        self.repo = Repository(Hotel, HotelRelation)
        self.hotel = self.repo.add(Hotel(
            name='Harbour View', address='1 Quay Street, Old Town', city='Lisbon', country='Portugal'
        ))

    def test_soft_deleted_rows_are_hidden_unless_requested(self):
        self.repo.soft_delete(self.hotel)

        self.assertIsNone(self.repo.get_by_id(self.hotel.id))
        self.assertIsNotNone(self.repo.get_by_id(self.hotel.id, include_deleted=True))
        self.assertFalse(self.repo.exists(pk=self.hotel.id))

    def test_update_stamps_updated_at(self):
        self.assertIsNone(self.hotel.updated_at)
        self.hotel.city = 'Porto'
        self.repo.update(self.hotel)

        self.hotel.refresh_from_db()
        self.assertEqual(self.hotel.city, 'Porto')
        self.assertIsNotNone(self.hotel.updated_at)

    def test_find_with_relations(self):
        hotels = list(self.repo.find(include=(HotelRelation.ROOMS,), city='Lisbon'))
        self.assertEqual(hotels, [self.hotel])
        self.assertEqual(self.repo.count(), 1)


class ErrorEnvelopeTestCase(APITestCase):
    def setUp(self):
        cache.clear()

    def test_not_found_uses_error_envelope(self):
        response = self.client.get('/api/hotels/999')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['status_code'], 404)
        self.assertEqual(response.data['error'], 'Hotel with id 999 was not found.')

    def test_validation_errors_are_listed_per_field(self):
        response = self.client.post('/api/auth/register', {'email': 'not-an-email', 'password': '1'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Validation failed')
        self.assertIn('email', response.data['errors'])
        self.assertIn('password', response.data['errors'])

    def test_authentication_required(self):
        response = self.client.get('/api/bookings')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])
