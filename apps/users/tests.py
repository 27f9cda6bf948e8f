from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from apps.core.exceptions import ConflictException, UnauthorizedException
from .models import CustomUser
from .services import UserService


class UserServiceTestCase(TestCase):
    def setUp(self):
        self.service = UserService()

    def test_register_creates_customer(self):
        user = self.service.register('ana@example.com', 'secret123', first_name='Ana', last_name='Lima')

        self.assertEqual(user.role, CustomUser.ROLE_CUSTOMER)
        self.assertTrue(user.check_password('secret123'))
        self.assertEqual(user.get_full_name(), 'Ana Lima')

    def test_register_rejects_duplicate_email_case_insensitively(self):
        self.service.register('ana@example.com', 'secret123')
        with self.assertRaises(ConflictException):
            self.service.register('ANA@example.com', 'other-secret')

    def test_deleted_user_still_holds_email(self):
        user = self.service.register('gone@example.com', 'secret123')
        user.soft_delete()
        with self.assertRaises(ConflictException):
            self.service.register('gone@example.com', 'secret123')

    def test_login_returns_tokens_with_role_claim(self):
        self.service.register('ana@example.com', 'secret123')
        user, access, refresh = self.service.login('ana@example.com', 'secret123')

        token = AccessToken(access)
        self.assertEqual(token['role'], 'customer')
        self.assertEqual(token['email'], 'ana@example.com')
        self.assertTrue(refresh)

    def test_login_with_wrong_password(self):
        self.service.register('ana@example.com', 'secret123')
        with self.assertRaises(UnauthorizedException):
            self.service.login('ana@example.com', 'wrong')

    def test_deleted_user_cannot_login(self):
        user = self.service.register('ana@example.com', 'secret123')
        user.soft_delete()
        with self.assertRaises(UnauthorizedException):
            self.service.login('ana@example.com', 'secret123')

    def test_admin_role_grants_staff(self):
        admin = CustomUser.objects.create_user('boss@example.com', 'secret123', role=CustomUser.ROLE_ADMIN)
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_admin)


class AuthAPITestCase(APITestCase):
    def test_register_and_login(self):
        response = self.client.post('/api/auth/register', {
            'email': 'Guest@Example.com',
            'password': 'secret123',
            'first_name': 'Guest',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['email'], 'guest@example.com')
        self.assertEqual(response.data['user']['role'], 'customer')

        response = self.client.post('/api/auth/login', {
            'email': 'guest@example.com',
            'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'guest@example.com')

    def test_register_duplicate_returns_conflict(self):
        CustomUser.objects.create_user('taken@example.com', 'secret123')
        response = self.client.post('/api/auth/register', {
            'email': 'taken@example.com',
            'password': 'secret123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(response.data['success'])

    def test_login_with_bad_credentials(self):
        response = self.client.post('/api/auth/login', {
            'email': 'nobody@example.com',
            'password': 'secret123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid email or password.')

    def test_token_of_deactivated_user_is_rejected(self):
        user = CustomUser.objects.create_user('ana@example.com', 'secret123')
        token = AccessToken.for_user(user)
        user.soft_delete()

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        response = self.client.get('/api/auth/me')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
