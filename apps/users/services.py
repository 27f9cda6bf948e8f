import logging

from django.contrib.auth import authenticate

from apps.core.exceptions import ConflictException, UnauthorizedException
from apps.core.repositories import Repository
from .models import CustomUser
from .serializers import CustomTokenObtainPairSerializer


class UserService:
    def __init__(self, users=None, logger=None):
        self.users = users or Repository(CustomUser)
        self.logger = logger or logging.getLogger(__name__)

    def register(self, email, password, first_name='', last_name='', phone_number=None):
        if CustomUser.all_objects.filter(email__iexact=email).exists():
            self.logger.warning(f"Registration rejected, email already in use: {email}")
            raise ConflictException(f"A user with email '{email}' already exists.")

        user = CustomUser.objects.create_user(
            email=email,
            password=password,
            first_name=first_name or '',
            last_name=last_name or '',
            phone_number=phone_number or None,
            role=CustomUser.ROLE_CUSTOMER,
        )
        self.logger.info(f"Registered user {user.id} ({user.email})")
        return user

    def login(self, email, password):
        """Return (user, access, refresh) or raise UnauthorizedException"""
        user = authenticate(email=email, password=password)
        if user is None:
            self.logger.warning(f"Failed login attempt for {email}")
            raise UnauthorizedException("Invalid email or password.")

        refresh = CustomTokenObtainPairSerializer.get_token(user)
        self.logger.info(f"User {user.id} logged in")
        return user, str(refresh.access_token), str(refresh)
