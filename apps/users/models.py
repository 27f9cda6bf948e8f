from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.db import models
from django.utils import timezone


class CustomUserManager(BaseUserManager):
    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)

    def create_user(self, email, password=None, role='customer', **extra_fields):
        if not email:
            raise ValueError("Email must be provided")
        email = self.normalize_email(email)
        user = self.model(email=email, role=role, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        return self.create_user(email, password, role="admin", **extra_fields)


class CustomUser(AbstractBaseUser, PermissionsMixin):
    ROLE_CUSTOMER = 'customer'
    ROLE_ADMIN = 'admin'
    ROLE_HOTEL_MANAGER = 'hotel_manager'

    ROLE_CHOICES = (
        (ROLE_CUSTOMER, 'Customer'),
        (ROLE_ADMIN, 'Admin'),
        (ROLE_HOTEL_MANAGER, 'Hotel Manager'),
    )

    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=50, blank=True)
    last_name = models.CharField(max_length=50, blank=True)
    phone_number = models.CharField(max_length=20, blank=True, null=True)
    role = models.CharField(max_length=15, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    is_deleted = models.BooleanField(default=False, db_index=True)

    # Timestamps
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(null=True, blank=True)
    last_login = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = CustomUserManager()
    all_objects = models.Manager()

    class Meta:
        db_table = 'users'
        base_manager_name = 'all_objects'

    def get_full_name(self):
        """
        Return the first_name plus last_name, separated by a space.
        Falls back to the local part of the email if names are missing.
        """
        full_name = f"{self.first_name} {self.last_name}".strip()
        if full_name:
            return full_name
        return self.email.split('@')[0] if self.email else "User"

    def get_short_name(self):
        return self.first_name or self.get_full_name()

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_hotel_manager(self):
        return self.role == self.ROLE_HOTEL_MANAGER

    def soft_delete(self):
        self.is_deleted = True
        self.is_active = False
        self.updated_at = timezone.now()
        self.save(update_fields=['is_deleted', 'is_active', 'updated_at'])

    def save(self, *args, **kwargs):
        # Admins can always reach the Django admin site
        if self.role == self.ROLE_ADMIN:
            self.is_staff = True
        super().save(*args, **kwargs)

    def __str__(self):
        return self.get_full_name() or self.email
