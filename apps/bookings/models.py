from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from apps.core.models import AllObjectsManager, BaseModel, SoftDeleteManager, SoftDeleteQuerySet


class BookingStatus(models.IntegerChoices):
    PENDING = 1, 'Pending'
    CONFIRMED = 2, 'Confirmed'
    COMPLETED = 3, 'Completed'
    CANCELLED = 4, 'Cancelled'
    NO_SHOW = 5, 'NoShow'


# Statuses that hold the room for their date range
BLOCKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

TERMINAL_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
    BookingStatus.NO_SHOW: set(),
}


class BookingQuerySet(SoftDeleteQuerySet):
    def blocking(self):
        return self.filter(status__in=BLOCKING_STATUSES)

    def overlapping(self, check_in, check_out):
        """Bookings that hold their room somewhere inside [check_in, check_out)"""
        return self.blocking().filter(check_in__lt=check_out, check_out__gt=check_in)

    def active(self):
        """Not cancelled and checking out in the future"""
        return self.exclude(status=BookingStatus.CANCELLED).filter(check_out__gt=timezone.now())


class Booking(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    room = models.ForeignKey(
        'rooms.Room',
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    check_in = models.DateTimeField()
    check_out = models.DateTimeField()
    total_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    status = models.PositiveSmallIntegerField(choices=BookingStatus.choices, default=BookingStatus.PENDING)
    cancellation_reason = models.CharField(max_length=500, blank=True, null=True)

    objects = SoftDeleteManager.from_queryset(BookingQuerySet)()
    all_objects = AllObjectsManager.from_queryset(BookingQuerySet)()

    class Meta(BaseModel.Meta):
        db_table = 'bookings'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F('check_in')),
                name='booking_check_out_after_check_in',
            ),
        ]
        indexes = [
            models.Index(fields=['room', 'check_in', 'check_out'], name='bookings_room_dates_idx'),
            models.Index(fields=['status'], name='bookings_status_idx'),
        ]

    def __str__(self):
        return f"Booking #{self.pk} - room {self.room_id} {self.check_in:%Y-%m-%d} to {self.check_out:%Y-%m-%d}"

    @property
    def nights(self):
        return (self.check_out - self.check_in).days

    @property
    def is_active(self):
        """Pending or Confirmed and not yet checked out"""
        return (
            not self.is_deleted
            and self.status in BLOCKING_STATUSES
            and self.check_out > timezone.now()
        )

    def can_transition_to(self, new_status):
        if new_status == self.status:
            return True
        return new_status in ALLOWED_TRANSITIONS.get(BookingStatus(self.status), set())


class BookingStatusHistory(models.Model):
    """
    Track status changes for bookings
    """
    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name='status_history'
    )
    old_status = models.PositiveSmallIntegerField(choices=BookingStatus.choices, null=True, blank=True)
    new_status = models.PositiveSmallIntegerField(choices=BookingStatus.choices)
    changed_at = models.DateTimeField(auto_now_add=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )
    reason = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'booking_status_history'
        ordering = ['-changed_at']
        verbose_name = 'Booking Status History'
        verbose_name_plural = 'Booking Status Histories'

    def __str__(self):
        return f"Booking #{self.booking_id}: {self.old_status} -> {self.new_status}"
