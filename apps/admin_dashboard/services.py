import logging
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db.models import Avg, Count, Q, Sum
from django.utils import timezone

from apps.bookings.models import Booking, BookingStatus
from apps.core.caching import CacheKeys, cache_service
from apps.hotels.models import Hotel
from apps.payments.models import Payment, PaymentStatus
from apps.reviews.models import Review
from apps.rooms.models import Room


def _percent(part, whole):
    return round(part * 100 / whole, 2) if whole else 0.0


class DashboardService:
    """Aggregate numbers for the admin dashboard, cached for a minute"""

    def __init__(self, cache=None, logger=None, clock=None):
        self.cache = cache or cache_service
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or timezone.now

    def stats(self):
        return self.cache.get_or_set(CacheKeys.ADMIN_STATS, self._compute, 'AdminStats')

    def _compute(self):
        self.logger.info("Computing admin dashboard statistics")
        return {
            'users': self._user_stats(),
            'hotels': self._hotel_stats(),
            'rooms': self._room_stats(),
            'bookings': self._booking_stats(),
            'payments': self._payment_stats(),
            'reviews': self._review_stats(),
            'generated_at': self.clock().isoformat(),
        }

    def _user_stats(self):
        User = get_user_model()
        month_ago = self.clock() - timedelta(days=30)
        by_role = dict(User.objects.values_list('role').annotate(total=Count('id')))
        return {
            'total': User.objects.count(),
            'customers': by_role.get(User.ROLE_CUSTOMER, 0),
            'admins': by_role.get(User.ROLE_ADMIN, 0),
            'hotel_managers': by_role.get(User.ROLE_HOTEL_MANAGER, 0),
            'new_last_30_days': User.objects.filter(date_joined__gte=month_ago).count(),
        }

    def _hotel_stats(self):
        top_hotels = (
            Hotel.objects
            .annotate(booking_count=Count('rooms__bookings', filter=Q(rooms__bookings__is_deleted=False)))
            .order_by('-booking_count', 'name')[:3]
        )
        return {
            'total': Hotel.objects.count(),
            'average_rating': float(Hotel.objects.aggregate(avg=Avg('rating'))['avg'] or 0),
            'top_by_bookings': [
                {'id': hotel.id, 'name': hotel.name, 'booking_count': hotel.booking_count}
                for hotel in top_hotels
            ],
        }

    def _room_stats(self):
        now = self.clock()
        total = Room.objects.count()
        occupied = (
            Booking.objects
            .filter(status=BookingStatus.CONFIRMED, check_in__lte=now, check_out__gt=now)
            .values('room_id').distinct().count()
        )
        return {
            'total': total,
            'occupied_now': occupied,
            'occupancy_rate': _percent(occupied, total),
        }

    def _booking_stats(self):
        total = Booking.objects.count()
        by_status = dict(Booking.objects.values_list('status').annotate(total=Count('id')))
        stays = [
            (check_out - check_in).days
            for check_in, check_out in Booking.objects.exclude(status=BookingStatus.CANCELLED)
            .values_list('check_in', 'check_out')
        ]
        return {
            'total': total,
            'by_status': {status.label: by_status.get(status.value, 0) for status in BookingStatus},
            'cancellation_rate': _percent(by_status.get(BookingStatus.CANCELLED, 0), total),
            'average_stay_nights': round(sum(stays) / len(stays), 2) if stays else 0.0,
        }

    def _payment_stats(self):
        total = Payment.objects.count()
        succeeded = Payment.objects.filter(status=PaymentStatus.SUCCEEDED)
        return {
            'total': total,
            'succeeded': succeeded.count(),
            'failed': Payment.objects.filter(status=PaymentStatus.FAILED).count(),
            'total_revenue': float(succeeded.aggregate(total=Sum('amount'))['total'] or 0),
            'success_rate': _percent(succeeded.count(), total),
        }

    def _review_stats(self):
        return {
            'total': Review.objects.count(),
            'average_rating': round(float(Review.objects.aggregate(avg=Avg('rating'))['avg'] or 0), 2),
        }
