from django.urls import path

from .views import (
    BookingDetailView,
    BookingListCreateView,
    bookings_by_hotel,
    bookings_by_user,
    calculate_price,
    cancel_booking,
    change_booking_status,
    check_availability,
)

urlpatterns = [
    path('bookings', BookingListCreateView.as_view(), name='booking-list'),
    path('bookings/check-availability', check_availability, name='booking-check-availability'),
    path('bookings/calculate-price', calculate_price, name='booking-calculate-price'),
    path('bookings/user/<int:user_id>', bookings_by_user, name='booking-by-user'),
    path('bookings/hotel/<int:hotel_id>', bookings_by_hotel, name='booking-by-hotel'),
    path('bookings/<int:pk>', BookingDetailView.as_view(), name='booking-detail'),
    path('bookings/<int:pk>/cancel', cancel_booking, name='booking-cancel'),
    path('bookings/<int:pk>/status', change_booking_status, name='booking-status'),
]
