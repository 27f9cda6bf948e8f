from django.urls import path

from .views import ReviewDetailView, ReviewListCreateView, reviews_by_hotel, reviews_by_user

urlpatterns = [
    path('reviews', ReviewListCreateView.as_view(), name='review-list'),
    path('reviews/hotel/<int:hotel_id>', reviews_by_hotel, name='review-by-hotel'),
    path('reviews/user/<int:user_id>', reviews_by_user, name='review-by-user'),
    path('reviews/<int:pk>', ReviewDetailView.as_view(), name='review-detail'),
]
