from django.urls import path

from .views import HotelDetailView, HotelListCreateView

urlpatterns = [
    path('hotels', HotelListCreateView.as_view(), name='hotel-list'),
    path('hotels/<int:pk>', HotelDetailView.as_view(), name='hotel-detail'),
]
