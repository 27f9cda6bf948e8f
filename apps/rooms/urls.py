from django.urls import path

from .views import RoomDetailView, RoomListCreateView, available_rooms, room_types

urlpatterns = [
    path('rooms', RoomListCreateView.as_view(), name='room-list'),
    path('rooms/available', available_rooms, name='room-available'),
    path('rooms/types', room_types, name='room-types'),
    path('rooms/<int:pk>', RoomDetailView.as_view(), name='room-detail'),
]
