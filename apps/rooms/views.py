from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
import logging

from apps.core.caching import CacheKeys
from apps.core.mixins import CachedListMixin, CachedRetrieveMixin
from apps.core.serializers import DeleteOptionsSerializer
from apps.users.permissions import IsStaffOrReadOnly
from .serializers import AvailableRoomsQuerySerializer, RoomFilterSerializer, RoomSerializer
from .services import RoomService

logger = logging.getLogger(__name__)


class RoomListCreateView(CachedListMixin, generics.ListCreateAPIView):
    """
    List rooms (filters: hotel_id, type, min_capacity, max_price) or create one
    """
    serializer_class = RoomSerializer
    permission_classes = [IsStaffOrReadOnly]
    list_cache_profile = 'RoomsList'

    def get_queryset(self):
        filters = RoomFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        params = filters.validated_data
        return RoomService(logger=logger).list(
            hotel_id=params.get('hotel_id'),
            room_type=params.get('type'),
            min_capacity=params.get('min_capacity'),
            max_price=params.get('max_price'),
        )

    def get_list_cache_key(self, request):
        return CacheKeys.rooms_list(request.query_params.dict())

    def perform_create(self, serializer):
        serializer.instance = RoomService(logger=logger).create(**serializer.validated_data)


class RoomDetailView(CachedRetrieveMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = RoomSerializer
    permission_classes = [IsStaffOrReadOnly]
    detail_cache_profile = 'RoomDetails'

    def get_object(self):
        return RoomService(logger=logger).get(self.kwargs['pk'])

    def get_detail_cache_key(self, request):
        return CacheKeys.room_details(self.kwargs['pk'])

    def perform_update(self, serializer):
        serializer.instance = RoomService(logger=logger).update(
            serializer.instance.id, **serializer.validated_data
        )

    def destroy(self, request, *args, **kwargs):
        options = DeleteOptionsSerializer(data=request.query_params)
        options.is_valid(raise_exception=True)
        soft = options.validated_data['is_soft']

        room = RoomService(logger=logger).delete(
            self.kwargs['pk'], soft=soft, force=options.validated_data['force']
        )
        return Response(
            {'message': f"Room '{room.room_number}' {'soft deleted' if soft else 'permanently deleted'} successfully"},
            status=status.HTTP_200_OK
        )


@api_view(['GET'])
@permission_classes([AllowAny])
def available_rooms(request):
    """
    Rooms free for the whole [check_in, check_out) range
    """
    query = AvailableRoomsQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    rooms = RoomService(logger=logger).available(
        params['check_in'],
        params['check_out'],
        hotel_id=params.get('hotel_id'),
        room_type=params.get('type'),
        min_capacity=params.get('min_capacity'),
        max_price=params.get('max_price'),
    )
    data = RoomSerializer(rooms, many=True).data
    return Response({'count': len(data), 'results': data})


@api_view(['GET'])
@permission_classes([AllowAny])
def room_types(request):
    return Response(RoomService.room_types())
