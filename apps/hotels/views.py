from rest_framework import generics, status
from rest_framework.response import Response
import logging

from apps.core.caching import CacheKeys
from apps.core.mixins import CachedListMixin, CachedRetrieveMixin
from apps.core.serializers import DeleteOptionsSerializer
from apps.users.permissions import IsAdminOrReadOnly
from .filters import HotelFilter
from .serializers import HotelListSerializer, HotelSerializer
from .services import HotelService

logger = logging.getLogger(__name__)


class HotelListCreateView(CachedListMixin, generics.ListCreateAPIView):
    """
    List hotels (public) or create one (admin only)
    """
    permission_classes = [IsAdminOrReadOnly]
    filterset_class = HotelFilter
    list_cache_profile = 'HotelsList'

    def get_serializer_class(self):
        if self.request.method == 'GET':
            return HotelListSerializer
        return HotelSerializer

    def get_queryset(self):
        return HotelService(logger=logger).list()

    def get_list_cache_key(self, request):
        return CacheKeys.hotels_list(request.query_params.dict())

    def perform_create(self, serializer):
        serializer.instance = HotelService(logger=logger).create(**serializer.validated_data)


class HotelDetailView(CachedRetrieveMixin, generics.RetrieveUpdateDestroyAPIView):
    """
    Retrieve, update or delete a hotel. Delete accepts ?is_soft=&force=
    """
    serializer_class = HotelSerializer
    permission_classes = [IsAdminOrReadOnly]
    detail_cache_profile = 'HotelDetails'

    def get_object(self):
        return HotelService(logger=logger).get(self.kwargs['pk'])

    def get_detail_cache_key(self, request):
        return CacheKeys.hotel_details(self.kwargs['pk'])

    def perform_update(self, serializer):
        serializer.instance = HotelService(logger=logger).update(
            serializer.instance.id, **serializer.validated_data
        )

    def destroy(self, request, *args, **kwargs):
        options = DeleteOptionsSerializer(data=request.query_params)
        options.is_valid(raise_exception=True)
        soft = options.validated_data['is_soft']

        hotel = HotelService(logger=logger).delete(
            self.kwargs['pk'], soft=soft, force=options.validated_data['force']
        )
        return Response(
            {'message': f"Hotel '{hotel.name}' {'soft deleted' if soft else 'permanently deleted'} successfully"},
            status=status.HTTP_200_OK
        )
