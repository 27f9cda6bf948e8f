from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
import logging

from apps.core.caching import CacheKeys, cache_service
from apps.core.exceptions import ForbiddenException
from apps.core.mixins import CachedListMixin
from apps.core.serializers import DeleteOptionsSerializer
from apps.users.permissions import IsAdminOrHotelManager, is_staff_user
from .serializers import (
    AvailabilityQuerySerializer,
    BookingCreateSerializer,
    BookingFilterSerializer,
    BookingSerializer,
    BookingStatusUpdateSerializer,
    BookingUpdateSerializer,
    CancelBookingSerializer,
    DateRangeQuerySerializer,
    PriceQuoteSerializer,
)
from .services import BookingService

logger = logging.getLogger(__name__)


class BookingListCreateView(CachedListMixin, generics.ListCreateAPIView):
    """
    Customers see and create their own bookings; admins and hotel managers
    see every booking and may book on behalf of a customer.
    """
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated]
    list_cache_profile = 'BookingsList'

    def get_queryset(self):
        filters = BookingFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        params = dict(filters.validated_data)
        if not is_staff_user(self.request.user):
            params['user_id'] = self.request.user.id
        return BookingService(logger=logger).list(**params)

    def get_list_cache_key(self, request):
        params = request.query_params.dict()
        if not is_staff_user(request.user):
            params['_user'] = request.user.id
        return CacheKeys.bookings_list(params)

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user_id = request.user.id
        if data.get('user_id') and data['user_id'] != request.user.id:
            if not is_staff_user(request.user):
                raise ForbiddenException("You can only create bookings for yourself.")
            user_id = data['user_id']

        service = BookingService(logger=logger)
        booking = service.create(user_id, data['room_id'], data['check_in'], data['check_out'])
        return Response(
            BookingSerializer(service.get(booking.id)).data,
            status=status.HTTP_201_CREATED
        )


class BookingDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ['get', 'patch', 'delete', 'head', 'options']

    def _get_owned(self, service):
        booking = service.get(self.kwargs['pk'])
        service.ensure_can_access(booking, self.request.user)
        return booking

    def retrieve(self, request, *args, **kwargs):
        key = CacheKeys.booking_details(self.kwargs['pk'])
        data = cache_service.get(key)
        if data is None:
            data = BookingSerializer(BookingService(logger=logger).get(self.kwargs['pk'])).data
            cache_service.set(key, data, 'BookingDetails')

        if not is_staff_user(request.user) and data['user_id'] != request.user.id:
            raise ForbiddenException("You can only access your own bookings.")
        return Response(data)

    def partial_update(self, request, *args, **kwargs):
        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service = BookingService(logger=logger)
        self._get_owned(service)
        if 'status' in data and not is_staff_user(request.user):
            raise ForbiddenException("Only staff can change a booking's status.")

        booking = service.update(
            self.kwargs['pk'],
            check_in=data.get('check_in'),
            check_out=data.get('check_out'),
            status=data.get('status'),
            actor=request.user,
        )
        return Response(BookingSerializer(service.get(booking.id)).data)

    def destroy(self, request, *args, **kwargs):
        options = DeleteOptionsSerializer(data=request.query_params)
        options.is_valid(raise_exception=True)
        soft = options.validated_data['is_soft']

        service = BookingService(logger=logger)
        self._get_owned(service)
        if not soft and not is_staff_user(request.user):
            raise ForbiddenException("Only staff can permanently delete bookings.")

        service.delete(self.kwargs['pk'], soft=soft, force=options.validated_data['force'], actor=request.user)
        return Response(
            {'message': f"Booking {self.kwargs['pk']} {'soft deleted' if soft else 'permanently deleted'} successfully"},
            status=status.HTTP_200_OK
        )


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_booking(request, pk):
    serializer = CancelBookingSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    service = BookingService(logger=logger)
    service.ensure_can_access(service.get(pk, include=()), request.user)
    booking = service.cancel(pk, reason=serializer.validated_data.get('reason') or None, actor=request.user)
    return Response({
        'message': 'Booking cancelled successfully',
        'booking': BookingSerializer(service.get(booking.id)).data,
    })


@api_view(['PATCH'])
@permission_classes([IsAdminOrHotelManager])
def change_booking_status(request, pk):
    serializer = BookingStatusUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    service = BookingService(logger=logger)
    booking = service.change_status(
        pk,
        serializer.validated_data['status'],
        reason=serializer.validated_data.get('reason') or None,
        actor=request.user,
    )
    return Response(BookingSerializer(service.get(booking.id)).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bookings_by_user(request, user_id):
    if not is_staff_user(request.user) and request.user.id != user_id:
        raise ForbiddenException("You can only view your own bookings.")
    bookings = BookingService(logger=logger).for_user(user_id)
    return Response(BookingSerializer(bookings, many=True).data)


@api_view(['GET'])
@permission_classes([IsAdminOrHotelManager])
def bookings_by_hotel(request, hotel_id):
    bookings = BookingService(logger=logger).for_hotel(hotel_id)
    return Response(BookingSerializer(bookings, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def check_availability(request):
    query = AvailabilityQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    is_available = BookingService(logger=logger).is_available(
        params['room_id'],
        params['check_in'],
        params['check_out'],
        exclude_booking_id=params.get('exclude_booking_id'),
    )
    return Response({
        'room_id': params['room_id'],
        'check_in': params['check_in'],
        'check_out': params['check_out'],
        'is_available': is_available,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def calculate_price(request):
    query = DateRangeQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    quote = BookingService(logger=logger).calculate_price(
        params['room_id'], params['check_in'], params['check_out']
    )
    return Response(PriceQuoteSerializer(quote).data)
