import hmac
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from apps.bookings.services import BookingService
from apps.core.exceptions import BadRequestException, UnauthorizedException
from .serializers import PaymentEventSerializer, PaymentIntentSerializer, PaymentSerializer
from .services import PaymentService

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_payment_intent(request):
    serializer = PaymentIntentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    bookings = BookingService(logger=logger)
    bookings.ensure_can_access(bookings.get(data['booking_id'], include=()), request.user)

    payment = PaymentService(logger=logger).create_intent(
        data['booking_id'], data['payment_method'], currency=data['currency']
    )
    return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_detail(request, pk):
    payment = PaymentService(logger=logger).get(pk)
    BookingService(logger=logger).ensure_can_access(payment.booking, request.user)
    return Response(PaymentSerializer(payment).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def booking_payment(request, booking_id):
    payment = PaymentService(logger=logger).for_booking(booking_id)
    BookingService(logger=logger).ensure_can_access(payment.booking, request.user)
    return Response(PaymentSerializer(payment).data)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def payment_webhook(request):
    """
    Gateway callback. When PAYMENT_WEBHOOK_SECRET is configured the caller
    must send it in the X-Webhook-Secret header.
    """
    secret = getattr(settings, 'PAYMENT_WEBHOOK_SECRET', '')
    if secret:
        provided = request.headers.get('X-Webhook-Secret')
        if not provided:
            logger.warning("Payment webhook received without secret header")
            raise BadRequestException("Missing webhook secret header.")
        if not hmac.compare_digest(provided, secret):
            raise UnauthorizedException("Invalid webhook secret.")

    serializer = PaymentEventSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    event = serializer.validated_data
    logger.info(f"Payment webhook: {event['type']} {event['id']}")

    payment = PaymentService(logger=logger).process_event(
        event['id'],
        event['type'],
        event['data']['transaction_id'],
        amount=event['data'].get('amount'),
        currency=event['data'].get('currency'),
        failure_reason=event['data'].get('failure_reason'),
    )
    return Response({
        'received': True,
        'payment_id': payment.id if payment else None,
    })
