from rest_framework import serializers

from .models import Booking, BookingStatus, BookingStatusHistory
from .services import MAX_REASON_LENGTH


class BookingStatusHistorySerializer(serializers.ModelSerializer):
    """Serializer for booking status history"""
    changed_by_email = serializers.EmailField(source='changed_by.email', read_only=True, default=None)

    class Meta:
        model = BookingStatusHistory
        fields = ['id', 'old_status', 'new_status', 'changed_at', 'changed_by', 'changed_by_email', 'reason']
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)
    room_id = serializers.IntegerField(read_only=True)
    room_number = serializers.CharField(source='room.room_number', read_only=True)
    hotel_id = serializers.IntegerField(source='room.hotel_id', read_only=True)
    hotel_name = serializers.CharField(source='room.hotel.name', read_only=True)
    status_name = serializers.CharField(source='get_status_display', read_only=True)
    nights = serializers.IntegerField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'user_id', 'user_email', 'room_id', 'room_number', 'hotel_id', 'hotel_name',
            'check_in', 'check_out', 'nights', 'total_price', 'status', 'status_name',
            'cancellation_reason', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class BookingCreateSerializer(serializers.Serializer):
    room_id = serializers.IntegerField()
    check_in = serializers.DateTimeField()
    check_out = serializers.DateTimeField()
    # Staff may book on behalf of a customer
    user_id = serializers.IntegerField(required=False)

    def validate(self, data):
        if data['check_out'] <= data['check_in']:
            raise serializers.ValidationError({'check_out': "Check-out date must be after check-in date."})
        return data


class BookingUpdateSerializer(serializers.Serializer):
    check_in = serializers.DateTimeField(required=False)
    check_out = serializers.DateTimeField(required=False)
    status = serializers.ChoiceField(choices=BookingStatus.choices, required=False)


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=MAX_REASON_LENGTH, required=False, allow_blank=True, allow_null=True)


class BookingStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingStatus.choices)
    reason = serializers.CharField(max_length=MAX_REASON_LENGTH, required=False, allow_blank=True, allow_null=True)


class BookingFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingStatus.choices, required=False)
    room_id = serializers.IntegerField(required=False)
    hotel_id = serializers.IntegerField(required=False)
    user_id = serializers.IntegerField(required=False)
    date_from = serializers.DateTimeField(required=False)
    date_to = serializers.DateTimeField(required=False)


class DateRangeQuerySerializer(serializers.Serializer):
    room_id = serializers.IntegerField()
    check_in = serializers.DateTimeField()
    check_out = serializers.DateTimeField()

    def validate(self, data):
        if data['check_out'] <= data['check_in']:
            raise serializers.ValidationError({'check_out': "Check-out date must be after check-in date."})
        return data


class AvailabilityQuerySerializer(DateRangeQuerySerializer):
    exclude_booking_id = serializers.IntegerField(required=False)


class PriceQuoteSerializer(serializers.Serializer):
    room_id = serializers.IntegerField()
    room_number = serializers.CharField()
    nights = serializers.IntegerField()
    nightly_rate = serializers.DecimalField(max_digits=10, decimal_places=2)
    total = serializers.DecimalField(max_digits=10, decimal_places=2)
