from decimal import Decimal

from rest_framework import serializers

from .models import MAX_ROOM_CAPACITY, MAX_ROOM_PRICE, Room, RoomType


class RoomSerializer(serializers.ModelSerializer):
    hotel_id = serializers.IntegerField()
    hotel_name = serializers.CharField(source='hotel.name', read_only=True)
    room_number = serializers.CharField(min_length=1, max_length=20)
    type = serializers.ChoiceField(choices=RoomType.choices)
    type_name = serializers.CharField(source='get_type_display', read_only=True)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2,
        min_value=Decimal('0.01'), max_value=MAX_ROOM_PRICE,
    )
    capacity = serializers.IntegerField(min_value=1, max_value=MAX_ROOM_CAPACITY)

    class Meta:
        model = Room
        fields = [
            'id', 'hotel_id', 'hotel_name', 'room_number', 'type', 'type_name',
            'price', 'capacity', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_room_number(self, value):
        return value.strip()


class AvailableRoomsQuerySerializer(serializers.Serializer):
    check_in = serializers.DateTimeField()
    check_out = serializers.DateTimeField()
    hotel_id = serializers.IntegerField(required=False)
    type = serializers.ChoiceField(choices=RoomType.choices, required=False)
    min_capacity = serializers.IntegerField(required=False)
    max_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)


class RoomFilterSerializer(serializers.Serializer):
    hotel_id = serializers.IntegerField(required=False)
    type = serializers.ChoiceField(choices=RoomType.choices, required=False)
    min_capacity = serializers.IntegerField(required=False, min_value=1)
    max_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
