from decimal import Decimal

from rest_framework import serializers

from .models import Hotel


class HotelSerializer(serializers.ModelSerializer):
    name = serializers.CharField(min_length=3, max_length=200)
    address = serializers.CharField(min_length=10, max_length=500)
    city = serializers.CharField(min_length=2, max_length=100)
    country = serializers.CharField(min_length=2, max_length=100)
    rating = serializers.DecimalField(
        max_digits=3, decimal_places=2,
        min_value=Decimal('0'), max_value=Decimal('5'),
        required=False,
    )
    room_count = serializers.SerializerMethodField()

    class Meta:
        model = Hotel
        fields = [
            'id', 'name', 'address', 'city', 'country', 'rating',
            'room_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_room_count(self, obj):
        return obj.rooms.count()

    def validate_name(self, value):
        return value.strip()


class HotelListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Hotel
        fields = ['id', 'name', 'city', 'country', 'rating']
