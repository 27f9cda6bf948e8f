from rest_framework import serializers

from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    user_name = serializers.CharField(source='user.get_full_name', read_only=True)
    hotel_id = serializers.IntegerField()
    hotel_name = serializers.CharField(source='hotel.name', read_only=True)
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True)

    class Meta:
        model = Review
        fields = [
            'id', 'user_id', 'user_name', 'hotel_id', 'hotel_name',
            'rating', 'comment', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


class ReviewUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True)
