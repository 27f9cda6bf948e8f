from rest_framework import serializers


class DeleteOptionsSerializer(serializers.Serializer):
    """Query options accepted by every DELETE endpoint"""
    is_soft = serializers.BooleanField(required=False, default=True)
    force = serializers.BooleanField(required=False, default=False)
