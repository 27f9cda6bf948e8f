from rest_framework import serializers

from .models import Payment, PaymentMethod


class PaymentSerializer(serializers.ModelSerializer):
    booking_id = serializers.IntegerField(read_only=True)
    status_name = serializers.CharField(source='get_status_display', read_only=True)
    payment_method_name = serializers.CharField(source='get_payment_method_display', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'booking_id', 'amount', 'currency', 'status', 'status_name',
            'payment_method', 'payment_method_name', 'transaction_id',
            'failure_reason', 'paid_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class PaymentIntentSerializer(serializers.Serializer):
    booking_id = serializers.IntegerField()
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.CREDIT_CARD)
    currency = serializers.RegexField(r'^[A-Za-z]{3}$', required=False, default='usd')


class PaymentEventDataSerializer(serializers.Serializer):
    transaction_id = serializers.CharField(max_length=100)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    currency = serializers.CharField(max_length=3, required=False)
    failure_reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class PaymentEventSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=100)
    type = serializers.CharField(max_length=50)
    data = PaymentEventDataSerializer()
