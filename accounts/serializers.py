from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from accounts.models import SenderID, Transaction, validate_sender_name


class BalanceSerializer(serializers.Serializer):
    wallet_balance = serializers.DecimalField(max_digits=12, decimal_places=4)
    credit_balance = serializers.DecimalField(max_digits=12, decimal_places=4)
    total_balance = serializers.DecimalField(max_digits=12, decimal_places=4)
    currency = serializers.CharField()


class SenderIDSerializer(serializers.ModelSerializer):
    class Meta:
        model = SenderID
        fields = ['id', 'name', 'status', 'is_active', 'is_default', 'rejection_reason', 'created_at']
        read_only_fields = ['id', 'status', 'is_active', 'rejection_reason', 'created_at']


class SenderIDRequestSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=11)
    is_default = serializers.BooleanField(required=False, default=False)

    def validate_name(self, value):
        try:
            validate_sender_name(value)
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        return value


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = ['id', 'tx_type', 'amount', 'credit_used', 'wallet_used', 'wallet_after',
                  'credit_after', 'currency', 'service_type', 'reference', 'description', 'created_at']
