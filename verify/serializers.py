"""
Serializers for the Verify (OTP) API v1.
"""

from django.conf import settings
from rest_framework import serializers

from verify.models import OTPRecord


class SendOTPSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=32)
    sender_id = serializers.CharField(max_length=11, required=False, allow_blank=True, default='')
    message = serializers.CharField(required=False, allow_null=True, default=None,
                                    help_text='Template containing {code}; may use {amount} and {duration}')
    pin_length = serializers.IntegerField(required=False, default=settings.OTP_DEFAULT_PIN_LENGTH)
    pin_type = serializers.ChoiceField(choices=['numeric', 'alphanumeric', 'alphabetic'], required=False,
                                       default='numeric')
    expiry_amount = serializers.IntegerField(required=False, default=settings.OTP_DEFAULT_EXPIRY_MINUTES)
    expiry_unit = serializers.ChoiceField(choices=['seconds', 'minutes', 'hours'], required=False,
                                          default='minutes')
    max_attempts = serializers.IntegerField(required=False, default=settings.OTP_DEFAULT_MAX_ATTEMPTS)
    metadata = serializers.DictField(required=False, default=dict)

    def to_internal_value(self, data):
        # Accept NUMERIC / ALPHANUMERIC as well
        if hasattr(data, 'get') and isinstance(data.get('pin_type'), str):
            data = data.copy()
            data['pin_type'] = data['pin_type'].lower()
        return super().to_internal_value(data)


class VerifyOTPSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=32)
    code = serializers.RegexField(r'^[A-Za-z0-9]{4,10}$', error_messages={
        'invalid': 'OTP code must be 4-10 alphanumeric characters',
    })


class ResendOTPSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=32)


class OTPRecordSerializer(serializers.ModelSerializer):
    otp_id = serializers.UUIDField(source='id', read_only=True)
    message_id = serializers.UUIDField(read_only=True, allow_null=True)
    attempts_remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = OTPRecord
        fields = [
            'otp_id', 'phone', 'status', 'code_length', 'pin_type', 'expires_at', 'attempts',
            'max_attempts', 'attempts_remaining', 'sender_name', 'message_id', 'metadata',
            'error_message', 'created_at', 'verified_at',
        ]


class VerifyResultSerializer(serializers.Serializer):
    verified = serializers.BooleanField()
    otp_id = serializers.CharField()
    phone = serializers.CharField()
    status = serializers.CharField()
    attempts_remaining = serializers.IntegerField(required=False)
    verified_at = serializers.DateTimeField(required=False)
    metadata = serializers.DictField(required=False)


class OTPStatsSerializer(serializers.Serializer):
    total_sent = serializers.IntegerField()
    pending = serializers.IntegerField()
    verified = serializers.IntegerField()
    failed = serializers.IntegerField()
    expired = serializers.IntegerField()
    verification_rate = serializers.FloatField()
    average_attempts = serializers.FloatField()
