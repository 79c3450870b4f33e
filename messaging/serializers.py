"""
Serializers for the SMS API v1.
"""

from rest_framework import serializers

from messaging.models import Message, PricingRate

PRIORITY_CHOICES = ['cost', 'speed', 'reliability']


class SendSMSSerializer(serializers.Serializer):
    to = serializers.CharField(max_length=32)
    message = serializers.CharField(trim_whitespace=False)
    sender_id = serializers.CharField(max_length=11, required=False, allow_blank=True, default='')
    scheduled_for = serializers.DateTimeField(required=False, allow_null=True, default=None)
    metadata = serializers.DictField(required=False, default=dict)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False, default=list)
    priority = serializers.ChoiceField(choices=PRIORITY_CHOICES, required=False, allow_null=True, default=None)


class BulkRecipientSerializer(serializers.Serializer):
    to = serializers.CharField(max_length=32)
    message = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    variables = serializers.DictField(child=serializers.CharField(allow_blank=True), required=False)


class BulkSMSSerializer(serializers.Serializer):
    recipients = BulkRecipientSerializer(many=True, allow_empty=False)
    message = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    sender_id = serializers.CharField(max_length=11, required=False, allow_blank=True, default='')
    scheduled_for = serializers.DateTimeField(required=False, allow_null=True, default=None)
    metadata = serializers.DictField(required=False, default=dict)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False, default=list)
    priority = serializers.ChoiceField(choices=PRIORITY_CHOICES, required=False, allow_null=True, default=None)


class MessageSerializer(serializers.ModelSerializer):
    message_id = serializers.UUIDField(source='id', read_only=True)
    to = serializers.CharField(source='recipient')
    sender_id = serializers.CharField(source='sender_name')
    provider = serializers.CharField(source='provider_name')
    content = serializers.CharField(source='display_content', read_only=True)

    class Meta:
        model = Message
        fields = [
            'message_id', 'to', 'recipient_country', 'recipient_network', 'content', 'message_type',
            'sender_id', 'status', 'provider', 'units', 'encoding', 'unit_price', 'total_cost',
            'currency', 'batch_id', 'scheduled_for', 'metadata', 'tags', 'error_code', 'error_message',
            'queued_at', 'sent_at', 'delivered_at', 'failed_at', 'created_at',
        ]


class BulkResultRowSerializer(serializers.Serializer):
    to = serializers.CharField()
    status = serializers.CharField()
    message_id = serializers.CharField(required=False)
    units = serializers.IntegerField(required=False)
    cost = serializers.DecimalField(max_digits=12, decimal_places=4, required=False)
    currency = serializers.CharField(required=False)
    error = serializers.CharField(required=False)
    batch_id = serializers.CharField()


class BulkResultSerializer(serializers.Serializer):
    batch_id = serializers.CharField()
    total_recipients = serializers.IntegerField()
    accepted = serializers.IntegerField()
    rejected = serializers.IntegerField()
    estimated_cost = serializers.DecimalField(max_digits=14, decimal_places=4)
    currency = serializers.CharField()
    messages = BulkResultRowSerializer(many=True)


class DeliveryCallbackSerializer(serializers.Serializer):
    message_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    provider_message_id = serializers.CharField(required=False, allow_blank=True, default='')
    status = serializers.CharField(max_length=20)
    error_code = serializers.CharField(required=False, allow_blank=True, default='')
    error_message = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if not attrs.get('message_id') and not attrs.get('provider_message_id'):
            raise serializers.ValidationError('message_id or provider_message_id is required')
        return attrs


class PricingRateSerializer(serializers.ModelSerializer):
    class Meta:
        model = PricingRate
        fields = ['country', 'network', 'service_type', 'message_type', 'rate_per_unit', 'currency',
                  'effective_from', 'effective_to']
