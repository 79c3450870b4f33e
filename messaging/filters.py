import django_filters

from messaging.models import Message


class MessageFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Message.STATUS_CHOICES)
    message_type = django_filters.CharFilter()
    batch_id = django_filters.CharFilter()
    to = django_filters.CharFilter(field_name='recipient')
    network = django_filters.CharFilter(field_name='recipient_network')
    created_after = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Message
        fields = ['status', 'message_type', 'batch_id', 'to', 'network', 'created_after', 'created_before']
