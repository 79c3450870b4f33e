import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone


MESSAGE_TYPE_CHOICES = [
    ('sms', 'SMS'),
    ('bulk', 'Bulk SMS'),
    ('otp', 'OTP'),
]


class Provider(models.Model):
    """
    Upstream SMS aggregator/operator connection.
    Rolling stats are maintained by messaging.router.record_outcome().
    """
    PROVIDER_TYPES = [
        ('sandbox', 'Sandbox (no delivery)'),
        ('twilio', 'Twilio'),
        ('arkesel', 'Arkesel'),
        ('hubtel', 'Hubtel'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    name = models.CharField(max_length=100, unique=True)
    provider_type = models.CharField(max_length=20, choices=PROVIDER_TYPES, default='sandbox')
    supported_countries = models.JSONField(default=list, help_text='ISO codes, e.g. ["GH", "NG"]')
    supported_networks = models.JSONField(default=list, blank=True,
        help_text='Network codes, e.g. ["mtn", "telecel"] (empty = no network preference)')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active', db_index=True)
    priority = models.IntegerField(default=0, help_text='Higher = preferred')

    # Rolling health stats
    success_rate = models.FloatField(default=1.0)
    avg_latency_ms = models.FloatField(null=True, blank=True)
    error_count = models.PositiveIntegerField(default=0, help_text='Consecutive failures; reset on success')
    total_attempts = models.PositiveIntegerField(default=0)
    last_success_at = models.DateTimeField(null=True, blank=True)
    last_error_at = models.DateTimeField(null=True, blank=True)

    # Credentials
    api_key = models.CharField(max_length=255, blank=True, default='')
    api_secret = models.CharField(max_length=255, blank=True, default='')
    base_url = models.URLField(blank=True, default='')
    extra_config = models.JSONField(default=dict, blank=True,
        help_text='Provider-specific settings, e.g. {"from_number": "+1555..."}')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-priority', 'name']

    def __str__(self):
        return f'{self.name} ({self.provider_type}, p={self.priority})'

    def supports_country(self, iso):
        return iso in (self.supported_countries or [])

    def supports_network(self, network):
        return bool(network) and network in (self.supported_networks or [])


class PricingRate(models.Model):
    """
    Per-unit price for a destination. network=NULL is the country-wide default.
    At most one rate is current per (country, network, service_type, message_type).
    """
    SERVICE_CHOICES = [
        ('sms', 'SMS'),
    ]

    country = models.CharField(max_length=2)
    network = models.CharField(max_length=30, null=True, blank=True)
    service_type = models.CharField(max_length=10, choices=SERVICE_CHOICES, default='sms')
    message_type = models.CharField(max_length=10, choices=MESSAGE_TYPE_CHOICES, default='sms')
    rate_per_unit = models.DecimalField(max_digits=10, decimal_places=4)
    currency = models.CharField(max_length=3, default='GHS')
    effective_from = models.DateTimeField(default=timezone.now)
    effective_to = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['country', 'network', '-effective_from']
        indexes = [
            models.Index(fields=['country', 'network', 'service_type', 'message_type', 'effective_from'],
                         name='pricing_lookup_idx'),
        ]

    def __str__(self):
        return f'{self.country}/{self.network or "*"} {self.message_type}: {self.rate_per_unit} {self.currency}'

    def clean(self):
        if self.effective_to and self.effective_to <= self.effective_from:
            raise ValidationError('effective_to must be after effective_from')
        if not self.is_active:
            return
        overlapping = PricingRate.objects.filter(
            country=self.country,
            network=self.network,
            service_type=self.service_type,
            message_type=self.message_type,
            is_active=True,
        ).filter(
            Q(effective_to__isnull=True) | Q(effective_to__gt=self.effective_from),
        ).exclude(pk=self.pk)
        if self.effective_to:
            overlapping = overlapping.filter(effective_from__lt=self.effective_to)
        if overlapping.exists():
            raise ValidationError('An active rate already covers this period for the same destination')


class Message(models.Model):
    """
    One outbound SMS. Never deleted; cancellation is pending -> failed.
    Status only moves forward: pending < queued < sent < delivered/failed/expired.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending (scheduled)'),
        ('queued', 'Queued'),
        ('sent', 'Sent'),
        ('delivered', 'Delivered'),
        ('failed', 'Failed'),
        ('expired', 'Expired'),
    ]
    STATUS_RANK = {
        'pending': 0,
        'queued': 1,
        'sent': 2,
        'delivered': 3,
        'failed': 3,
        'expired': 3,
    }
    TERMINAL_STATUSES = ('delivered', 'failed', 'expired')

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='messages')

    recipient = models.CharField(max_length=20, db_index=True)
    recipient_country = models.CharField(max_length=2, blank=True, default='')
    recipient_network = models.CharField(max_length=30, blank=True, default='')
    content = models.TextField()
    # Masked copy of content (OTP codes); becomes content once the message leaves the queue
    redacted_content = models.TextField(blank=True, default='')
    message_type = models.CharField(max_length=10, choices=MESSAGE_TYPE_CHOICES, default='sms')

    sender = models.ForeignKey('accounts.SenderID', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='messages')
    sender_name = models.CharField(max_length=11)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='queued', db_index=True)
    provider = models.ForeignKey(Provider, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='messages')
    provider_name = models.CharField(max_length=100, blank=True, default='')
    provider_message_id = models.CharField(max_length=100, blank=True, default='', db_index=True)

    # Billing
    units = models.PositiveIntegerField(default=1)
    encoding = models.CharField(max_length=5, default='GSM-7')
    unit_price = models.DecimalField(max_digits=10, decimal_places=4)
    total_cost = models.DecimalField(max_digits=12, decimal_places=4)
    currency = models.CharField(max_length=3, default='GHS')

    batch_id = models.CharField(max_length=32, null=True, blank=True)
    scheduled_for = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    tags = models.JSONField(default=list, blank=True)

    error_code = models.CharField(max_length=50, blank=True, default='')
    error_message = models.TextField(blank=True, default='')

    queued_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['account', 'batch_id'], name='message_batch_idx'),
            models.Index(fields=['account', 'created_at'], name='message_account_created_idx'),
            models.Index(fields=['status', 'scheduled_for'], name='message_schedule_idx'),
        ]

    def __str__(self):
        return f'{self.recipient} [{self.status}] {self.units}u'

    @property
    def display_content(self):
        return self.redacted_content or self.content

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @classmethod
    def can_transition(cls, current, new):
        if current in cls.TERMINAL_STATUSES:
            return False
        return cls.STATUS_RANK.get(new, -1) > cls.STATUS_RANK.get(current, -1)
