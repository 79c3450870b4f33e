import hashlib
import hmac
import re
import secrets
import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


SENDER_ID_PATTERN = re.compile(r'^[A-Za-z0-9]{3,11}$')


def validate_sender_name(value):
    """Alphanumeric, 3-11 chars, not purely numeric."""
    if not SENDER_ID_PATTERN.match(value or ''):
        raise ValidationError('Sender ID must be 3-11 alphanumeric characters')
    if value.isdigit():
        raise ValidationError('Sender ID cannot be all digits')


class Account(models.Model):
    """
    Customer account consuming the SMS/OTP API.
    Holds the prepaid wallet; bundled credits are spent before wallet money.
    """
    STATUS_CHOICES = [
        ('pending', 'Pending Approval'),
        ('active', 'Active'),
        ('suspended', 'Suspended'),
        ('deactivated', 'Deactivated'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200, help_text='Business name')
    slug = models.SlugField(max_length=50, unique=True)
    contact_email = models.EmailField()
    contact_phone = models.CharField(max_length=20, blank=True, default='')
    status = models.CharField(max_length=15, choices=STATUS_CHOICES, default='active', db_index=True)

    # Billing
    wallet_balance = models.DecimalField(max_digits=12, decimal_places=4, default=0,
        help_text='Prepaid wallet balance')
    credit_balance = models.DecimalField(max_digits=12, decimal_places=4, default=0,
        help_text='Bundled credits, consumed before the wallet')
    currency = models.CharField(max_length=3, default='GHS')
    low_balance_threshold = models.DecimalField(max_digits=12, decimal_places=2, default=10,
        help_text='Log a warning when the combined balance drops below this')

    # Rate limiting
    rate_limit_per_minute = models.PositiveIntegerField(default=120,
        help_text='Max API requests per minute across all keys')
    ip_whitelist = models.JSONField(default=list, blank=True,
        help_text='List of allowed IPs (empty=allow all)')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f'{self.name} ({self.status})'

    @property
    def is_authenticated(self):
        # Lets DRF treat the account as request.user
        return True

    @property
    def total_balance(self):
        return self.wallet_balance + self.credit_balance


class AccountAPIKey(models.Model):
    """HMAC key pair. The public key travels in X-API-Key; the secret signs the body."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='api_keys')
    label = models.CharField(max_length=100, default='Default')
    api_key = models.CharField(max_length=64, unique=True, db_index=True)
    api_secret = models.CharField(max_length=128)
    is_active = models.BooleanField(default=True)
    last_used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'API Key'

    def __str__(self):
        status = 'active' if self.is_active else 'revoked'
        return f'{self.account.name} - {self.label} ({status})'

    @staticmethod
    def generate_key_pair():
        api_key = f'afc_live_{secrets.token_hex(24)}'
        api_secret = secrets.token_hex(48)
        return api_key, api_secret

    @classmethod
    def issue(cls, account, label='Default'):
        api_key, api_secret = cls.generate_key_pair()
        return cls.objects.create(account=account, label=label, api_key=api_key, api_secret=api_secret)

    def sign(self, body_bytes):
        return hmac.new(self.api_secret.encode(), body_bytes, hashlib.sha256).hexdigest()

    def verify_signature(self, body_bytes, signature):
        return hmac.compare_digest(self.sign(body_bytes), signature)

    def revoke(self):
        self.is_active = False
        self.revoked_at = timezone.now()
        self.save(update_fields=['is_active', 'revoked_at'])


class SenderID(models.Model):
    """Registered alphanumeric sender name. Only approved, active names are usable."""
    STATUS_CHOICES = [
        ('pending', 'Pending Review'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='sender_ids')
    name = models.CharField(max_length=11, validators=[validate_sender_name])
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
    is_active = models.BooleanField(default=True)
    is_default = models.BooleanField(default=False)
    rejection_reason = models.CharField(max_length=255, blank=True, default='')
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-is_default', 'created_at']
        verbose_name = 'Sender ID'
        unique_together = ['account', 'name']

    def __str__(self):
        return f'{self.account.name}: {self.name} ({self.status})'

    @property
    def is_usable(self):
        return self.status == 'approved' and self.is_active


class Transaction(models.Model):
    """Balance ledger row. One per debit or refund."""
    TYPE_CHOICES = [
        ('debit', 'Debit'),
        ('refund', 'Refund'),
        ('topup', 'Top Up'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='transactions')
    tx_type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=4)
    credit_used = models.DecimalField(max_digits=12, decimal_places=4, default=0)
    wallet_used = models.DecimalField(max_digits=12, decimal_places=4, default=0)
    wallet_before = models.DecimalField(max_digits=12, decimal_places=4)
    wallet_after = models.DecimalField(max_digits=12, decimal_places=4)
    credit_before = models.DecimalField(max_digits=12, decimal_places=4)
    credit_after = models.DecimalField(max_digits=12, decimal_places=4)
    currency = models.CharField(max_length=3, default='GHS')
    service_type = models.CharField(max_length=20, blank=True, default='')
    reference = models.CharField(max_length=100, blank=True, default='', db_index=True)
    description = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['account', 'created_at'], name='tx_account_created_idx'),
        ]

    def __str__(self):
        return f'{self.tx_type} {self.amount} {self.currency} ({self.reference})'
