import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone


class OTPRecord(models.Model):
    """
    One passcode issued to a phone number.
    Only the hash of the code is stored. A number has at most one pending
    record per account; every other state is terminal.
    """
    PIN_TYPE_CHOICES = [
        ('numeric', 'Numeric'),
        ('alphanumeric', 'Alphanumeric'),
        ('alphabetic', 'Alphabetic'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('verified', 'Verified'),
        ('failed', 'Failed'),
        ('expired', 'Expired'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='otps')
    phone = models.CharField(max_length=20)
    code_hash = models.CharField(max_length=128)
    code_length = models.PositiveSmallIntegerField(default=6)
    pin_type = models.CharField(max_length=12, choices=PIN_TYPE_CHOICES, default='numeric')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
    expires_at = models.DateTimeField()
    expiry_seconds = models.PositiveIntegerField(default=600, help_text='Lifetime the code was issued with')
    attempts = models.PositiveSmallIntegerField(default=0)
    max_attempts = models.PositiveSmallIntegerField(default=3)
    sender_name = models.CharField(max_length=11, blank=True, default='')
    message = models.ForeignKey('messaging.Message', on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='otps')
    metadata = models.JSONField(default=dict, blank=True)
    error_message = models.CharField(max_length=255, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    verified_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'OTP'
        verbose_name_plural = 'OTPs'
        constraints = [
            models.UniqueConstraint(
                fields=['account', 'phone'],
                condition=Q(status='pending'),
                name='otp_one_pending_per_phone',
            ),
        ]
        indexes = [
            models.Index(fields=['account', 'phone', 'status'], name='otp_lookup_idx'),
        ]

    def __str__(self):
        return f'OTP {self.phone[:6]}*** ({self.status})'

    @property
    def is_expired(self):
        return timezone.now() >= self.expires_at

    @property
    def attempts_remaining(self):
        return max(self.max_attempts - self.attempts, 0)
