"""
OTP lifecycle: request -> deliver over SMS -> verify | fail | expire.

Codes come from `secrets` and only their hash is kept on the record.
Every state change is a conditional update on status='pending', so a
record never leaves a terminal state. The database allows one pending
record per (account, phone).
"""

import logging
import math
import secrets
import string
from datetime import timedelta

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, Q
from django.utils import timezone

from accounts.sender_directory import resolve_sender
from core.exceptions import GatewayError, NotFoundError, RateLimitError, StateConflictError, ValidationError
from messaging import dispatch
from messaging.phone import classify, mask_phone
from messaging.units import render_template
from verify.models import OTPRecord

logger = logging.getLogger(__name__)

ALPHABETS = {
    'numeric': string.digits,
    'alphabetic': string.ascii_uppercase,
    'alphanumeric': string.digits + string.ascii_uppercase,
}

UNIT_SECONDS = {
    'seconds': 1,
    'minutes': 60,
    'hours': 3600,
}

DEFAULT_TEMPLATE = 'Your {brand} verification code is {code}. It expires in {amount} {duration}.'
NO_ACTIVE_OTP = 'No active OTP found for this phone number'

_SENSITIVE_KEYS = ('password', 'secret', 'token', 'apikey', 'privatekey')


# ==================== HELPERS ====================


def generate_code(length, pin_type='numeric'):
    alphabet = ALPHABETS[pin_type]
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def format_duration(amount, unit):
    """'minutes' -> 'minute' when amount is 1."""
    return unit[:-1] if amount == 1 else unit


def describe_expiry(seconds):
    """Largest whole unit for a stored lifetime, e.g. 600 -> (10, 'minutes')."""
    for unit in ('hours', 'minutes'):
        size = UNIT_SECONDS[unit]
        if seconds % size == 0:
            return seconds // size, unit
    return seconds, 'seconds'


def sanitize_metadata(metadata):
    if not metadata:
        return {}
    clean = {}
    for key, value in metadata.items():
        flat = str(key).lower().replace('_', '').replace('-', '')
        if any(word in flat for word in _SENSITIVE_KEYS):
            continue
        clean[key] = value
    return clean


def _normalize(phone):
    result = classify(phone)
    if not result.valid:
        raise ValidationError(result.errors)
    return result.normalized


def _validate_request(pin_length, pin_type, expiry_amount, expiry_unit, max_attempts, message_template):
    errors = []
    if pin_type not in ALPHABETS:
        errors.append('PIN type must be numeric, alphanumeric or alphabetic')
    if not isinstance(pin_length, int) or not 4 <= pin_length <= 10:
        errors.append('PIN length must be between 4 and 10')
    if not isinstance(max_attempts, int) or not 1 <= max_attempts <= 10:
        errors.append('Max attempts must be between 1 and 10')
    if expiry_unit not in UNIT_SECONDS:
        errors.append('Expiry unit must be seconds, minutes or hours')
    elif not isinstance(expiry_amount, int) or not 60 <= expiry_amount * UNIT_SECONDS[expiry_unit] <= 86400:
        errors.append('Expiry must be between 1 minute and 24 hours')
    if message_template is not None:
        if not 10 <= len(message_template) <= 300:
            errors.append('Message template must be between 10 and 300 characters')
        if '{code}' not in message_template:
            errors.append('Message template must include the {code} placeholder')
    if errors:
        raise ValidationError(errors)


def _check_cooldown(account, phone, now):
    cooldown = settings.OTP_RESEND_COOLDOWN_SECONDS
    last = (
        OTPRecord.objects.filter(account=account, phone=phone)
        .order_by('-created_at')
        .values_list('created_at', flat=True)
        .first()
    )
    if last is None:
        return
    remaining = cooldown - (now - last).total_seconds()
    if remaining > 0:
        remaining = math.ceil(remaining)
        raise RateLimitError(
            f'Please wait {remaining} seconds before requesting another OTP',
            remaining_seconds=remaining,
        )


def _expire_pending(account, phone):
    count = OTPRecord.objects.filter(account=account, phone=phone, status='pending').update(
        status='expired', error_message='Superseded by a new code', updated_at=timezone.now(),
    )
    if count:
        logger.info(f'Expired {count} pending OTP(s) for {mask_phone(phone)}')


def _finish(record, status, error_message=''):
    """Move a pending record to a terminal state. Returns False if it already left pending."""
    now = timezone.now()
    fields = {'status': status, 'updated_at': now}
    if error_message:
        fields['error_message'] = error_message[:255]
    if status == 'verified':
        fields['verified_at'] = now
    updated = OTPRecord.objects.filter(pk=record.pk, status='pending').update(**fields)
    if updated:
        for name, value in fields.items():
            setattr(record, name, value)
    return bool(updated)


# ==================== ISSUE ====================


def _issue(account, phone, pin_length, pin_type, expiry_seconds, max_attempts, sender,
           message_template, metadata, amount, unit):
    now = timezone.now()
    _check_cooldown(account, phone, now)
    _expire_pending(account, phone)

    brand = settings.OTP_DEFAULT_BRAND
    _sender, sender_name = resolve_sender(account, sender, fallback_brand=brand)

    code = generate_code(pin_length, pin_type)
    try:
        with transaction.atomic():
            record = OTPRecord.objects.create(
                account=account,
                phone=phone,
                code_hash=make_password(code),
                code_length=pin_length,
                pin_type=pin_type,
                expires_at=now + timedelta(seconds=expiry_seconds),
                expiry_seconds=expiry_seconds,
                max_attempts=max_attempts,
                sender_name=sender_name,
                metadata=metadata,
            )
    except IntegrityError:
        logger.warning(f'Concurrent OTP request for {mask_phone(phone)} rejected')
        raise RateLimitError(
            'An OTP for this number was just requested. Please wait before retrying.',
            remaining_seconds=settings.OTP_RESEND_COOLDOWN_SECONDS,
        )

    reserved = {
        'code': code,
        'amount': amount,
        'duration': format_duration(amount, unit),
        'brand': sender_name,
    }
    extra = {
        k: v for k, v in metadata.items()
        if isinstance(v, (str, int, float)) and str(k).lower() not in reserved
    }
    template = message_template or DEFAULT_TEMPLATE
    text = render_template(template, {**reserved, **extra})
    redacted = render_template(template, {**reserved, 'code': '*' * len(code), **extra})

    try:
        msg = dispatch.send_single(
            account, to=phone, message=text, sender_id=sender_name,
            message_type='otp', sender_fallback=brand, redacted_content=redacted,
        )
    except GatewayError as e:
        _finish(record, 'failed', f'Delivery failed: {e.message}')
        logger.error(f'OTP {record.id} delivery failed for {mask_phone(phone)}: {e.message}')
        raise

    OTPRecord.objects.filter(pk=record.pk).update(message=msg)
    record.message = msg
    logger.info(f'OTP {record.id} issued to {mask_phone(phone)} ({pin_type}, {pin_length} chars, {expiry_seconds}s)')
    return record


def request_otp(account, phone, pin_length=6, pin_type='numeric', expiry_amount=10, expiry_unit='minutes',
                max_attempts=3, sender=None, message_template=None, metadata=None):
    """
    Issue a code and send it. Raises ValidationError, RateLimitError
    (cooldown or concurrent request) or whatever the SMS send raises;
    in the last case the record is left failed.
    """
    phone = _normalize(phone)
    pin_type = (pin_type or 'numeric').lower()
    expiry_unit = (expiry_unit or 'minutes').lower()
    _validate_request(pin_length, pin_type, expiry_amount, expiry_unit, max_attempts, message_template)

    return _issue(
        account, phone, pin_length, pin_type,
        expiry_seconds=expiry_amount * UNIT_SECONDS[expiry_unit],
        max_attempts=max_attempts,
        sender=sender,
        message_template=message_template,
        metadata=sanitize_metadata(metadata),
        amount=expiry_amount,
        unit=expiry_unit,
    )


def resend_otp(account, phone):
    """Issue a fresh code with the settings of the most recent one."""
    phone = _normalize(phone)
    previous = OTPRecord.objects.filter(account=account, phone=phone).order_by('-created_at').first()
    if previous is None:
        raise NotFoundError('No previous OTP found for this phone number')

    amount, unit = describe_expiry(previous.expiry_seconds)
    return _issue(
        account, phone, previous.code_length, previous.pin_type,
        expiry_seconds=previous.expiry_seconds,
        max_attempts=previous.max_attempts,
        sender=previous.sender_name or None,
        message_template=None,
        metadata=previous.metadata,
        amount=amount,
        unit=unit,
    )


# ==================== VERIFY ====================


def verify_otp(account, phone, code):
    """
    Check a code against the pending record for the number.

    Returns {'verified': True, ...} on a match or {'verified': False,
    'attempts_remaining': n} on a miss. Raises NotFoundError when nothing is
    pending and StateConflictError when the code expired or attempts ran
    out; the state change is committed before the error is raised.
    """
    phone = _normalize(phone)
    code = (code or '').strip().upper()
    now = timezone.now()
    conflict = None

    with transaction.atomic():
        record = (
            OTPRecord.objects.select_for_update()
            .filter(account=account, phone=phone, status='pending')
            .first()
        )
        if record is None:
            raise NotFoundError(NO_ACTIVE_OTP)

        if record.expires_at <= now:
            _finish(record, 'expired', 'Code expired')
            conflict = StateConflictError('OTP has expired. Please request a new code.', current_state='expired')
        elif record.attempts >= record.max_attempts:
            _finish(record, 'failed', 'Maximum attempts exceeded')
            conflict = StateConflictError('Maximum verification attempts exceeded', current_state='failed')
        elif check_password(code, record.code_hash):
            _finish(record, 'verified')
        else:
            record.attempts += 1
            OTPRecord.objects.filter(pk=record.pk).update(attempts=record.attempts, updated_at=now)
            if record.attempts >= record.max_attempts:
                _finish(record, 'failed', 'Maximum attempts exceeded')

    if conflict:
        logger.info(f'OTP {record.id} for {mask_phone(phone)} is {conflict.current_state}')
        raise conflict

    if record.status == 'verified':
        logger.info(f'OTP {record.id} verified for {mask_phone(phone)}')
        return {
            'verified': True,
            'otp_id': str(record.id),
            'phone': phone,
            'status': record.status,
            'verified_at': record.verified_at,
            'metadata': record.metadata,
        }

    logger.info(f'OTP {record.id} wrong code for {mask_phone(phone)} ({record.attempts}/{record.max_attempts})')
    return {
        'verified': False,
        'otp_id': str(record.id),
        'phone': phone,
        'status': record.status,
        'attempts_remaining': record.attempts_remaining,
    }


# ==================== HOUSEKEEPING ====================


def expire_stale_otps():
    now = timezone.now()
    count = OTPRecord.objects.filter(status='pending', expires_at__lte=now).update(
        status='expired', error_message='Code expired', updated_at=now,
    )
    if count:
        logger.info(f'Expired {count} stale OTP(s)')
    return count


def get_otp_status(account, otp_id):
    record = OTPRecord.objects.filter(pk=otp_id, account=account).first()
    if record is None:
        raise NotFoundError('OTP not found')
    if record.status == 'pending' and record.is_expired:
        _finish(record, 'expired', 'Code expired')
    return record


def get_statistics(account, start=None, end=None):
    qs = OTPRecord.objects.filter(account=account)
    if start:
        qs = qs.filter(created_at__gte=start)
    if end:
        qs = qs.filter(created_at__lte=end)

    totals = qs.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status='pending')),
        verified=Count('id', filter=Q(status='verified')),
        failed=Count('id', filter=Q(status='failed')),
        expired=Count('id', filter=Q(status='expired')),
        avg_attempts=Avg('attempts'),
    )
    total = totals['total'] or 0
    return {
        'total_sent': total,
        'pending': totals['pending'],
        'verified': totals['verified'],
        'failed': totals['failed'],
        'expired': totals['expired'],
        'verification_rate': round(totals['verified'] / total * 100, 2) if total else 0,
        'average_attempts': round(totals['avg_attempts'] or 0, 2),
    }
