"""
SMS dispatch: validate -> count units -> resolve sender -> route -> price
-> persist + debit -> hand off to the send queue.

Message lifecycle: pending (scheduled) -> queued -> sent -> delivered |
failed | expired. Every status write is a conditional update or happens
under a row lock so concurrent callbacks and workers can't move a
message backwards.
"""

import logging
import secrets
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from accounts import balance_service
from accounts.sender_directory import resolve_sender
from core.exceptions import DependencyFailure, GatewayError, NotFoundError, StateConflictError, ValidationError
from messaging import pricing, router, send_queue
from messaging.models import Message
from messaging.phone import classify, mask_phone
from messaging.units import calculate_units, render_template, utf16_length

logger = logging.getLogger(__name__)

CANCELLED_REASON = 'cancelled by user'

_TIMESTAMP_FIELDS = {
    'queued': 'queued_at',
    'sent': 'sent_at',
    'delivered': 'delivered_at',
    'failed': 'failed_at',
    'expired': 'failed_at',
}


def generate_batch_id():
    return secrets.token_hex(8)


# ==================== VALIDATION ====================


def validate_content(text):
    errors = []
    if not text or not text.strip():
        errors.append('Message cannot be empty')
    elif utf16_length(text) > settings.SMS_MAX_MESSAGE_LENGTH:
        errors.append(f'Message exceeds maximum length of {settings.SMS_MAX_MESSAGE_LENGTH} characters')
    return errors


def validate_schedule(scheduled_for, now=None):
    if scheduled_for is None:
        return []
    now = now or timezone.now()
    if timezone.is_naive(scheduled_for):
        scheduled_for = timezone.make_aware(scheduled_for)
    if scheduled_for <= now:
        return ['Scheduled time must be in the future']
    if scheduled_for > now + timedelta(days=settings.SMS_MAX_SCHEDULE_DAYS):
        return [f'Scheduled time cannot be more than {settings.SMS_MAX_SCHEDULE_DAYS} days in the future']
    return []


def _validate(to, text, scheduled_for):
    phone = classify(to)
    errors = list(phone.errors)
    errors.extend(validate_content(text))
    errors.extend(validate_schedule(scheduled_for))
    if errors:
        raise ValidationError(errors)
    for warning in phone.warnings:
        logger.info(f'{mask_phone(phone.normalized)}: {warning}')
    return phone


# ==================== SEND ====================


def _dispatch(account, phone, text, sender, sender_name, message_type, scheduled_for,
              metadata, tags, priority, batch_id=None, redacted_content=''):
    units = calculate_units(text)

    provider = router.select_provider(phone.country, phone.network, 'sms', priority)
    if provider is None:
        raise NotFoundError(f'No SMS provider available for {phone.country or "this destination"}')

    quote = pricing.get_rate(phone.country, phone.network, 'sms', message_type, units.units)

    now = timezone.now()
    status = 'pending' if scheduled_for else 'queued'

    try:
        balance_service.ensure_balance(account, quote.total_cost)
        with transaction.atomic():
            msg = Message.objects.create(
                account=account,
                recipient=phone.normalized,
                recipient_country=phone.country or '',
                recipient_network=phone.network or '',
                content=text,
                redacted_content=redacted_content or '',
                message_type=message_type,
                sender=sender,
                sender_name=sender_name,
                status=status,
                provider=provider,
                provider_name=provider.name,
                units=units.units,
                encoding=units.encoding,
                unit_price=quote.rate_per_unit,
                total_cost=quote.total_cost,
                currency=quote.currency,
                batch_id=batch_id,
                scheduled_for=scheduled_for,
                metadata=metadata or {},
                tags=tags or [],
                queued_at=now if status == 'queued' else None,
            )
            balance_service.debit(
                account, quote.total_cost, service_type='sms', reference=str(msg.id),
                description=f'{message_type.upper()} to {mask_phone(phone.normalized)} ({units.units} unit(s))',
            )
    except DatabaseError as e:
        logger.error(f'Balance/ledger write failed for {account.slug}: {e}')
        raise DependencyFailure('Balance service unavailable. Please retry.')

    logger.info(
        f'Message {msg.id} {status}: to={mask_phone(msg.recipient)}, provider={provider.name}, '
        f'units={units.units}, cost={quote.total_cost} {quote.currency}'
    )
    if status == 'queued':
        send_queue.enqueue(msg.id, provider.id)
    return msg


def send_single(account, to, message, sender_id=None, scheduled_for=None, metadata=None, tags=None,
                message_type='sms', priority=None, sender_fallback=None, redacted_content=None):
    """
    Send one SMS. Raises ValidationError (all problems at once), NotFoundError
    (no sender / no provider), InsufficientBalance or DependencyFailure.
    Nothing is persisted when an error is raised.

    `redacted_content` is the body with secrets masked; it replaces the
    stored content once the message leaves the queue.
    """
    phone = _validate(to, message, scheduled_for)
    sender, sender_name = resolve_sender(account, sender_id, fallback_brand=sender_fallback)
    return _dispatch(
        account, phone, message, sender, sender_name, message_type,
        scheduled_for, metadata, tags, priority, redacted_content=redacted_content,
    )


def send_bulk(account, recipients, message=None, sender_id=None, scheduled_for=None,
              metadata=None, tags=None, priority=None):
    """
    Send to many recipients under one batch id. Each entry is a phone string
    or {'to', 'message'?, 'variables'?}. Per-recipient failures are
    returned as rejected rows; only batch-level problems raise.
    """
    if not recipients:
        raise ValidationError('At least one recipient is required')
    if len(recipients) > settings.SMS_MAX_BULK_RECIPIENTS:
        raise ValidationError(f'Maximum {settings.SMS_MAX_BULK_RECIPIENTS} recipients per batch')

    schedule_errors = validate_schedule(scheduled_for)
    if schedule_errors:
        raise ValidationError(schedule_errors)

    sender, sender_name = resolve_sender(account, sender_id)
    batch_id = generate_batch_id()
    logger.info(f'Bulk batch {batch_id}: {len(recipients)} recipient(s) for {account.slug}, sender={sender_name}')

    results = []
    for entry in recipients:
        if isinstance(entry, str):
            entry = {'to': entry}
        to = entry.get('to', '')
        text = entry.get('message') or message or ''
        if entry.get('variables'):
            text = render_template(text, entry['variables'])

        try:
            phone = _validate(to, text, None)
            msg = _dispatch(
                account, phone, text, sender, sender_name, 'bulk',
                scheduled_for, metadata, tags, priority, batch_id=batch_id,
            )
        except GatewayError as e:
            results.append({
                'to': to,
                'status': 'rejected',
                'error': e.message,
                'batch_id': batch_id,
            })
            continue

        results.append({
            'to': msg.recipient,
            'status': msg.status,
            'message_id': str(msg.id),
            'units': msg.units,
            'cost': msg.total_cost,
            'currency': msg.currency,
            'batch_id': batch_id,
        })

    accepted = [r for r in results if r['status'] != 'rejected']
    estimated_cost = sum((r['cost'] for r in accepted), Decimal('0'))
    summary = {
        'batch_id': batch_id,
        'total_recipients': len(recipients),
        'accepted': len(accepted),
        'rejected': len(results) - len(accepted),
        'estimated_cost': estimated_cost,
        'currency': accepted[0]['currency'] if accepted else settings.SMS_DEFAULT_CURRENCY,
        'messages': results,
    }
    logger.info(f'Bulk batch {batch_id} done: accepted={summary["accepted"]}, rejected={summary["rejected"]}')
    return summary


# ==================== LIFECYCLE ====================


def cancel_message(account, message_id):
    """Cancel a scheduled message and refund it. Only pending messages qualify."""
    now = timezone.now()
    with transaction.atomic():
        updated = Message.objects.filter(pk=message_id, account=account, status='pending').update(
            status='failed',
            error_code='cancelled',
            error_message=CANCELLED_REASON,
            failed_at=now,
            updated_at=now,
        )
        msg = Message.objects.filter(pk=message_id, account=account).first()
        if msg is None:
            raise NotFoundError('Message not found')
        if not updated:
            raise StateConflictError(f'Message is {msg.status}; too late to cancel', current_state=msg.status)
        balance_service.refund(
            account, msg.total_cost, service_type='sms', reference=str(msg.id),
            description='Cancelled scheduled message',
        )
    logger.info(f'Message {msg.id} cancelled by {account.slug}')
    return msg


def scrub_content(message_id):
    """Swap in the redacted body once the provider no longer needs the original."""
    return Message.objects.filter(pk=message_id).exclude(redacted_content='').update(
        content=F('redacted_content'), redacted_content='',
    )


def mark_sent(message_id, provider, provider_message_id=''):
    now = timezone.now()
    updated = Message.objects.filter(pk=message_id, status='queued').update(
        status='sent',
        provider=provider,
        provider_name=provider.name,
        provider_message_id=provider_message_id or '',
        sent_at=now,
        updated_at=now,
    )
    scrub_content(message_id)
    return updated == 1


def mark_failed(message_id, error_code, error_message, refund=True):
    """Fail a message that never left the platform, refunding its cost."""
    now = timezone.now()
    with transaction.atomic():
        updated = Message.objects.filter(pk=message_id, status__in=('pending', 'queued')).update(
            status='failed',
            error_code=error_code,
            error_message=(error_message or '')[:1000],
            failed_at=now,
            updated_at=now,
        )
        scrub_content(message_id)
        if not updated:
            return False
        msg = Message.objects.select_related('account').get(pk=message_id)
        if refund:
            balance_service.refund(
                msg.account, msg.total_cost, service_type='sms', reference=str(msg.id),
                description=f'Undelivered message ({error_code})',
            )
    logger.warning(f'Message {message_id} failed before delivery: {error_code} {error_message}')
    return True


def on_delivery_update(message_id=None, status='', provider_code=None, error_message=None,
                       provider_message_id=None):
    """
    Apply a provider delivery report. Returns False (and logs) for unknown
    messages, unknown statuses and backwards transitions.
    """
    status = (status or '').lower()
    if status not in _TIMESTAMP_FIELDS:
        logger.warning(f'Delivery update with unknown status "{status}" for {message_id or provider_message_id}')
        return False

    with transaction.atomic():
        qs = Message.objects.select_for_update()
        if message_id:
            msg = qs.filter(pk=message_id).first()
        elif provider_message_id:
            msg = qs.filter(provider_message_id=provider_message_id).first()
        else:
            msg = None

        if msg is None:
            logger.warning(f'Delivery update for unknown message {message_id or provider_message_id}')
            return False

        if not Message.can_transition(msg.status, status):
            logger.info(f'Ignoring delivery update {msg.status} -> {status} for message {msg.id}')
            return False

        now = timezone.now()
        msg.status = status
        setattr(msg, _TIMESTAMP_FIELDS[status], now)
        fields = ['status', _TIMESTAMP_FIELDS[status], 'updated_at']
        if provider_code:
            msg.error_code = str(provider_code)[:50]
            fields.append('error_code')
        if error_message:
            msg.error_message = error_message[:1000]
            fields.append('error_message')
        msg.save(update_fields=fields)

    logger.info(f'Message {msg.id} -> {status}')
    return True


def release_scheduled_messages(limit=500):
    """Move due scheduled messages to queued and hand them to the send queue."""
    now = timezone.now()
    due = list(
        Message.objects.filter(status='pending', scheduled_for__lte=now)
        .order_by('scheduled_for')
        .values_list('id', 'provider_id')[:limit]
    )
    released = 0
    for message_id, provider_id in due:
        updated = Message.objects.filter(pk=message_id, status='pending').update(
            status='queued', queued_at=now, updated_at=now,
        )
        if updated:
            send_queue.enqueue(message_id, provider_id)
            released += 1
    if released:
        logger.info(f'Released {released} scheduled message(s)')
    return released


# ==================== QUERIES ====================


def get_message(account, message_id):
    msg = Message.objects.filter(pk=message_id, account=account).first()
    if msg is None:
        raise NotFoundError('Message not found')
    return msg


def get_batch_summary(account, batch_id):
    qs = Message.objects.filter(account=account, batch_id=batch_id)
    totals = qs.aggregate(total=Count('id'), total_cost=Sum('total_cost'), total_units=Sum('units'))
    if not totals['total']:
        raise NotFoundError('Batch not found')
    currency = qs.values_list('currency', flat=True).first()

    by_status = {row['status']: row['n'] for row in qs.values('status').annotate(n=Count('id'))}
    return {
        'batch_id': batch_id,
        'total': totals['total'],
        'total_units': totals['total_units'] or 0,
        'total_cost': totals['total_cost'] or 0,
        'currency': currency,
        'stats': {
            status: by_status.get(status, 0)
            for status, _label in Message.STATUS_CHOICES
        },
    }


def get_account_analytics(account, start=None, end=None):
    qs = Message.objects.filter(account=account)
    if start:
        qs = qs.filter(created_at__gte=start)
    if end:
        qs = qs.filter(created_at__lte=end)

    totals = qs.aggregate(
        total=Count('id'),
        delivered=Count('id', filter=Q(status='delivered')),
        failed=Count('id', filter=Q(status='failed')),
        total_units=Sum('units'),
        total_cost=Sum('total_cost'),
    )
    total = totals['total'] or 0
    return {
        'total_messages': total,
        'delivered': totals['delivered'],
        'failed': totals['failed'],
        'delivery_rate': round(totals['delivered'] / total * 100, 2) if total else 0,
        'total_units': totals['total_units'] or 0,
        'total_cost': totals['total_cost'] or 0,
        'currency': account.currency,
        'by_network': list(
            qs.values('recipient_network').annotate(count=Count('id'), cost=Sum('total_cost')).order_by('-count')
        ),
        'by_provider': list(
            qs.values('provider_name').annotate(
                count=Count('id'), delivered=Count('id', filter=Q(status='delivered')),
            ).order_by('-count')
        ),
        'by_type': list(qs.values('message_type').annotate(count=Count('id')).order_by('-count')),
    }
