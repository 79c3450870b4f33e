"""
Celery tasks for outbound SMS:
- Delivery through the routed provider, failing over to the next healthy one
- Releasing scheduled messages when they come due
"""

import logging

from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task(name='messaging.tasks.task_send_message', ignore_result=True)
def task_send_message(message_id, provider_id=None):
    """Deliver one queued message. Every attempt is folded into provider stats."""
    from messaging import dispatch, router
    from messaging.models import Message, Provider
    from messaging.providers import send_via_provider

    try:
        msg = Message.objects.get(pk=message_id)
    except Message.DoesNotExist:
        logger.error(f'task_send_message: message {message_id} not found')
        return {'success': False, 'error': 'not found'}

    if msg.status != 'queued':
        logger.info(f'task_send_message: message {message_id} is {msg.status}, skipping')
        return {'success': False, 'error': f'status {msg.status}'}

    first = Provider.objects.filter(pk=provider_id).first() if provider_id else None
    pool = [p for p in router.candidates(msg.recipient_country, msg.recipient_network or None)
            if not first or p.pk != first.pk]
    attempts = ([first] if first and router.is_healthy(first) else []) + pool
    attempts = attempts[:settings.SMS_MAX_PROVIDER_ATTEMPTS]

    last_error = 'No provider available'
    for provider in attempts:
        result = send_via_provider(provider, msg.recipient, msg.content, msg.sender_name)
        router.record_outcome(provider.pk, result.success, result.latency_ms)
        if result.success:
            dispatch.mark_sent(msg.pk, provider, result.provider_message_id)
            logger.info(f'Message {msg.pk} sent via {provider.name} in {result.latency_ms}ms')
            return {'success': True, 'provider': provider.name}
        last_error = result.error or 'send failed'
        logger.warning(f'Message {msg.pk} failed via {provider.name}: {last_error}, trying next...')

    dispatch.mark_failed(msg.pk, 'provider_error', last_error)
    logger.error(f'All providers exhausted for message {msg.pk}')
    return {'success': False, 'error': last_error}


@shared_task(name='messaging.tasks.task_release_scheduled_messages', bind=True, max_retries=0, ignore_result=True)
def task_release_scheduled_messages(self):
    from messaging.dispatch import release_scheduled_messages
    return release_scheduled_messages()
