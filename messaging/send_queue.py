"""
Hand-off between the request path and background delivery.

enqueue() registers the Celery publish on transaction commit so a worker
never sees a message id whose row isn't visible yet. Broker failures
fail (and refund) the message instead of propagating to the caller.
"""

import logging

from django.db import transaction
from kombu.exceptions import KombuError

from messaging.tasks import task_send_message

logger = logging.getLogger(__name__)


def _publish(message_id, provider_id):
    try:
        task_send_message.delay(str(message_id), provider_id)
    except (KombuError, OSError) as e:
        from messaging.dispatch import mark_failed
        logger.error(f'Send queue unavailable for message {message_id}: {e}')
        mark_failed(message_id, 'queue_unavailable', str(e))


def enqueue(message_id, provider_id):
    transaction.on_commit(lambda: _publish(message_id, provider_id))
