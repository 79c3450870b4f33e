"""
Sender ID lookups.

A sender name is usable only when it is approved and active. Resolution
order: the requested name, the account default, any approved name, and
finally a caller-supplied brand (OTP sends use the platform brand).
"""

import logging

from accounts.models import SenderID
from core.exceptions import NotFoundError

logger = logging.getLogger(__name__)

NO_SENDER_MESSAGE = 'No approved sender ID found. Please register a sender ID first.'


def _usable(account):
    return SenderID.objects.filter(account=account, status='approved', is_active=True)


def find(account, name):
    if not name:
        return None
    return _usable(account).filter(name__iexact=name).first()


def find_default(account):
    return _usable(account).filter(is_default=True).first()


def find_any(account):
    return _usable(account).order_by('created_at').first()


def resolve_sender(account, requested=None, fallback_brand=None):
    """
    Returns (SenderID or None, sender_name). Raises NotFoundError when
    nothing is usable and no fallback brand was given.
    """
    if requested:
        sender = find(account, requested)
        if sender:
            return sender, sender.name
        logger.info(f'Requested sender "{requested}" not usable for {account.slug}, falling back')

    sender = find_default(account) or find_any(account)
    if sender:
        return sender, sender.name

    if fallback_brand:
        return None, fallback_brand

    raise NotFoundError(NO_SENDER_MESSAGE)
