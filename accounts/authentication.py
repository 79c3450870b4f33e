"""
HMAC API-key authentication for gateway accounts.

Required headers:
    X-API-Key: afc_live_xxxxxxxxxxxx
    X-Signature: HMAC-SHA256(body, api_secret)

Optional headers:
    X-Timestamp: Unix timestamp (replay protection)

request.user = Account, request.auth = AccountAPIKey.
"""

import logging
import time

from django.core.cache import cache
from django.utils import timezone
from rest_framework import authentication, exceptions

from accounts.models import AccountAPIKey

logger = logging.getLogger(__name__)

REPLAY_WINDOW = 300  # 5 minutes
RATE_WINDOW = 60


def hit_rate_limit(key, limit, window=RATE_WINDOW):
    """
    Count a request against a shared-cache bucket. Returns True when the
    bucket is over `limit`. cache.add seeds the window atomically and incr
    is atomic on Redis and locmem, so concurrent workers share one count.
    """
    if cache.add(key, 1, timeout=window):
        return limit < 1
    try:
        current = cache.incr(key)
    except ValueError:
        # Expired between add and incr
        cache.add(key, 1, timeout=window)
        current = 1
    return current > limit


class AccountHMACAuthentication(authentication.BaseAuthentication):

    def authenticate(self, request):
        api_key = request.META.get('HTTP_X_API_KEY', '').strip()
        signature = request.META.get('HTTP_X_SIGNATURE', '').strip()

        if not api_key:
            return None

        if not signature:
            raise exceptions.AuthenticationFailed('X-Signature header required')

        try:
            key_obj = AccountAPIKey.objects.select_related('account').get(
                api_key=api_key,
                is_active=True,
            )
        except AccountAPIKey.DoesNotExist:
            raise exceptions.AuthenticationFailed('Invalid or revoked API key')

        account = key_obj.account
        if account.status != 'active':
            raise exceptions.AuthenticationFailed(f'Account is {account.status}')

        if account.ip_whitelist:
            ip = self._get_client_ip(request)
            if ip and ip not in account.ip_whitelist:
                raise exceptions.AuthenticationFailed(f'IP {ip} not in whitelist')

        body = request.body or b''
        if not key_obj.verify_signature(body, signature):
            raise exceptions.AuthenticationFailed('Invalid signature')

        ts = request.META.get('HTTP_X_TIMESTAMP', '')
        if ts:
            try:
                ts_int = int(ts)
            except ValueError:
                raise exceptions.AuthenticationFailed('Invalid timestamp format')
            if abs(time.time() - ts_int) > REPLAY_WINDOW:
                raise exceptions.AuthenticationFailed('Request timestamp out of window')

        if hit_rate_limit(f'api_rate:{account.id}', account.rate_limit_per_minute):
            logger.warning(f'API rate limit hit for {account.slug}')
            raise exceptions.Throttled(wait=RATE_WINDOW, detail='Rate limit exceeded. Try again shortly.')

        key_obj.last_used_at = timezone.now()
        key_obj.save(update_fields=['last_used_at'])

        return (account, key_obj)

    def authenticate_header(self, request):
        return 'HMAC'

    @staticmethod
    def _get_client_ip(request):
        xff = request.META.get('HTTP_X_FORWARDED_FOR', '')
        if xff:
            return xff.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
