"""
Provider selection and health bookkeeping.

Candidates are active providers serving the destination country whose
consecutive error count is below PROVIDER_ERROR_THRESHOLD. If any of
them also serve the detected network they win; otherwise the
country-only set is used.
"""

import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from messaging.models import Provider

logger = logging.getLogger(__name__)

UNKNOWN_LATENCY_MS = 1000.0

PRIORITIES = ('cost', 'speed', 'reliability')


def is_healthy(provider):
    return provider.status == 'active' and provider.error_count < settings.PROVIDER_ERROR_THRESHOLD


def _default_key(p):
    return (-p.priority, -p.success_rate, p.name)


def _speed_key(p):
    latency = p.avg_latency_ms if p.avg_latency_ms is not None else UNKNOWN_LATENCY_MS
    return (latency, -p.priority, p.name)


def _reliability_key(p):
    return (-p.success_rate, -p.priority, p.name)


_ORDERINGS = {
    None: _default_key,
    'cost': _default_key,  # no per-provider cost data; default order applies
    'speed': _speed_key,
    'reliability': _reliability_key,
}


def candidates(country, network=None):
    """Healthy providers for `country`, network-capable ones first if any exist."""
    # JSON containment isn't portable across backends; filter in Python.
    active = [p for p in Provider.objects.filter(status='active') if p.supports_country(country)]
    healthy = [p for p in active if is_healthy(p)]
    skipped = len(active) - len(healthy)
    if skipped:
        logger.info(f'Skipping {skipped} unhealthy provider(s) for {country}')
    if network:
        on_network = [p for p in healthy if p.supports_network(network)]
        if on_network:
            return on_network
    return healthy


def select_provider(country, network=None, service_type='sms', priority=None):
    if priority not in _ORDERINGS:
        logger.warning(f'Unknown routing priority "{priority}", using default ordering')
        priority = None

    pool = candidates(country, network)
    if not pool:
        logger.error(f'No provider available for {country}/{network or "*"} ({service_type})')
        return None

    chosen = sorted(pool, key=_ORDERINGS[priority])[0]
    logger.info(f'Routed {country}/{network or "*"} to {chosen.name} (priority={priority or "default"})')
    return chosen


def record_outcome(provider_id, success, latency_ms=None):
    """
    Fold one send attempt into the provider's rolling stats.
    success_rate and avg_latency_ms are exponential moving averages.
    """
    alpha = float(settings.PROVIDER_STATS_ALPHA)
    threshold = settings.PROVIDER_ERROR_THRESHOLD
    now = timezone.now()

    with transaction.atomic():
        try:
            provider = Provider.objects.select_for_update().get(pk=provider_id)
        except Provider.DoesNotExist:
            logger.error(f'record_outcome: provider {provider_id} not found')
            return None

        was_healthy = provider.error_count < threshold
        outcome = 1.0 if success else 0.0
        provider.success_rate = round((1 - alpha) * provider.success_rate + alpha * outcome, 6)
        provider.total_attempts += 1

        if latency_ms is not None:
            if provider.avg_latency_ms is None:
                provider.avg_latency_ms = float(latency_ms)
            else:
                provider.avg_latency_ms = round((1 - alpha) * provider.avg_latency_ms + alpha * latency_ms, 2)

        if success:
            provider.error_count = 0
            provider.last_success_at = now
        else:
            provider.error_count += 1
            provider.last_error_at = now

        provider.save(update_fields=[
            'success_rate', 'avg_latency_ms', 'error_count', 'total_attempts',
            'last_success_at', 'last_error_at', 'updated_at',
        ])

    if was_healthy and provider.error_count >= threshold:
        logger.warning(f'Provider {provider.name} marked unhealthy after {provider.error_count} consecutive errors')
    elif not was_healthy and success:
        logger.info(f'Provider {provider.name} recovered')
    return provider
