"""
Per-destination rate lookup.

Resolution order: network-specific rate, country-wide rate (network NULL),
then the configured SMS_DEFAULT_RATE_PER_UNIT. get_rate() never raises;
every fallback is logged and flagged on the quote.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Q
from django.utils import timezone

from messaging.models import PricingRate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateQuote:
    country: str
    network: str
    rate_per_unit: Decimal
    units: int
    total_cost: Decimal
    currency: str
    fallback: bool = False


def _current_rates(country, service_type, message_type, now):
    return PricingRate.objects.filter(
        country=country,
        service_type=service_type,
        message_type=message_type,
        is_active=True,
        effective_from__lte=now,
    ).filter(
        Q(effective_to__isnull=True) | Q(effective_to__gt=now),
    ).order_by('-effective_from')


def find_rate(country, network=None, service_type='sms', message_type='sms'):
    """The current PricingRate row for a destination, or None."""
    now = timezone.now()
    rates = _current_rates(country, service_type, message_type, now)
    if network:
        rate = rates.filter(network=network).first()
        if rate:
            return rate
    return rates.filter(network__isnull=True).first()


def default_quote(country, network, units):
    rate = Decimal(str(settings.SMS_DEFAULT_RATE_PER_UNIT))
    return RateQuote(
        country=country or '',
        network=network or '',
        rate_per_unit=rate,
        units=units,
        total_cost=rate * units,
        currency=settings.SMS_DEFAULT_CURRENCY,
        fallback=True,
    )


def get_rate(country, network=None, service_type='sms', message_type='sms', units=1):
    if not country:
        logger.warning(f'No country for pricing (network={network}), using default rate')
        return default_quote(country, network, units)

    try:
        rate = find_rate(country, network, service_type, message_type)
    except DatabaseError as e:
        logger.error(f'Pricing lookup failed for {country}/{network}: {e}')
        return default_quote(country, network, units)

    if rate is None:
        logger.warning(f'No pricing found for {country}/{network or "*"} {message_type}, using default')
        return default_quote(country, network, units)

    return RateQuote(
        country=country,
        network=network or '',
        rate_per_unit=rate.rate_per_unit,
        units=units,
        total_cost=rate.rate_per_unit * units,
        currency=rate.currency,
    )


def price_list(country=None):
    """Current rates, optionally for one country, for the pricing endpoint."""
    now = timezone.now()
    qs = PricingRate.objects.filter(is_active=True, effective_from__lte=now).filter(
        Q(effective_to__isnull=True) | Q(effective_to__gt=now),
    )
    if country:
        qs = qs.filter(country=country.upper())
    return qs.order_by('country', 'network', 'message_type', '-effective_from')
