"""Shared fixtures for gateway tests."""

import json
from decimal import Decimal

from django.utils import timezone

from accounts.models import Account, AccountAPIKey, SenderID
from messaging.models import Provider


def make_account(slug='acme', wallet='10.0000', credit='0', **extra):
    return Account.objects.create(
        name=slug.title(),
        slug=slug,
        contact_email=f'ops@{slug}.test',
        wallet_balance=Decimal(wallet),
        credit_balance=Decimal(credit),
        **extra,
    )


def make_sender(account, name='ACME', is_default=True, status='approved'):
    return SenderID.objects.create(
        account=account,
        name=name,
        status=status,
        is_default=is_default,
        approved_at=timezone.now() if status == 'approved' else None,
    )


def make_provider(name='Sandbox', countries=('GH', 'NG', 'KE', 'UG'), networks=(), priority=0, **extra):
    return Provider.objects.create(
        name=name,
        provider_type=extra.pop('provider_type', 'sandbox'),
        supported_countries=list(countries),
        supported_networks=list(networks),
        priority=priority,
        **extra,
    )


def signed_headers(key, body=b''):
    return {
        'HTTP_X_API_KEY': key.api_key,
        'HTTP_X_SIGNATURE': key.sign(body),
    }


def signed_post(client, key, url, payload):
    body = json.dumps(payload).encode()
    return client.post(url, data=body, content_type='application/json', **signed_headers(key, body))


def signed_get(client, key, url, params=None):
    return client.get(url, params or {}, **signed_headers(key))


def issue_key(account):
    return AccountAPIKey.issue(account)
