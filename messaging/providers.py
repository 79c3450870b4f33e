"""
Provider adapters. Each takes (provider, phone, body, sender) and returns a
SendResult; transport errors are caught and reported, never raised.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional

import requests
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


@dataclass
class SendResult:
    success: bool
    provider_message_id: str = ''
    error: str = ''
    latency_ms: Optional[float] = None


def _safe_json(response):
    """Response body as a dict. Anything that isn't a JSON object goes under 'raw'."""
    try:
        data = response.json()
    except ValueError:
        return {'raw': response.text[:1000]}
    return data if isinstance(data, dict) else {'raw': data}


def _send_via_sandbox(provider, phone, body, sender):
    """Accepts everything. Used in development and tests."""
    logger.info(f'Sandbox SMS to {phone[:6]}*** from {sender}: {len(body)} chars')
    return SendResult(True, provider_message_id=f'sbx_{uuid.uuid4().hex[:16]}')


def _send_via_twilio(provider, phone, body, sender):
    from_number = provider.extra_config.get('from_number') or sender
    try:
        client = Client(provider.api_key, provider.api_secret)
        msg = client.messages.create(body=body, from_=from_number, to=phone)
    except TwilioException as e:
        logger.warning(f'Twilio send failed for {phone[:6]}***: {e}')
        return SendResult(False, error=str(e)[:500])
    logger.info(f'Twilio SMS sent: SID={msg.sid}, status={msg.status}')
    return SendResult(True, provider_message_id=msg.sid)


def _send_via_arkesel(provider, phone, body, sender):
    url = provider.base_url or 'https://sms.arkesel.com/api/v2/sms/send'
    try:
        resp = requests.post(url, json={
            'sender': sender,
            'message': body,
            'recipients': [phone.lstrip('+')],
        }, headers={'api-key': provider.api_key}, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.warning(f'Arkesel error: {e}')
        return SendResult(False, error=str(e)[:500])

    logger.info(f'Arkesel response: {resp.status_code} {resp.text[:300]}')
    if resp.status_code not in (200, 201):
        return SendResult(False, error=f'Arkesel error {resp.status_code}: {resp.text[:200]}')
    data = _safe_json(resp)
    msg_id = ''
    if isinstance(data.get('data'), list) and data['data']:
        msg_id = str(data['data'][0].get('id', ''))
    return SendResult(True, provider_message_id=msg_id)


def _send_via_hubtel(provider, phone, body, sender):
    url = provider.base_url or 'https://smsc.hubtel.com/v1/messages/send'
    try:
        resp = requests.get(url, params={
            'clientid': provider.api_key,
            'clientsecret': provider.api_secret,
            'from': sender,
            'to': phone,
            'content': body,
        }, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.warning(f'Hubtel error: {e}')
        return SendResult(False, error=str(e)[:500])

    logger.info(f'Hubtel response: {resp.status_code} {resp.text[:300]}')
    if resp.status_code not in (200, 201):
        return SendResult(False, error=f'Hubtel error {resp.status_code}: {resp.text[:200]}')
    data = _safe_json(resp)
    return SendResult(True, provider_message_id=str(data.get('messageId', '')))


ADAPTERS = {
    'sandbox': _send_via_sandbox,
    'twilio': _send_via_twilio,
    'arkesel': _send_via_arkesel,
    'hubtel': _send_via_hubtel,
}


def send_via_provider(provider, phone, body, sender):
    handler = ADAPTERS.get(provider.provider_type)
    if not handler:
        logger.warning(f'Unknown SMS provider type: {provider.provider_type}')
        return SendResult(False, error=f'Unknown provider type {provider.provider_type}')

    started = time.monotonic()
    result = handler(provider, phone, body, sender)
    result.latency_ms = round((time.monotonic() - started) * 1000, 2)
    return result
