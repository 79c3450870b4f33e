"""
DRF exception handler that renders every error as flat JSON:
{"error": ..., "code": ..., **extra}.
"""

import logging

from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import GatewayError, RateLimitError

logger = logging.getLogger(__name__)


def _flatten(detail, prefix=''):
    """Serializer error tree -> ['field: message', ...]"""
    if isinstance(detail, dict):
        out = []
        for key, value in detail.items():
            label = key if key != 'non_field_errors' else ''
            out.extend(_flatten(value, f'{prefix}{label}.' if label else prefix))
        return out
    if isinstance(detail, list):
        out = []
        for item in detail:
            out.extend(_flatten(item, prefix))
        return out
    return [f'{prefix.rstrip(".")}: {detail}' if prefix else str(detail)]


def gateway_exception_handler(exc, context):
    if isinstance(exc, GatewayError):
        headers = {}
        if isinstance(exc, RateLimitError) and exc.remaining_seconds:
            headers['Retry-After'] = str(exc.remaining_seconds)
        if exc.status_code >= 500:
            view = context.get('view')
            logger.error(f'{exc.default_code} in {view.__class__.__name__ if view else "?"}: {exc.message}')
        return Response(exc.to_dict(), status=exc.status_code, headers=headers)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, exceptions.ValidationError):
        errors = _flatten(exc.detail)
        response.data = {'error': '; '.join(errors), 'code': 'validation_error', 'errors': errors}
    elif isinstance(response.data, dict) and 'detail' in response.data:
        response.data = {'error': str(response.data['detail']), 'code': getattr(exc, 'default_code', 'error')}
    return response
