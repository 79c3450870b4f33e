"""
SMS API v1 views.

All customer endpoints use AccountHMACAuthentication.
request.user = Account instance, request.auth = AccountAPIKey instance.
Service-layer errors (core.exceptions) propagate and are rendered by the
gateway exception handler.
"""

import hmac
import logging

from django.conf import settings
from django.utils.dateparse import parse_datetime
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter, OpenApiResponse
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.authentication import AccountHMACAuthentication
from accounts.models import Account
from core.exceptions import ValidationError
from messaging import dispatch, pricing
from messaging.filters import MessageFilter
from messaging.models import Message
from messaging.serializers import (
    BulkResultSerializer, BulkSMSSerializer, DeliveryCallbackSerializer,
    MessageSerializer, PricingRateSerializer, SendSMSSerializer,
)

logger = logging.getLogger(__name__)

API_AUTH = [AccountHMACAuthentication]
API_PERMS = [AllowAny]  # Auth handled by HMAC


def _unauthorized():
    return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)


def _get_account(request):
    if not isinstance(request.user, Account):
        return None
    return request.user


@extend_schema(
    tags=['SMS'],
    summary='Send SMS',
    description=(
        'Send a single SMS.\n\n'
        '**Flow**: validate → count units → resolve sender ID → route → price → debit → queue.\n\n'
        'Pass `scheduled_for` (up to 30 days ahead) to hold the message as `pending` until then.'
    ),
    request=SendSMSSerializer,
    responses={
        201: MessageSerializer,
        400: OpenApiResponse(description='Invalid phone, message or schedule (all errors listed)'),
        402: OpenApiResponse(description='Insufficient balance'),
        404: OpenApiResponse(description='No approved sender ID or no provider for destination'),
    },
    examples=[
        OpenApiExample('Send now', value={'to': '0241234567', 'message': 'Your order has shipped', 'sender_id': 'ACME'}, request_only=True),
    ],
)
@api_view(['POST'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def send_sms(request):
    account = _get_account(request)
    if not account:
        return _unauthorized()

    serializer = SendSMSSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    msg = dispatch.send_single(
        account,
        to=data['to'],
        message=data['message'],
        sender_id=data['sender_id'] or None,
        scheduled_for=data['scheduled_for'],
        metadata=data['metadata'],
        tags=data['tags'],
        priority=data['priority'],
    )
    return Response(MessageSerializer(msg).data, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=['SMS'],
    summary='Send bulk SMS',
    description=(
        'Send to up to 10,000 recipients in one request. Each recipient may override '
        'the message and supply `{variable}` values. Invalid recipients are reported as '
        '`rejected` rows; the rest are accepted under a shared `batch_id`.'
    ),
    request=BulkSMSSerializer,
    responses={
        201: BulkResultSerializer,
        400: OpenApiResponse(description='Empty or oversized recipient list'),
        404: OpenApiResponse(description='No approved sender ID'),
    },
)
@api_view(['POST'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def send_bulk_sms(request):
    account = _get_account(request)
    if not account:
        return _unauthorized()

    serializer = BulkSMSSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    result = dispatch.send_bulk(
        account,
        recipients=[dict(r) for r in data['recipients']],
        message=data.get('message') or None,
        sender_id=data['sender_id'] or None,
        scheduled_for=data['scheduled_for'],
        metadata=data['metadata'],
        tags=data['tags'],
        priority=data['priority'],
    )
    return Response(BulkResultSerializer(result).data, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=['SMS'],
    summary='List messages',
    parameters=[
        OpenApiParameter('status', str, description='Filter by status'),
        OpenApiParameter('batch_id', str, description='Filter by bulk batch'),
        OpenApiParameter('to', str, description='Filter by normalized recipient'),
        OpenApiParameter('created_after', str, description='ISO-8601 timestamp'),
        OpenApiParameter('created_before', str, description='ISO-8601 timestamp'),
    ],
    responses={200: MessageSerializer(many=True)},
)
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def message_list(request):
    account = _get_account(request)
    if not account:
        return _unauthorized()

    qs = MessageFilter(request.query_params, queryset=Message.objects.filter(account=account)).qs
    paginator = PageNumberPagination()
    page = paginator.paginate_queryset(qs, request)
    return paginator.get_paginated_response(MessageSerializer(page, many=True).data)


@extend_schema(tags=['SMS'], summary='Message status', responses={200: MessageSerializer, 404: OpenApiResponse(description='Not found')})
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def message_detail(request, message_id):
    account = _get_account(request)
    if not account:
        return _unauthorized()
    return Response(MessageSerializer(dispatch.get_message(account, message_id)).data)


@extend_schema(
    tags=['SMS'],
    summary='Cancel scheduled message',
    description='Only `pending` (scheduled) messages can be cancelled. The cost is refunded.',
    request=None,
    responses={
        200: MessageSerializer,
        404: OpenApiResponse(description='Not found'),
        409: OpenApiResponse(description='Too late to cancel'),
    },
)
@api_view(['POST'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def cancel_message(request, message_id):
    account = _get_account(request)
    if not account:
        return _unauthorized()
    return Response(MessageSerializer(dispatch.cancel_message(account, message_id)).data)


@extend_schema(tags=['SMS'], summary='Bulk batch summary', responses={200: OpenApiResponse(description='Per-status counts and cost')})
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def batch_detail(request, batch_id):
    account = _get_account(request)
    if not account:
        return _unauthorized()

    summary = dispatch.get_batch_summary(account, batch_id)
    messages = Message.objects.filter(account=account, batch_id=batch_id)
    paginator = PageNumberPagination()
    page = paginator.paginate_queryset(messages, request)
    summary['messages'] = MessageSerializer(page, many=True).data
    return Response(summary)


@extend_schema(
    tags=['SMS'],
    summary='Usage analytics',
    parameters=[
        OpenApiParameter('start', str, description='ISO-8601 start (inclusive)'),
        OpenApiParameter('end', str, description='ISO-8601 end (inclusive)'),
    ],
    responses={200: OpenApiResponse(description='Totals, delivery rate, breakdowns')},
)
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def analytics(request):
    account = _get_account(request)
    if not account:
        return _unauthorized()

    bounds = {}
    for key in ('start', 'end'):
        raw = request.query_params.get(key)
        if raw:
            parsed = parse_datetime(raw)
            if parsed is None:
                raise ValidationError(f'{key} must be an ISO-8601 datetime')
            bounds[key] = parsed
    return Response(dispatch.get_account_analytics(account, **bounds))


@extend_schema(
    tags=['SMS'],
    summary='Current pricing',
    parameters=[OpenApiParameter('country', str, description='ISO country code, e.g. GH')],
    responses={200: PricingRateSerializer(many=True)},
)
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def pricing_list(request):
    account = _get_account(request)
    if not account:
        return _unauthorized()
    rates = pricing.price_list(request.query_params.get('country'))
    return Response({
        'default_rate_per_unit': str(settings.SMS_DEFAULT_RATE_PER_UNIT),
        'currency': settings.SMS_DEFAULT_CURRENCY,
        'rates': PricingRateSerializer(rates, many=True).data,
    })


@extend_schema(
    tags=['SMS'],
    summary='Provider delivery report',
    description='Called by upstream providers. Authenticated with the shared `X-Callback-Token` header.',
    request=DeliveryCallbackSerializer,
    responses={200: OpenApiResponse(description='Accepted (applied or ignored)'), 403: OpenApiResponse(description='Bad token')},
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def delivery_callback(request):
    expected = settings.DELIVERY_CALLBACK_TOKEN
    supplied = request.META.get('HTTP_X_CALLBACK_TOKEN', '')
    if not expected or not hmac.compare_digest(expected, supplied):
        logger.warning('Delivery callback rejected: bad token')
        return Response({'error': 'Invalid callback token'}, status=status.HTTP_403_FORBIDDEN)

    serializer = DeliveryCallbackSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    applied = dispatch.on_delivery_update(
        message_id=data['message_id'],
        status=data['status'],
        provider_code=data['error_code'] or None,
        error_message=data['error_message'] or None,
        provider_message_id=data['provider_message_id'] or None,
    )
    return Response({'applied': applied})
