"""
Verify (OTP) API v1 views.

Same HMAC authentication as the SMS API. Codes are delivered as `otp`
messages and billed at the OTP rate.
"""

import logging

from django.utils.dateparse import parse_datetime
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter, OpenApiResponse
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.authentication import AccountHMACAuthentication
from accounts.models import Account
from core.exceptions import ValidationError
from verify import otp_service
from verify.serializers import (
    OTPRecordSerializer, OTPStatsSerializer, ResendOTPSerializer, SendOTPSerializer,
    VerifyOTPSerializer, VerifyResultSerializer,
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
    tags=['Verify'],
    summary='Send OTP',
    description=(
        'Generate a one-time code and deliver it by SMS.\n\n'
        'Only one code per phone number is active at a time; requesting a new one '
        'expires the previous code. Requests for the same number are limited to one '
        'every 30 seconds.'
    ),
    request=SendOTPSerializer,
    responses={
        201: OTPRecordSerializer,
        400: OpenApiResponse(description='Invalid phone or OTP options'),
        402: OpenApiResponse(description='Insufficient balance'),
        429: OpenApiResponse(description='Cooldown active (see remaining_seconds)'),
    },
    examples=[
        OpenApiExample('Default 6-digit code', value={'phone': '+233241234567'}, request_only=True),
        OpenApiExample('Custom template', value={
            'phone': '+233241234567', 'pin_length': 4, 'expiry_amount': 5,
            'message': 'Your ACME login code is {code}. Valid for {amount} {duration}.',
        }, request_only=True),
    ],
)
@api_view(['POST'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def send_otp(request):
    account = _get_account(request)
    if not account:
        return _unauthorized()

    serializer = SendOTPSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    record = otp_service.request_otp(
        account,
        phone=data['phone'],
        pin_length=data['pin_length'],
        pin_type=data['pin_type'],
        expiry_amount=data['expiry_amount'],
        expiry_unit=data['expiry_unit'],
        max_attempts=data['max_attempts'],
        sender=data['sender_id'] or None,
        message_template=data['message'],
        metadata=data['metadata'],
    )
    return Response(OTPRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=['Verify'],
    summary='Verify OTP',
    description=(
        'Check a code. A wrong code returns `verified: false` with the attempts left. '
        'Expired or exhausted codes return 409.'
    ),
    request=VerifyOTPSerializer,
    responses={
        200: VerifyResultSerializer,
        404: OpenApiResponse(description='No active OTP for this number'),
        409: OpenApiResponse(description='Expired or attempts exhausted'),
    },
)
@api_view(['POST'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def verify_otp(request):
    account = _get_account(request)
    if not account:
        return _unauthorized()

    serializer = VerifyOTPSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = otp_service.verify_otp(account, serializer.validated_data['phone'], serializer.validated_data['code'])
    return Response(VerifyResultSerializer(result).data)


@extend_schema(
    tags=['Verify'],
    summary='Resend OTP',
    description='Issue a new code with the same options as the last one. The previous code stops working.',
    request=ResendOTPSerializer,
    responses={
        201: OTPRecordSerializer,
        404: OpenApiResponse(description='No previous OTP for this number'),
        429: OpenApiResponse(description='Cooldown active'),
    },
)
@api_view(['POST'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def resend_otp(request):
    account = _get_account(request)
    if not account:
        return _unauthorized()

    serializer = ResendOTPSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    record = otp_service.resend_otp(account, serializer.validated_data['phone'])
    return Response(OTPRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Verify'], summary='OTP status', responses={200: OTPRecordSerializer, 404: OpenApiResponse(description='Not found')})
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def otp_status(request, otp_id):
    account = _get_account(request)
    if not account:
        return _unauthorized()
    return Response(OTPRecordSerializer(otp_service.get_otp_status(account, otp_id)).data)


@extend_schema(
    tags=['Verify'],
    summary='OTP statistics',
    parameters=[
        OpenApiParameter('start', str, description='ISO-8601 start (inclusive)'),
        OpenApiParameter('end', str, description='ISO-8601 end (inclusive)'),
    ],
    responses={200: OTPStatsSerializer},
)
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def otp_stats(request):
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
    return Response(OTPStatsSerializer(otp_service.get_statistics(account, **bounds)).data)
