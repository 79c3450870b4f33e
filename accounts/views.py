"""
Account API views: balance, ledger and sender ID registration.
"""

import logging

from drf_spectacular.utils import extend_schema, OpenApiResponse
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts import balance_service
from accounts.authentication import AccountHMACAuthentication
from accounts.models import Account, SenderID, Transaction
from accounts.serializers import (
    BalanceSerializer, SenderIDSerializer, SenderIDRequestSerializer, TransactionSerializer,
)

logger = logging.getLogger(__name__)

API_AUTH = [AccountHMACAuthentication]
API_PERMS = [AllowAny]  # Auth handled by HMAC


def _get_account(request):
    if not isinstance(request.user, Account):
        return None
    return request.user


@extend_schema(
    tags=['Account'],
    summary='Balance',
    responses={200: BalanceSerializer, 401: OpenApiResponse(description='Authentication required')},
)
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def balance(request):
    account = _get_account(request)
    if not account:
        return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)
    return Response(BalanceSerializer(balance_service.get_balance(account)).data)


@extend_schema(tags=['Account'], summary='Recent ledger entries', responses={200: TransactionSerializer(many=True)})
@api_view(['GET'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def transactions(request):
    account = _get_account(request)
    if not account:
        return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)
    qs = Transaction.objects.filter(account=account)[:100]
    return Response(TransactionSerializer(qs, many=True).data)


@extend_schema(
    tags=['Account'],
    summary='List or register sender IDs',
    description='New sender IDs start as pending and become usable once approved by an operator.',
    request=SenderIDRequestSerializer,
    responses={200: SenderIDSerializer(many=True), 201: SenderIDSerializer},
)
@api_view(['GET', 'POST'])
@authentication_classes(API_AUTH)
@permission_classes(API_PERMS)
def sender_ids(request):
    account = _get_account(request)
    if not account:
        return Response({'error': 'Authentication required'}, status=status.HTTP_401_UNAUTHORIZED)

    if request.method == 'GET':
        return Response(SenderIDSerializer(account.sender_ids.all(), many=True).data)

    serializer = SenderIDRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    name = serializer.validated_data['name']
    if SenderID.objects.filter(account=account, name__iexact=name).exists():
        return Response({'error': f'Sender ID "{name}" already registered'}, status=status.HTTP_409_CONFLICT)

    sender = SenderID.objects.create(
        account=account, name=name, is_default=serializer.validated_data['is_default'],
    )
    logger.info(f'Sender ID requested: {account.slug} -> {name}')
    return Response(SenderIDSerializer(sender).data, status=status.HTTP_201_CREATED)
