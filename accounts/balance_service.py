"""
Prepaid balance operations.

Debits spend bundled credits first, then wallet money. Every movement
writes a Transaction row with before/after snapshots of both pools.
Callers that need the debit to be atomic with their own writes should
call debit() inside their own transaction.atomic() block.
"""

import logging
from decimal import Decimal

from django.db import transaction

from accounts.models import Account, Transaction
from core.exceptions import InsufficientBalance, NotFoundError

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


def get_balance(account):
    """Fresh balance snapshot from the database."""
    row = Account.objects.filter(pk=account.pk).values(
        'wallet_balance', 'credit_balance', 'currency',
    ).first()
    if row is None:
        raise NotFoundError('Account not found')
    return {
        'wallet_balance': row['wallet_balance'],
        'credit_balance': row['credit_balance'],
        'total_balance': row['wallet_balance'] + row['credit_balance'],
        'currency': row['currency'],
    }


def ensure_balance(account, amount):
    """Raise InsufficientBalance unless wallet + credits cover `amount`."""
    amount = Decimal(amount)
    snapshot = get_balance(account)
    if snapshot['total_balance'] < amount:
        logger.info(f'Insufficient balance for {account.slug}: have {snapshot["total_balance"]}, need {amount}')
        raise InsufficientBalance(snapshot['total_balance'], amount, snapshot['currency'])
    return snapshot


def debit(account, amount, service_type='sms', reference='', description=''):
    """
    Deduct `amount` from the account. Raises InsufficientBalance when the
    locked balance cannot cover it. Returns the Transaction row.
    """
    amount = Decimal(amount)
    with transaction.atomic():
        locked = Account.objects.select_for_update().get(pk=account.pk)
        total = locked.wallet_balance + locked.credit_balance
        if total < amount:
            raise InsufficientBalance(total, amount, locked.currency)

        wallet_before = locked.wallet_balance
        credit_before = locked.credit_balance
        credit_used = min(credit_before, amount)
        wallet_used = amount - credit_used

        locked.credit_balance = credit_before - credit_used
        locked.wallet_balance = wallet_before - wallet_used
        locked.save(update_fields=['credit_balance', 'wallet_balance', 'updated_at'])

        tx = Transaction.objects.create(
            account=locked,
            tx_type='debit',
            amount=amount,
            credit_used=credit_used,
            wallet_used=wallet_used,
            wallet_before=wallet_before,
            wallet_after=locked.wallet_balance,
            credit_before=credit_before,
            credit_after=locked.credit_balance,
            currency=locked.currency,
            service_type=service_type,
            reference=reference,
            description=description,
        )

    if locked.total_balance < locked.low_balance_threshold:
        logger.warning(
            f'Low balance for {locked.slug}: {locked.total_balance} {locked.currency} '
            f'(threshold {locked.low_balance_threshold})'
        )
    return tx


def refund(account, amount, service_type='sms', reference='', description=''):
    """
    Return `amount` to the account. Money goes back to the pools it came from
    when the original debit for `reference` is on file, otherwise to the wallet.
    """
    amount = Decimal(amount)
    if amount <= ZERO:
        return None

    with transaction.atomic():
        locked = Account.objects.select_for_update().get(pk=account.pk)
        original = None
        if reference:
            original = Transaction.objects.filter(
                account=locked, tx_type='debit', reference=reference,
            ).first()

        credit_back = min(original.credit_used, amount) if original else ZERO
        wallet_back = amount - credit_back

        wallet_before = locked.wallet_balance
        credit_before = locked.credit_balance
        locked.credit_balance = credit_before + credit_back
        locked.wallet_balance = wallet_before + wallet_back
        locked.save(update_fields=['credit_balance', 'wallet_balance', 'updated_at'])

        tx = Transaction.objects.create(
            account=locked,
            tx_type='refund',
            amount=amount,
            credit_used=credit_back,
            wallet_used=wallet_back,
            wallet_before=wallet_before,
            wallet_after=locked.wallet_balance,
            credit_before=credit_before,
            credit_after=locked.credit_balance,
            currency=locked.currency,
            service_type=service_type,
            reference=reference,
            description=description,
        )

    logger.info(f'Refunded {amount} {locked.currency} to {locked.slug} ({reference})')
    return tx
