"""
Create a gateway account with an API key pair and an approved sender ID.

Usage:
    python manage.py create_account "Acme Ltd" acme ops@acme.test --sender ACME --wallet 100
"""

from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from accounts.models import Account, AccountAPIKey, SenderID


class Command(BaseCommand):
    help = 'Create an account, issue an API key and (optionally) an approved sender ID'

    def add_arguments(self, parser):
        parser.add_argument('name')
        parser.add_argument('slug')
        parser.add_argument('email')
        parser.add_argument('--sender', default='', help='Approved default sender ID')
        parser.add_argument('--wallet', default='0', help='Opening wallet balance')

    def handle(self, *args, **options):
        if Account.objects.filter(slug=options['slug']).exists():
            raise CommandError(f'Account "{options["slug"]}" already exists')

        with transaction.atomic():
            account = Account.objects.create(
                name=options['name'],
                slug=options['slug'],
                contact_email=options['email'],
                wallet_balance=Decimal(options['wallet']),
                low_balance_threshold=settings.LOW_BALANCE_THRESHOLD,
            )
            key = AccountAPIKey.issue(account)
            if options['sender']:
                sender = SenderID(
                    account=account, name=options['sender'], status='approved',
                    is_default=True, approved_at=timezone.now(),
                )
                try:
                    sender.full_clean()
                except ValidationError as e:
                    raise CommandError('; '.join(e.messages))
                sender.save()

        self.stdout.write(self.style.SUCCESS(f'Created account {account.slug}'))
        self.stdout.write(f'  API key:    {key.api_key}')
        self.stdout.write(f'  API secret: {key.api_secret}')
        self.stdout.write(self.style.WARNING('Store the secret now; it is not shown again.'))
