"""
Seed a sandbox provider covering every African destination.

Usage:
    python manage.py seed_providers
    python manage.py seed_providers --priority 5
"""

from django.core.management.base import BaseCommand

from messaging.models import Provider
from messaging.numbering import AFRICAN_COUNTRIES


class Command(BaseCommand):
    help = 'Seed the sandbox SMS provider (accepts everything, delivers nothing)'

    def add_arguments(self, parser):
        parser.add_argument('--priority', type=int, default=0)

    def handle(self, *args, **options):
        provider, created = Provider.objects.update_or_create(
            name='Sandbox',
            defaults={
                'provider_type': 'sandbox',
                'supported_countries': [c.iso for c in AFRICAN_COUNTRIES],
                'supported_networks': [],
                'status': 'active',
                'priority': options['priority'],
            },
        )
        verb = 'Created' if created else 'Updated'
        self.stdout.write(self.style.SUCCESS(
            f'{verb} {provider.name}: {len(provider.supported_countries)} countries, priority {provider.priority}'
        ))
