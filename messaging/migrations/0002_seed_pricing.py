"""Seed launch SMS pricing (GHS per unit)."""

from django.db import migrations


# country, network (None = country default), sms, bulk, otp
RATES = [
    ('GH', None, '0.0300', '0.0250', '0.0350'),
    ('GH', 'mtn', '0.0280', '0.0230', '0.0330'),
    ('GH', 'telecel', '0.0290', '0.0240', '0.0340'),
    ('GH', 'airteltigo', '0.0290', '0.0240', '0.0340'),
    ('NG', None, '0.0450', '0.0400', '0.0500'),
    ('NG', 'mtn', '0.0420', '0.0380', '0.0480'),
    ('KE', None, '0.0400', '0.0350', '0.0450'),
    ('KE', 'safaricom', '0.0380', '0.0330', '0.0430'),
    ('ZA', None, '0.0600', '0.0550', '0.0650'),
]


def seed_pricing(apps, schema_editor):
    PricingRate = apps.get_model('messaging', 'PricingRate')
    for country, network, sms, bulk, otp in RATES:
        for message_type, rate in (('sms', sms), ('bulk', bulk), ('otp', otp)):
            PricingRate.objects.get_or_create(
                country=country,
                network=network,
                service_type='sms',
                message_type=message_type,
                effective_to=None,
                defaults={'rate_per_unit': rate, 'currency': 'GHS'},
            )


def reverse(apps, schema_editor):
    pass


class Migration(migrations.Migration):
    dependencies = [
        ('messaging', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_pricing, reverse),
    ]
