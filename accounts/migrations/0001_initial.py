import uuid

import django.db.models.deletion
from django.db import migrations, models

import accounts.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Account',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Business name', max_length=200)),
                ('slug', models.SlugField(unique=True)),
                ('contact_email', models.EmailField(max_length=254)),
                ('contact_phone', models.CharField(blank=True, default='', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending Approval'), ('active', 'Active'), ('suspended', 'Suspended'), ('deactivated', 'Deactivated')], db_index=True, default='active', max_length=15)),
                ('wallet_balance', models.DecimalField(decimal_places=4, default=0, help_text='Prepaid wallet balance', max_digits=12)),
                ('credit_balance', models.DecimalField(decimal_places=4, default=0, help_text='Bundled credits, consumed before the wallet', max_digits=12)),
                ('currency', models.CharField(default='GHS', max_length=3)),
                ('low_balance_threshold', models.DecimalField(decimal_places=2, default=10, help_text='Log a warning when the combined balance drops below this', max_digits=12)),
                ('rate_limit_per_minute', models.PositiveIntegerField(default=120, help_text='Max API requests per minute across all keys')),
                ('ip_whitelist', models.JSONField(blank=True, default=list, help_text='List of allowed IPs (empty=allow all)')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='AccountAPIKey',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('label', models.CharField(default='Default', max_length=100)),
                ('api_key', models.CharField(db_index=True, max_length=64, unique=True)),
                ('api_secret', models.CharField(max_length=128)),
                ('is_active', models.BooleanField(default=True)),
                ('last_used_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('revoked_at', models.DateTimeField(blank=True, null=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='api_keys', to='accounts.account')),
            ],
            options={
                'verbose_name': 'API Key',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='SenderID',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=11, validators=[accounts.models.validate_sender_name])),
                ('status', models.CharField(choices=[('pending', 'Pending Review'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=10)),
                ('is_active', models.BooleanField(default=True)),
                ('is_default', models.BooleanField(default=False)),
                ('rejection_reason', models.CharField(blank=True, default='', max_length=255)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sender_ids', to='accounts.account')),
            ],
            options={
                'verbose_name': 'Sender ID',
                'ordering': ['-is_default', 'created_at'],
                'unique_together': {('account', 'name')},
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('tx_type', models.CharField(choices=[('debit', 'Debit'), ('refund', 'Refund'), ('topup', 'Top Up')], max_length=10)),
                ('amount', models.DecimalField(decimal_places=4, max_digits=12)),
                ('credit_used', models.DecimalField(decimal_places=4, default=0, max_digits=12)),
                ('wallet_used', models.DecimalField(decimal_places=4, default=0, max_digits=12)),
                ('wallet_before', models.DecimalField(decimal_places=4, max_digits=12)),
                ('wallet_after', models.DecimalField(decimal_places=4, max_digits=12)),
                ('credit_before', models.DecimalField(decimal_places=4, max_digits=12)),
                ('credit_after', models.DecimalField(decimal_places=4, max_digits=12)),
                ('currency', models.CharField(default='GHS', max_length=3)),
                ('service_type', models.CharField(blank=True, default='', max_length=20)),
                ('reference', models.CharField(blank=True, db_index=True, default='', max_length=100)),
                ('description', models.CharField(blank=True, default='', max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='accounts.account')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['account', 'created_at'], name='tx_account_created_idx')],
            },
        ),
    ]
