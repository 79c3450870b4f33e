import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


MESSAGE_TYPES = [('sms', 'SMS'), ('bulk', 'Bulk SMS'), ('otp', 'OTP')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('accounts', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Provider',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('provider_type', models.CharField(choices=[('sandbox', 'Sandbox (no delivery)'), ('twilio', 'Twilio'), ('arkesel', 'Arkesel'), ('hubtel', 'Hubtel')], default='sandbox', max_length=20)),
                ('supported_countries', models.JSONField(default=list, help_text='ISO codes, e.g. ["GH", "NG"]')),
                ('supported_networks', models.JSONField(blank=True, default=list, help_text='Network codes, e.g. ["mtn", "telecel"] (empty = no network preference)')),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], db_index=True, default='active', max_length=10)),
                ('priority', models.IntegerField(default=0, help_text='Higher = preferred')),
                ('success_rate', models.FloatField(default=1.0)),
                ('avg_latency_ms', models.FloatField(blank=True, null=True)),
                ('error_count', models.PositiveIntegerField(default=0, help_text='Consecutive failures; reset on success')),
                ('total_attempts', models.PositiveIntegerField(default=0)),
                ('last_success_at', models.DateTimeField(blank=True, null=True)),
                ('last_error_at', models.DateTimeField(blank=True, null=True)),
                ('api_key', models.CharField(blank=True, default='', max_length=255)),
                ('api_secret', models.CharField(blank=True, default='', max_length=255)),
                ('base_url', models.URLField(blank=True, default='')),
                ('extra_config', models.JSONField(blank=True, default=dict, help_text='Provider-specific settings, e.g. {"from_number": "+1555..."}')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-priority', 'name'],
            },
        ),
        migrations.CreateModel(
            name='PricingRate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('country', models.CharField(max_length=2)),
                ('network', models.CharField(blank=True, max_length=30, null=True)),
                ('service_type', models.CharField(choices=[('sms', 'SMS')], default='sms', max_length=10)),
                ('message_type', models.CharField(choices=MESSAGE_TYPES, default='sms', max_length=10)),
                ('rate_per_unit', models.DecimalField(decimal_places=4, max_digits=10)),
                ('currency', models.CharField(default='GHS', max_length=3)),
                ('effective_from', models.DateTimeField(default=django.utils.timezone.now)),
                ('effective_to', models.DateTimeField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['country', 'network', '-effective_from'],
                'indexes': [models.Index(fields=['country', 'network', 'service_type', 'message_type', 'effective_from'], name='pricing_lookup_idx')],
            },
        ),
        migrations.CreateModel(
            name='Message',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('recipient', models.CharField(db_index=True, max_length=20)),
                ('recipient_country', models.CharField(blank=True, default='', max_length=2)),
                ('recipient_network', models.CharField(blank=True, default='', max_length=30)),
                ('content', models.TextField()),
                ('message_type', models.CharField(choices=MESSAGE_TYPES, default='sms', max_length=10)),
                ('sender_name', models.CharField(max_length=11)),
                ('status', models.CharField(choices=[('pending', 'Pending (scheduled)'), ('queued', 'Queued'), ('sent', 'Sent'), ('delivered', 'Delivered'), ('failed', 'Failed'), ('expired', 'Expired')], db_index=True, default='queued', max_length=10)),
                ('provider_name', models.CharField(blank=True, default='', max_length=100)),
                ('provider_message_id', models.CharField(blank=True, db_index=True, default='', max_length=100)),
                ('units', models.PositiveIntegerField(default=1)),
                ('encoding', models.CharField(default='GSM-7', max_length=5)),
                ('unit_price', models.DecimalField(decimal_places=4, max_digits=10)),
                ('total_cost', models.DecimalField(decimal_places=4, max_digits=12)),
                ('currency', models.CharField(default='GHS', max_length=3)),
                ('batch_id', models.CharField(blank=True, max_length=32, null=True)),
                ('scheduled_for', models.DateTimeField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('error_code', models.CharField(blank=True, default='', max_length=50)),
                ('error_message', models.TextField(blank=True, default='')),
                ('queued_at', models.DateTimeField(blank=True, null=True)),
                ('sent_at', models.DateTimeField(blank=True, null=True)),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('failed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='accounts.account')),
                ('provider', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='messages', to='messaging.provider')),
                ('sender', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='messages', to='accounts.senderid')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['account', 'batch_id'], name='message_batch_idx'),
                    models.Index(fields=['account', 'created_at'], name='message_account_created_idx'),
                    models.Index(fields=['status', 'scheduled_for'], name='message_schedule_idx'),
                ],
            },
        ),
    ]
