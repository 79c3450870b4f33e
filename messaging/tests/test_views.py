from datetime import timedelta
from unittest.mock import patch

from django.db import OperationalError
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from messaging.models import Message
from messaging.tests.helpers import (
    issue_key, make_account, make_provider, make_sender, signed_get, signed_post,
)


class SMSApiTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.account = make_account(wallet='5.0000')
        self.key = issue_key(self.account)
        make_sender(self.account)
        make_provider()

    def test_send(self):
        response = signed_post(self.client, self.key, '/api/sms/v1/send', {'to': '0241234567', 'message': 'Hello'})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['to'], '+233241234567')
        self.assertEqual(response.data['status'], 'queued')
        self.assertEqual(response.data['sender_id'], 'ACME')

    def test_send_validation_errors(self):
        response = signed_post(self.client, self.key, '/api/sms/v1/send', {'to': '12', 'message': ''})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['code'], 'validation_error')
        self.assertTrue(response.data['errors'])

    def test_insufficient_balance(self):
        self.account.wallet_balance = 0
        self.account.save()
        response = signed_post(self.client, self.key, '/api/sms/v1/send', {'to': '0241234567', 'message': 'Hello'})
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data['code'], 'insufficient_balance')

    def test_balance_service_outage_returns_502(self):
        with patch('accounts.balance_service.ensure_balance', side_effect=OperationalError('connection refused')):
            response = signed_post(self.client, self.key, '/api/sms/v1/send', {'to': '0241234567', 'message': 'Hello'})
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data['code'], 'dependency_failure')
        self.assertFalse(Message.objects.exists())

    def test_unauthenticated(self):
        response = self.client.post('/api/sms/v1/send', {'to': '0241234567', 'message': 'Hello'}, format='json')
        self.assertEqual(response.status_code, 401)

    def test_bulk(self):
        response = signed_post(self.client, self.key, '/api/sms/v1/bulk', {
            'message': 'Hi {name}',
            'recipients': [
                {'to': '0241234567', 'variables': {'name': 'Ama'}},
                {'to': 'bad'},
            ],
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['accepted'], 1)
        self.assertEqual(response.data['rejected'], 1)

        batch = signed_get(self.client, self.key, f'/api/sms/v1/batches/{response.data["batch_id"]}')
        self.assertEqual(batch.status_code, 200)
        self.assertEqual(batch.data['total'], 1)

    def test_list_and_detail(self):
        sent = signed_post(self.client, self.key, '/api/sms/v1/send', {'to': '0241234567', 'message': 'Hello'})
        listing = signed_get(self.client, self.key, '/api/sms/v1/messages', {'status': 'queued'})
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.data['count'], 1)

        detail = signed_get(self.client, self.key, f'/api/sms/v1/messages/{sent.data["message_id"]}')
        self.assertEqual(detail.data['message_id'], sent.data['message_id'])

    def test_other_accounts_messages_hidden(self):
        other = make_account(slug='other')
        make_sender(other)
        other_key = issue_key(other)
        sent = signed_post(self.client, other_key, '/api/sms/v1/send', {'to': '0241234567', 'message': 'Hello'})
        response = signed_get(self.client, self.key, f'/api/sms/v1/messages/{sent.data["message_id"]}')
        self.assertEqual(response.status_code, 404)

    def test_cancel(self):
        when = (timezone.now() + timedelta(hours=2)).isoformat()
        sent = signed_post(self.client, self.key, '/api/sms/v1/send', {
            'to': '0241234567', 'message': 'Later', 'scheduled_for': when,
        })
        self.assertEqual(sent.data['status'], 'pending')
        url = f'/api/sms/v1/messages/{sent.data["message_id"]}/cancel'
        self.assertEqual(signed_post(self.client, self.key, url, {}).status_code, 200)

        again = signed_post(self.client, self.key, url, {})
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.data['current_state'], 'failed')

    def test_pricing(self):
        response = signed_get(self.client, self.key, '/api/sms/v1/pricing', {'country': 'GH'})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['rates'])

    def test_analytics_bad_date(self):
        response = signed_get(self.client, self.key, '/api/sms/v1/analytics', {'start': 'yesterday'})
        self.assertEqual(response.status_code, 400)


class DeliveryCallbackTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        account = make_account()
        make_sender(account)
        make_provider()
        key = issue_key(account)
        sent = signed_post(self.client, key, '/api/sms/v1/send', {'to': '0241234567', 'message': 'Hello'})
        self.message_id = sent.data['message_id']

    def test_bad_token(self):
        response = self.client.post('/api/sms/v1/delivery-callback', {
            'message_id': self.message_id, 'status': 'delivered',
        }, format='json', HTTP_X_CALLBACK_TOKEN='wrong')
        self.assertEqual(response.status_code, 403)

    def test_applies_update(self):
        response = self.client.post('/api/sms/v1/delivery-callback', {
            'message_id': self.message_id, 'status': 'delivered',
        }, format='json', HTTP_X_CALLBACK_TOKEN='test-callback-token')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['applied'])
        self.assertEqual(Message.objects.get(pk=self.message_id).status, 'delivered')
