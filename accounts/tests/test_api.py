import json
import time

from django.test import TestCase
from rest_framework.test import APIClient

from accounts.models import SenderID
from messaging.tests.helpers import issue_key, make_account, signed_get, signed_headers, signed_post


class HMACAuthenticationTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.account = make_account()
        self.key = issue_key(self.account)

    def test_valid_signature(self):
        response = signed_get(self.client, self.key, '/api/accounts/v1/balance')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['wallet_balance'], '10.0000')

    def test_missing_signature(self):
        response = self.client.get('/api/accounts/v1/balance', HTTP_X_API_KEY=self.key.api_key)
        self.assertEqual(response.status_code, 401)

    def test_wrong_signature(self):
        response = self.client.get('/api/accounts/v1/balance', HTTP_X_API_KEY=self.key.api_key,
                                   HTTP_X_SIGNATURE='0' * 64)
        self.assertEqual(response.status_code, 401)

    def test_revoked_key(self):
        self.key.revoke()
        self.assertEqual(signed_get(self.client, self.key, '/api/accounts/v1/balance').status_code, 401)

    def test_suspended_account(self):
        self.account.status = 'suspended'
        self.account.save()
        self.assertEqual(signed_get(self.client, self.key, '/api/accounts/v1/balance').status_code, 401)

    def test_stale_timestamp(self):
        headers = signed_headers(self.key)
        headers['HTTP_X_TIMESTAMP'] = str(int(time.time()) - 600)
        self.assertEqual(self.client.get('/api/accounts/v1/balance', **headers).status_code, 401)

    def test_signature_covers_body(self):
        body = json.dumps({'name': 'ACME'}).encode()
        headers = signed_headers(self.key, b'{}')
        response = self.client.post('/api/accounts/v1/sender-ids', data=body,
                                    content_type='application/json', **headers)
        self.assertEqual(response.status_code, 401)

    def test_rate_limit(self):
        self.account.rate_limit_per_minute = 2
        self.account.save()
        codes = [signed_get(self.client, self.key, '/api/accounts/v1/balance').status_code for _ in range(3)]
        self.assertEqual(codes, [200, 200, 429])


class SenderIDApiTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.account = make_account()
        self.key = issue_key(self.account)

    def test_register_sender_starts_pending(self):
        response = signed_post(self.client, self.key, '/api/accounts/v1/sender-ids', {'name': 'ACME'})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['status'], 'pending')
        self.assertFalse(SenderID.objects.get(name='ACME').is_usable)

    def test_duplicate_sender(self):
        signed_post(self.client, self.key, '/api/accounts/v1/sender-ids', {'name': 'ACME'})
        response = signed_post(self.client, self.key, '/api/accounts/v1/sender-ids', {'name': 'acme'})
        self.assertEqual(response.status_code, 409)

    def test_invalid_sender_names(self):
        for name in ('AB', '12345', 'ACME CORP'):
            with self.subTest(name=name):
                response = signed_post(self.client, self.key, '/api/accounts/v1/sender-ids', {'name': name})
                self.assertEqual(response.status_code, 400)
