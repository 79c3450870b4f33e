from datetime import timedelta
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from messaging import dispatch
from messaging.models import Message, Provider
from messaging.tests.helpers import issue_key, make_account, make_provider, signed_get, signed_post
from verify.models import OTPRecord


class VerifyApiTestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.account = make_account()
        self.key = issue_key(self.account)
        make_provider()

    def send(self, payload=None):
        with patch('verify.otp_service.generate_code', return_value='482913'):
            return signed_post(self.client, self.key, '/api/verify/v1/send', payload or {'phone': '0241234567'})

    def test_send_and_verify(self):
        sent = self.send()
        self.assertEqual(sent.status_code, 201)
        self.assertEqual(sent.data['status'], 'pending')
        self.assertEqual(sent.data['attempts_remaining'], 3)
        self.assertNotIn('code_hash', sent.data)

        wrong = signed_post(self.client, self.key, '/api/verify/v1/verify', {'phone': '0241234567', 'code': '000000'})
        self.assertEqual(wrong.status_code, 200)
        self.assertFalse(wrong.data['verified'])
        self.assertEqual(wrong.data['attempts_remaining'], 2)

        right = signed_post(self.client, self.key, '/api/verify/v1/verify', {'phone': '0241234567', 'code': '482913'})
        self.assertTrue(right.data['verified'])

        status = signed_get(self.client, self.key, f'/api/verify/v1/status/{sent.data["otp_id"]}')
        self.assertEqual(status.data['status'], 'verified')

    def test_uppercase_pin_type_accepted(self):
        response = self.send({'phone': '0241234567', 'pin_type': 'NUMERIC'})
        self.assertEqual(response.status_code, 201)

    def test_cooldown_returns_429(self):
        self.send()
        response = self.send()
        self.assertEqual(response.status_code, 429)
        self.assertIn('Retry-After', response)
        self.assertGreater(response.data['remaining_seconds'], 0)

    def test_verify_without_pending_code(self):
        response = signed_post(self.client, self.key, '/api/verify/v1/verify', {'phone': '0241234567', 'code': '123456'})
        self.assertEqual(response.status_code, 404)

    def test_verify_rejects_malformed_code(self):
        response = signed_post(self.client, self.key, '/api/verify/v1/verify', {'phone': '0241234567', 'code': '12'})
        self.assertEqual(response.status_code, 400)

    def test_expired_code_returns_409(self):
        self.send()
        OTPRecord.objects.update(expires_at=timezone.now() - timedelta(seconds=1))
        response = signed_post(self.client, self.key, '/api/verify/v1/verify', {'phone': '0241234567', 'code': '482913'})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['current_state'], 'expired')

    def test_resend(self):
        self.send()
        OTPRecord.objects.update(created_at=timezone.now() - timedelta(minutes=1))
        response = signed_post(self.client, self.key, '/api/verify/v1/resend', {'phone': '0241234567'})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(OTPRecord.objects.filter(status='expired').count(), 1)

    def test_stats(self):
        self.send()
        response = signed_get(self.client, self.key, '/api/verify/v1/stats')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total_sent'], 1)

    def test_code_never_readable_through_message_api(self):
        sent = self.send()
        detail_url = f'/api/sms/v1/messages/{sent.data["message_id"]}'

        queued = signed_get(self.client, self.key, detail_url)
        self.assertEqual(queued.status_code, 200)
        self.assertNotIn('482913', queued.content.decode())
        self.assertIn('******', queued.data['content'])

        dispatch.mark_sent(sent.data['message_id'], Provider.objects.get(), 'p-1')
        for response in (signed_get(self.client, self.key, detail_url),
                         signed_get(self.client, self.key, '/api/sms/v1/messages')):
            self.assertEqual(response.status_code, 200)
            self.assertNotIn('482913', response.content.decode())
        self.assertNotIn('482913', Message.objects.get(pk=sent.data['message_id']).content)
