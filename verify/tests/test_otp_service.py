from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.utils import timezone

from core.exceptions import InsufficientBalance, NotFoundError, RateLimitError, StateConflictError, ValidationError
from messaging import dispatch
from messaging.models import Message, Provider
from messaging.tests.helpers import make_account, make_provider, make_sender
from verify import otp_service
from verify.models import OTPRecord

PHONE = '+233241234567'


class OTPTestCase(TestCase):

    def setUp(self):
        self.account = make_account(wallet='1.0000')
        make_provider()

    def request(self, code='123456', **kwargs):
        with patch('verify.otp_service.generate_code', return_value=code):
            return otp_service.request_otp(self.account, kwargs.pop('phone', '0241234567'), **kwargs)

    def age(self, seconds=60):
        """Move every record back in time, past the resend cooldown."""
        OTPRecord.objects.update(created_at=timezone.now() - timedelta(seconds=seconds))


class RequestOTPTestCase(OTPTestCase):

    def test_code_is_hashed_and_delivered(self):
        record = self.request()
        self.assertEqual(record.status, 'pending')
        self.assertEqual(record.phone, PHONE)
        self.assertNotIn('123456', record.code_hash)
        self.assertEqual(record.sender_name, 'AfriCom')

        msg = Message.objects.get(pk=record.message_id)
        self.assertEqual(msg.message_type, 'otp')
        self.assertEqual(msg.content, 'Your AfriCom verification code is 123456. It expires in 10 minutes.')
        self.assertEqual(msg.unit_price, Decimal('0.0330'))

    def test_account_sender_used_when_approved(self):
        make_sender(self.account, name='ACME')
        self.assertEqual(self.request().sender_name, 'ACME')

    def test_custom_template_and_singular_duration(self):
        record = self.request(
            expiry_amount=1, expiry_unit='hours',
            message_template='Code {code} for {app}, valid {amount} {duration}',
            metadata={'app': 'Shop'},
        )
        self.assertEqual(record.message.content, 'Code 123456 for Shop, valid 1 hour')
        self.assertEqual(record.expiry_seconds, 3600)

    def test_invalid_options_reported_together(self):
        with self.assertRaises(ValidationError) as ctx:
            otp_service.request_otp(self.account, '0241234567', pin_length=3, max_attempts=11,
                                    expiry_amount=30, expiry_unit='seconds', message_template='no code here')
        self.assertEqual(len(ctx.exception.errors), 4)
        self.assertFalse(OTPRecord.objects.exists())

    def test_invalid_phone(self):
        with self.assertRaises(ValidationError):
            otp_service.request_otp(self.account, '12')

    def test_cooldown(self):
        self.request()
        with self.assertRaises(RateLimitError) as ctx:
            self.request()
        self.assertGreater(ctx.exception.remaining_seconds, 0)
        self.assertLessEqual(ctx.exception.remaining_seconds, 30)
        self.assertEqual(OTPRecord.objects.count(), 1)

    def test_new_request_expires_previous(self):
        first = self.request()
        self.age()
        second = self.request(code='654321')
        first.refresh_from_db()
        self.assertEqual(first.status, 'expired')
        self.assertEqual(second.status, 'pending')
        self.assertEqual(OTPRecord.objects.filter(status='pending').count(), 1)

    def test_one_pending_record_per_phone(self):
        self.request()
        with self.assertRaises(RateLimitError):
            with patch('verify.otp_service._check_cooldown'), patch('verify.otp_service._expire_pending'):
                self.request()

    def test_sensitive_metadata_dropped(self):
        record = self.request(metadata={'user_id': 7, 'api_token': 'x', 'Password': 'y', 'private-key': 'z'})
        self.assertEqual(record.metadata, {'user_id': 7})

    def test_metadata_cannot_override_placeholders(self):
        record = self.request(metadata={'Code': 'XXXX', 'BRAND': 'Evil', 'duration': 'ages'})
        self.assertEqual(
            record.message.content,
            'Your AfriCom verification code is 123456. It expires in 10 minutes.',
        )

    def test_code_masked_once_sent(self):
        record = self.request(code='918273')
        msg = Message.objects.get(pk=record.message_id)
        self.assertEqual(msg.display_content, 'Your AfriCom verification code is ******. It expires in 10 minutes.')

        dispatch.mark_sent(msg.pk, Provider.objects.get(), 'p-1')
        msg.refresh_from_db()
        self.assertNotIn('918273', msg.content)
        self.assertEqual(msg.content, 'Your AfriCom verification code is ******. It expires in 10 minutes.')
        self.assertEqual(msg.redacted_content, '')

    def test_code_masked_when_send_fails(self):
        record = self.request(code='918273')
        dispatch.mark_failed(record.message_id, 'provider_error', 'down')
        self.assertNotIn('918273', Message.objects.get(pk=record.message_id).content)

    def test_delivery_failure_marks_record_failed(self):
        self.account.wallet_balance = 0
        self.account.save()
        with self.assertRaises(InsufficientBalance):
            self.request()
        record = OTPRecord.objects.get()
        self.assertEqual(record.status, 'failed')
        self.assertTrue(record.error_message.startswith('Delivery failed'))

    def test_code_alphabets(self):
        self.assertTrue(otp_service.generate_code(10).isdigit())
        self.assertTrue(otp_service.generate_code(10, 'alphabetic').isalpha())
        code = otp_service.generate_code(8, 'alphanumeric')
        self.assertEqual(len(code), 8)
        self.assertTrue(all(ch in otp_service.ALPHABETS['alphanumeric'] for ch in code))


class VerifyOTPTestCase(OTPTestCase):

    def test_correct_code_verifies_once(self):
        self.request(metadata={'session': 'abc'})
        result = otp_service.verify_otp(self.account, PHONE, '123456')
        self.assertTrue(result['verified'])
        self.assertEqual(result['metadata'], {'session': 'abc'})

        with self.assertRaises(NotFoundError):
            otp_service.verify_otp(self.account, PHONE, '123456')

    def test_wrong_code_counts_attempts(self):
        self.request(max_attempts=3)
        result = otp_service.verify_otp(self.account, '0241234567', '000000')
        self.assertFalse(result['verified'])
        self.assertEqual(result['attempts_remaining'], 2)

    def test_exhausted_attempts_fail_the_code(self):
        self.request(max_attempts=2)
        otp_service.verify_otp(self.account, PHONE, '000000')
        result = otp_service.verify_otp(self.account, PHONE, '000000')
        self.assertEqual(result['attempts_remaining'], 0)
        self.assertEqual(result['status'], 'failed')

        with self.assertRaises(NotFoundError):
            otp_service.verify_otp(self.account, PHONE, '123456')

    def test_expired_code(self):
        record = self.request()
        OTPRecord.objects.filter(pk=record.pk).update(expires_at=timezone.now() - timedelta(seconds=1))
        with self.assertRaises(StateConflictError) as ctx:
            otp_service.verify_otp(self.account, PHONE, '123456')
        self.assertEqual(ctx.exception.current_state, 'expired')
        record.refresh_from_db()
        self.assertEqual(record.status, 'expired')

    def test_attempts_already_used_up(self):
        record = self.request(max_attempts=1)
        OTPRecord.objects.filter(pk=record.pk).update(attempts=1)
        with self.assertRaises(StateConflictError):
            otp_service.verify_otp(self.account, PHONE, '123456')
        record.refresh_from_db()
        self.assertEqual(record.status, 'failed')

    def test_alphanumeric_code_case_insensitive(self):
        self.request(code='AB12CD', pin_type='alphanumeric')
        self.assertTrue(otp_service.verify_otp(self.account, PHONE, 'ab12cd')['verified'])

    def test_other_account_cannot_verify(self):
        self.request()
        with self.assertRaises(NotFoundError):
            otp_service.verify_otp(make_account(slug='other'), PHONE, '123456')


class ResendAndHousekeepingTestCase(OTPTestCase):

    def test_resend_within_cooldown(self):
        self.request()
        with self.assertRaises(RateLimitError) as ctx:
            otp_service.resend_otp(self.account, PHONE)
        self.assertGreater(ctx.exception.remaining_seconds, 0)

    def test_resend_reuses_settings(self):
        first = self.request(pin_length=4, max_attempts=5, expiry_amount=5)
        self.age()
        with patch('verify.otp_service.generate_code', return_value='9876') as generate:
            second = otp_service.resend_otp(self.account, PHONE)
        generate.assert_called_once_with(4, 'numeric')
        self.assertEqual(second.max_attempts, 5)
        self.assertEqual(second.expiry_seconds, 300)
        self.assertIn('5 minutes', second.message.content)
        first.refresh_from_db()
        self.assertEqual(first.status, 'expired')

    def test_resend_without_previous(self):
        with self.assertRaises(NotFoundError):
            otp_service.resend_otp(self.account, PHONE)

    def test_expire_stale(self):
        record = self.request()
        OTPRecord.objects.filter(pk=record.pk).update(expires_at=timezone.now() - timedelta(seconds=1))
        self.assertEqual(otp_service.expire_stale_otps(), 1)
        record.refresh_from_db()
        self.assertEqual(record.status, 'expired')

    def test_status_expires_lazily(self):
        record = self.request()
        OTPRecord.objects.filter(pk=record.pk).update(expires_at=timezone.now() - timedelta(seconds=1))
        self.assertEqual(otp_service.get_otp_status(self.account, record.pk).status, 'expired')

    def test_statistics(self):
        self.request()
        otp_service.verify_otp(self.account, PHONE, '000000')
        otp_service.verify_otp(self.account, PHONE, '123456')
        self.request(phone='0201234567')
        stats = otp_service.get_statistics(self.account)
        self.assertEqual(stats['total_sent'], 2)
        self.assertEqual(stats['verified'], 1)
        self.assertEqual(stats['pending'], 1)
        self.assertEqual(stats['verification_rate'], 50.0)
        self.assertEqual(stats['average_attempts'], 0.5)

    def test_describe_expiry(self):
        self.assertEqual(otp_service.describe_expiry(600), (10, 'minutes'))
        self.assertEqual(otp_service.describe_expiry(7200), (2, 'hours'))
        self.assertEqual(otp_service.describe_expiry(90), (90, 'seconds'))
