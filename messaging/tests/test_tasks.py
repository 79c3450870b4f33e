from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings
from kombu.exceptions import OperationalError

from messaging import dispatch, send_queue
from messaging.models import Message, Provider
from messaging.providers import SendResult
from messaging.tasks import task_send_message
from messaging.tests.helpers import make_account, make_provider, make_sender


@override_settings(SMS_MAX_PROVIDER_ATTEMPTS=3)
class SendMessageTaskTestCase(TestCase):

    def setUp(self):
        self.account = make_account(wallet='1.0000')
        make_sender(self.account)
        self.primary = make_provider('Primary', priority=10)
        self.backup = make_provider('Backup', priority=5)
        self.msg = dispatch.send_single(self.account, '0241234567', 'Hello')

    def test_sends_through_routed_provider(self):
        with patch('messaging.providers.send_via_provider', return_value=SendResult(True, 'p-1', latency_ms=50)) as send:
            result = task_send_message(str(self.msg.id), self.primary.id)

        self.assertTrue(result['success'])
        send.assert_called_once_with(self.primary, '+233241234567', 'Hello', 'ACME')
        self.msg.refresh_from_db()
        self.assertEqual(self.msg.status, 'sent')
        self.assertEqual(self.msg.provider_message_id, 'p-1')
        self.assertEqual(Provider.objects.get(pk=self.primary.pk).total_attempts, 1)

    def test_fails_over_to_next_provider(self):
        outcomes = [SendResult(False, error='timeout', latency_ms=30000), SendResult(True, 'b-1', latency_ms=80)]
        with patch('messaging.providers.send_via_provider', side_effect=outcomes):
            result = task_send_message(str(self.msg.id), self.primary.id)

        self.assertEqual(result['provider'], 'Backup')
        self.msg.refresh_from_db()
        self.assertEqual(self.msg.status, 'sent')
        self.assertEqual(self.msg.provider, self.backup)
        self.assertEqual(Provider.objects.get(pk=self.primary.pk).error_count, 1)

    def test_all_providers_failing_refunds(self):
        with patch('messaging.providers.send_via_provider', return_value=SendResult(False, error='down')):
            result = task_send_message(str(self.msg.id), self.primary.id)

        self.assertFalse(result['success'])
        self.msg.refresh_from_db()
        self.assertEqual(self.msg.status, 'failed')
        self.assertEqual(self.msg.error_code, 'provider_error')
        self.account.refresh_from_db()
        self.assertEqual(self.account.wallet_balance, Decimal('1.0000'))

    def test_skips_messages_no_longer_queued(self):
        Message.objects.filter(pk=self.msg.id).update(status='failed')
        with patch('messaging.providers.send_via_provider') as send:
            result = task_send_message(str(self.msg.id), self.primary.id)
        self.assertFalse(result['success'])
        send.assert_not_called()

    def test_unknown_message(self):
        result = task_send_message('00000000-0000-0000-0000-000000000000')
        self.assertEqual(result['error'], 'not found')


class SendQueueTestCase(TestCase):

    def setUp(self):
        self.account = make_account(wallet='1.0000')
        make_sender(self.account)
        make_provider()

    def test_broker_outage_fails_and_refunds(self):
        with patch('messaging.send_queue.task_send_message') as task:
            task.delay.side_effect = OperationalError('connection refused')
            with self.captureOnCommitCallbacks(execute=True):
                msg = dispatch.send_single(self.account, '0241234567', 'Hello')

        msg.refresh_from_db()
        self.assertEqual(msg.status, 'failed')
        self.assertEqual(msg.error_code, 'queue_unavailable')
        self.account.refresh_from_db()
        self.assertEqual(self.account.wallet_balance, Decimal('1.0000'))

    def test_publish_waits_for_commit(self):
        with patch('messaging.send_queue.task_send_message') as task:
            with self.captureOnCommitCallbacks(execute=False) as callbacks:
                send_queue.enqueue('abc', 1)
            task.delay.assert_not_called()
        self.assertEqual(len(callbacks), 1)
