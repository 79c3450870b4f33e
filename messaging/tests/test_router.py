from django.test import TestCase, override_settings

from messaging import router
from messaging.models import Provider
from messaging.tests.helpers import make_provider


@override_settings(PROVIDER_ERROR_THRESHOLD=3, PROVIDER_STATS_ALPHA=0.5)
class SelectProviderTestCase(TestCase):

    def setUp(self):
        self.primary = make_provider('Primary', priority=10, success_rate=0.90, avg_latency_ms=800)
        self.backup = make_provider('Backup', priority=5, success_rate=0.99, avg_latency_ms=200)

    def test_default_ordering_by_priority(self):
        self.assertEqual(router.select_provider('GH'), self.primary)

    def test_cost_uses_default_ordering(self):
        self.assertEqual(router.select_provider('GH', priority='cost'), self.primary)

    def test_speed(self):
        self.assertEqual(router.select_provider('GH', priority='speed'), self.backup)

    def test_unknown_latency_sorts_after_measured(self):
        make_provider('Fresh', priority=20)
        self.assertEqual(router.select_provider('GH', priority='speed'), self.backup)

    def test_reliability(self):
        self.assertEqual(router.select_provider('GH', priority='reliability'), self.backup)

    def test_unknown_priority_falls_back_to_default(self):
        self.assertEqual(router.select_provider('GH', priority='cheapest'), self.primary)

    def test_network_capable_provider_preferred(self):
        mtn = make_provider('MTN Direct', priority=1, networks=['mtn'])
        self.assertEqual(router.select_provider('GH', 'mtn'), mtn)
        self.assertEqual(router.select_provider('GH', 'telecel'), self.primary)

    def test_country_not_served(self):
        self.assertIsNone(router.select_provider('ZA'))

    def test_inactive_and_unhealthy_skipped(self):
        self.primary.error_count = 3
        self.primary.save()
        self.assertEqual(router.select_provider('GH'), self.backup)
        self.backup.status = 'inactive'
        self.backup.save()
        self.assertIsNone(router.select_provider('GH'))


@override_settings(PROVIDER_ERROR_THRESHOLD=2, PROVIDER_STATS_ALPHA=0.5)
class RecordOutcomeTestCase(TestCase):

    def setUp(self):
        self.provider = make_provider('Sandbox')

    def test_failures_make_provider_unhealthy(self):
        router.record_outcome(self.provider.pk, False, 100)
        router.record_outcome(self.provider.pk, False, 100)
        provider = Provider.objects.get(pk=self.provider.pk)
        self.assertEqual(provider.error_count, 2)
        self.assertEqual(provider.total_attempts, 2)
        self.assertAlmostEqual(provider.success_rate, 0.25)
        self.assertFalse(router.is_healthy(provider))
        self.assertIsNotNone(provider.last_error_at)

    def test_success_resets_error_count(self):
        router.record_outcome(self.provider.pk, False)
        router.record_outcome(self.provider.pk, True, 300)
        provider = Provider.objects.get(pk=self.provider.pk)
        self.assertEqual(provider.error_count, 0)
        self.assertEqual(provider.avg_latency_ms, 300.0)
        self.assertTrue(router.is_healthy(provider))

    def test_latency_moving_average(self):
        router.record_outcome(self.provider.pk, True, 100)
        router.record_outcome(self.provider.pk, True, 300)
        self.assertEqual(Provider.objects.get(pk=self.provider.pk).avg_latency_ms, 200.0)

    def test_unknown_provider(self):
        self.assertIsNone(router.record_outcome(999999, True))
