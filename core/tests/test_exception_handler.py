from django.test import SimpleTestCase
from rest_framework import exceptions

from core.exception_handler import gateway_exception_handler
from core.exceptions import InsufficientBalance, NotFoundError, RateLimitError, StateConflictError, ValidationError


class GatewayExceptionHandlerTestCase(SimpleTestCase):

    def render(self, exc):
        return gateway_exception_handler(exc, {'view': None})

    def test_validation_error_lists_every_problem(self):
        response = self.render(ValidationError(['Phone number is required', 'Message cannot be empty']))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['errors'], ['Phone number is required', 'Message cannot be empty'])
        self.assertEqual(response.data['code'], 'validation_error')

    def test_rate_limit_sets_retry_after(self):
        response = self.render(RateLimitError('Slow down', remaining_seconds=12))
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response['Retry-After'], '12')
        self.assertEqual(response.data['remaining_seconds'], 12)

    def test_state_conflict_carries_state(self):
        response = self.render(StateConflictError('Too late', current_state='sent'))
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data, {'error': 'Too late', 'code': 'state_conflict', 'current_state': 'sent'})

    def test_insufficient_balance(self):
        response = self.render(InsufficientBalance('0.01', '0.03'))
        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data['balance'], '0.01')

    def test_not_found(self):
        self.assertEqual(self.render(NotFoundError('Message not found')).data['error'], 'Message not found')

    def test_drf_validation_errors_are_flattened(self):
        exc = exceptions.ValidationError({'to': ['This field is required.'], 'recipients': [{'to': ['Too long.']}]})
        response = self.render(exc)
        self.assertIn('to: This field is required.', response.data['errors'])
        self.assertIn('recipients.to: Too long.', response.data['errors'])

    def test_other_drf_errors(self):
        response = self.render(exceptions.AuthenticationFailed('Invalid signature'))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data['error'], 'Invalid signature')
