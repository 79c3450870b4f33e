"""
Gateway error taxonomy.

Every service-layer failure raises one of these. They subclass DRF's
APIException so views can let them propagate and the custom exception
handler renders a consistent body: {"error": ..., "code": ..., **extra}.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class GatewayError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed'
    default_code = 'gateway_error'

    def __init__(self, message=None, code=None, **extra):
        self.message = message or self.default_detail
        self.extra = extra
        super().__init__(detail=self.message, code=code or self.default_code)

    def __str__(self):
        return self.message

    def to_dict(self):
        body = {'error': self.message, 'code': self.default_code}
        body.update(self.extra)
        return body


class ValidationError(GatewayError):
    """Input rejected. `errors` carries one entry per problem found."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Validation failed'
    default_code = 'validation_error'

    def __init__(self, errors, message=None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(message or '; '.join(self.errors), errors=self.errors)


class NotFoundError(GatewayError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'


class RateLimitError(GatewayError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = 'Too many requests'
    default_code = 'rate_limited'

    def __init__(self, message=None, remaining_seconds=0):
        self.remaining_seconds = int(remaining_seconds)
        super().__init__(message, remaining_seconds=self.remaining_seconds)


class StateConflictError(GatewayError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Operation not allowed in current state'
    default_code = 'state_conflict'

    def __init__(self, message=None, current_state=''):
        self.current_state = current_state
        super().__init__(message, current_state=current_state)


class InsufficientBalance(GatewayError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = 'Insufficient balance. Please top up.'
    default_code = 'insufficient_balance'

    def __init__(self, balance, required, currency='GHS'):
        self.balance = balance
        self.required = required
        super().__init__(
            balance=str(balance), required=str(required), currency=currency,
        )


class DependencyFailure(GatewayError):
    """A downstream collaborator (provider, broker, ledger) failed."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Upstream dependency failed'
    default_code = 'dependency_failure'
