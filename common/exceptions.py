"""
Application error taxonomy.

Services raise these; API views catch AppError and answer with
``{'error': message}`` and the error's status code.
"""
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = 'Something went wrong. Please try again.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid request.'


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = 'Unauthorized'


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = 'You do not have permission to perform this action.'


class InvalidPlanError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid plan selected'


class InvalidCouponError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid or inactive coupon code'


class SignupConflictError(AppError):
    """Signup collided with an existing row (e.g. coupon code). Safe to retry."""
    status_code = status.HTTP_409_CONFLICT
    default_message = 'Could not create your account right now. Please try again.'


class GenerationError(AppError):
    default_message = 'Failed to generate letter draft'


class GenerationParseError(GenerationError):
    pass


class GenerationTimeoutError(GenerationError):
    default_message = 'Letter generation timed out. Please try again.'


class StoreError(AppError):
    default_message = 'Could not save your changes. Please try again.'


class PaymentProviderError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = 'Payment provider error. Please try again.'


class SignatureVerificationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = 'Invalid signature'


def api_exception_handler(exc, context):
    """DRF exception handler that answers every error as ``{'error': ...}``."""
    if isinstance(exc, AppError):
        return Response({'error': exc.message}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = response.data.get('detail') if isinstance(response.data, dict) else None
    if detail is not None:
        response.data = {'error': str(detail)}
    else:
        response.data = {'error': 'Invalid request.', 'fields': response.data}
    return response
