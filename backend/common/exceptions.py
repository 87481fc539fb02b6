"""
Domain error taxonomy for the marketplace core.

Services raise these; the DRF exception handler below turns them into
``{"error": <code>, "detail": <reason>}`` responses.
"""
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class MarketplaceError(Exception):
    """Base class for every rejection raised by the order/wallet core."""
    code = 'marketplace_error'
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The request could not be completed.'

    def __init__(self, detail=None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFound(MarketplaceError):
    code = 'not_found'
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Referenced entity does not exist.'


class Forbidden(MarketplaceError):
    code = 'forbidden'
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to perform this action.'


class InvalidTransition(MarketplaceError):
    code = 'invalid_transition'
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The order status does not allow this action.'


class InsufficientFunds(MarketplaceError):
    code = 'insufficient_funds'
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = 'Wallet balance is too low.'


class AlreadySettled(MarketplaceError):
    code = 'already_settled'
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This order has already been settled.'


class InvalidState(MarketplaceError):
    code = 'invalid_state'
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The order is not in a state that accepts this action.'


class InvalidAmount(MarketplaceError):
    code = 'invalid_amount'
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Amount must be a positive value.'


def marketplace_exception_handler(exc, context):
    """
    Render domain errors with their code and reason.
    Everything else falls through to DRF's default handler.
    """
    if isinstance(exc, MarketplaceError):
        return Response(
            {'error': exc.code, 'detail': exc.detail},
            status=exc.status_code
        )
    return exception_handler(exc, context)
