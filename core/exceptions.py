"""
Domain exceptions and the API error envelope.

Every error response carries ``success: false`` and a human readable
``message`` so that clients can correct the request without retrying.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainValidationError(APIException):
    """Missing or malformed input detected before any write."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'
    default_code = 'validation_error'


class EmptyCartError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Cart is empty'
    default_code = 'empty_cart'


class ResourceNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class InvalidStateError(APIException):
    """
    Raised when a record is not in a state that allows the operation,
    e.g. paying an already PAID transaction or cancelling a non PENDING one.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Operation not allowed in the current state.'
    default_code = 'invalid_state'


class InsufficientStockError(APIException):
    """Raised when the stock fold of an item cannot cover a requested quantity."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'insufficient_stock'

    def __init__(self, item_name: str, available: int, requested: int):
        self.item_name = item_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {item_name}. "
            f"Available: {available}, Requested: {requested}"
        )


def _flatten_message(detail) -> str:
    if isinstance(detail, (list, tuple)):
        return _flatten_message(detail[0]) if detail else ''
    if isinstance(detail, dict):
        field, value = next(iter(detail.items()))
        message = _flatten_message(value)
        if field in ('non_field_errors', 'detail'):
            return message
        return f"{field}: {message}"
    return str(detail)


def envelope_exception_handler(exc, context):
    """
    DRF exception handler producing ``{"success": false, "message": ...}``.

    Unhandled exceptions are logged and reported as an opaque server error.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(
            f"Unexpected error in {view.__class__.__name__ if view else 'view'}: {exc}"
        )
        return Response(
            {'success': False, 'message': 'Server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    payload = {'success': False, 'message': _flatten_message(response.data)}
    if isinstance(exc, InsufficientStockError):
        payload['available'] = exc.available
        payload['requested'] = exc.requested
    elif isinstance(response.data, dict) and set(response.data) != {'detail'}:
        payload['errors'] = response.data
    response.data = payload
    return response
