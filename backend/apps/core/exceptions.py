"""
API error types and the DRF exception handler.

Every error leaves the API as ``{"error": str, "details": [...]}``:
- 400 validation problems, with one ``{field, message}`` entry per message
- 404 missing rows
- 409 uniqueness conflicts and deletes blocked by dependents
- 500 anything unexpected (logged, never leaked)
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConflictError(exceptions.APIException):
    """Uniqueness conflict or an operation blocked by dependent rows."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with existing data.'
    default_code = 'conflict'

    def __init__(self, detail=None, details=None):
        super().__init__(detail)
        self.details = details or []


class InsufficientStockError(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Insufficient stock.'
    default_code = 'insufficient_stock'

    def __init__(self, detail=None, details=None):
        super().__init__(detail)
        self.details = details or []


class InvalidStateError(exceptions.APIException):
    """The row exists but is in the wrong lifecycle state for the request."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid state for this operation.'
    default_code = 'invalid_state'


def flatten_errors(detail, prefix=''):
    """
    Turn DRF's nested error structure into a flat list of
    ``{field, message}`` dicts. Nested list positions become part of
    the field path, e.g. ``items.1.quantity``.
    """
    errors = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            field = key if not prefix else f"{prefix}.{key}"
            if key == 'non_field_errors':
                field = prefix or 'non_field_errors'
            errors.extend(flatten_errors(value, field))
    elif isinstance(detail, list):
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                errors.extend(flatten_errors(value, f"{prefix}.{index}" if prefix else str(index)))
            else:
                errors.append({'field': prefix or 'non_field_errors', 'message': str(value)})
    else:
        errors.append({'field': prefix or 'non_field_errors', 'message': str(detail)})
    return errors


def _first_message(detail):
    if isinstance(detail, (list, tuple)) and detail:
        return str(detail[0])
    return str(detail)


def api_exception_handler(exc, context):
    """
    Convert every exception raised by a view into the error envelope.

    Registered as REST_FRAMEWORK['EXCEPTION_HANDLER'].
    """
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown view'

    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(
            exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        )
    elif isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error in {view_name}: {exc}")
        exc = ConflictError('Conflict with existing data.')
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound(str(exc) or 'Not found.')

    response = exception_handler(exc, context)

    if response is None:
        logger.error(f"Unhandled error in {view_name}: {exc}", exc_info=exc)
        return Response(
            {'error': 'Internal server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            'error': 'Validation failed',
            'details': flatten_errors(exc.detail),
        }
        return response

    data = {'error': _first_message(exc.detail)}
    details = getattr(exc, 'details', None)
    if details:
        data['details'] = details
    response.data = data
    return response
