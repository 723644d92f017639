# bloodbridge/exceptions.py
"""
Error taxonomy shared by the matching service and the REST API.

Every error is a DRF ``APIException`` so views can let them propagate and the
framework renders the right status code and JSON body.
"""
import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class BloodBridgeError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Blood request processing failed.'
    default_code = 'error'


class ValidationError(BloodBridgeError):
    """Missing or malformed fields on a submission. Never retried."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request data.'
    default_code = 'invalid'


class NotFoundError(BloodBridgeError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class InvalidStateError(BloodBridgeError):
    """A blood request cannot make the requested status transition."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Blood request is no longer active.'
    default_code = 'invalid_state'


class StoreError(BloodBridgeError):
    """The key-value store failed to read or write."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Storage failure.'
    default_code = 'store_error'


def exception_handler(exc, context):
    """DRF exception handler that logs storage failures before rendering them."""
    if isinstance(exc, StoreError):
        view = context.get('view')
        logger.error(f"Store failure in {view.__class__.__name__ if view else 'unknown view'}: {exc.detail}")
    return drf_exception_handler(exc, context)
