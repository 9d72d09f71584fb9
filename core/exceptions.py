# core/exceptions.py

import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ValidationError(exceptions.ValidationError):
    """Malformed times, out-of-range durations or capacity, bad weekday data"""
    default_detail = 'Invalid scheduling data.'
    default_code = 'validation_error'


class AuthError(exceptions.PermissionDenied):
    default_detail = 'Not authorized to perform this action.'
    default_code = 'not_authorized'


class NotFound(exceptions.NotFound):
    default_detail = 'Not found.'
    default_code = 'not_found'


class SlotUnavailable(exceptions.APIException):
    """Capacity exhausted or slot not part of the template; caller may retry another slot"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The requested slot is not available.'
    default_code = 'slot_unavailable'


class InvalidTransition(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Invalid appointment status transition.'
    default_code = 'invalid_transition'


class ScheduleConflict(exceptions.APIException):
    """A concurrent template write won; the caller may re-read and retry"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The schedule was modified concurrently, please retry.'
    default_code = 'schedule_conflict'


def custom_exception_handler(exc, context):
    """
    Wrap DRF error responses in the API envelope:
        {"success": false, "error": <code>, "message": <detail>}
    Field-level validation errors are kept under "errors".
    """
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown'

    if response is None:
        logger.error(f"Unhandled error in {view_name}: {exc}", exc_info=exc)
        return None

    detail = getattr(exc, 'detail', None)
    if isinstance(exc, exceptions.ValidationError):
        code = ValidationError.default_code
    elif isinstance(exc, Http404):
        code = NotFound.default_code
    else:
        code = getattr(exc, 'default_code', 'error')

    payload = {'success': False, 'error': code}
    if isinstance(detail, dict):
        payload['message'] = 'Invalid request data.'
        payload['errors'] = response.data
    elif isinstance(detail, list):
        payload['message'] = '; '.join(str(item) for item in detail)
    else:
        payload['message'] = str(detail) if detail is not None else str(exc)

    if response.status_code >= 500:
        logger.error(f"{view_name} failed: {payload['message']}")
    else:
        logger.info(f"{view_name} rejected request ({code}): {payload['message']}")

    response.data = payload
    return response
