import logging

from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class NotFoundException(exceptions.APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'

    def __init__(self, entity=None, key=None, detail=None):
        if detail is None and entity is not None:
            detail = f'{entity} with id {key} was not found.' if key is not None else f'{entity} was not found.'
        super().__init__(detail)


class BadRequestException(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request.'
    default_code = 'bad_request'


class ConflictException(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with the current state of the resource.'
    default_code = 'conflict'


class ForbiddenException(exceptions.APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class UnauthorizedException(exceptions.APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid credentials.'
    default_code = 'unauthorized'


def _first_message(detail):
    if isinstance(detail, list) and detail:
        return _first_message(detail[0])
    if isinstance(detail, dict) and detail:
        return _first_message(next(iter(detail.values())))
    return str(detail)


def custom_exception_handler(exc, context):
    """
    Turn every error raised inside a DRF view into the same envelope:
    {"success": false, "status_code": ..., "error": ..., "errors": {...}}
    Anything DRF does not know about is logged and reported as a generic 500.
    """
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, 'message_dict'):
            exc = exceptions.ValidationError(exc.message_dict)
        else:
            exc = exceptions.ValidationError(exc.messages)
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound(str(exc) or None)
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied(str(exc) or None)

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.exception(f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}")
        return Response(
            {
                'success': False,
                'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
                'error': 'An unexpected error occurred.',
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        errors = exc.detail if isinstance(exc.detail, dict) else {'non_field_errors': exc.detail}
        response.data = {
            'success': False,
            'status_code': response.status_code,
            'error': 'Validation failed',
            'errors': errors,
        }
    else:
        response.data = {
            'success': False,
            'status_code': response.status_code,
            'error': _first_message(response.data.get('detail', response.data)
                                    if isinstance(response.data, dict) else response.data),
        }
    return response
