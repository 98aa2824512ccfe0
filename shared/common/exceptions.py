# shared/common/exceptions.py
"""
API Error Envelope

DRF exception handler that renders every failure as

    {"success": false, "error": {"code", "message", "details", "request_id"}}

Service-layer errors are recognised by duck typing: any exception exposing
`to_dict()` and `http_status` is rendered with its own code and status, so the
services never need to import DRF.
"""

import logging
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _error_response(
    code: str,
    message: str,
    http_status: int,
    request_id: Optional[str],
    details: Optional[Dict[str, Any]] = None,
) -> Response:
    return Response(
        {
            'success': False,
            'error': {
                'code': code,
                'message': message,
                'details': details or {},
                'request_id': request_id,
            }
        },
        status=http_status
    )


def custom_exception_handler(exc, context) -> Optional[Response]:
    """
    Render exceptions raised by views in the shared error envelope.

    Order: service errors, DRF's own exceptions, Django validation and 404,
    then anything unexpected as a logged 500.
    """
    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    if hasattr(exc, 'to_dict') and hasattr(exc, 'http_status'):
        payload = exc.to_dict()
        logger.info(
            f"Service error {payload.get('code')}: {payload.get('message')}",
            extra={'request_id': request_id}
        )
        return _error_response(
            code=payload.get('code', 'ERROR'),
            message=payload.get('message', str(exc)),
            http_status=exc.http_status,
            request_id=request_id,
            details=payload.get('details'),
        )

    response = exception_handler(exc, context)
    if response is not None:
        return format_error_response(exc, response, request_id)

    if isinstance(exc, DjangoValidationError):
        errors = exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages}
        return _error_response(
            'VALIDATION_ERROR', 'Validation error',
            status.HTTP_400_BAD_REQUEST, request_id, errors
        )

    if isinstance(exc, Http404):
        return _error_response(
            'NOT_FOUND', str(exc) or 'Resource not found',
            status.HTTP_404_NOT_FOUND, request_id
        )

    logger.exception(
        f"Unhandled exception: {exc}",
        extra={'request_id': request_id, 'exception_type': type(exc).__name__}
    )

    message = str(exc) if settings.DEBUG else 'An unexpected error occurred. Please try again later.'
    return _error_response(
        'INTERNAL_ERROR', message,
        status.HTTP_500_INTERNAL_SERVER_ERROR, request_id
    )


def format_error_response(exc, response: Response, request_id: str = None) -> Response:
    """Rewrite a DRF-generated response body into the shared envelope."""
    details = {}
    if isinstance(response.data, dict) and 'detail' not in response.data:
        # Field-level validation errors from serializers
        details = response.data

    response.data = {
        'success': False,
        'error': {
            'code': _drf_error_code(exc),
            'message': get_error_message(exc, response),
            'details': details,
            'request_id': request_id,
        }
    }
    return response


def _drf_error_code(exc) -> str:
    codes = getattr(exc, 'default_code', None)
    if not codes:
        return 'ERROR'
    return str(codes).upper()


def get_error_message(exc, response: Response) -> str:
    """Extract a human readable message from a DRF exception."""
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        return str(detail[0])
    if isinstance(detail, dict):
        return str(detail.get('detail', 'Validation error'))

    if isinstance(response.data, dict):
        return str(response.data.get('detail', response.data))

    return str(response.data)
