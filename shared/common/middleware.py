# shared/common/middleware.py
"""
Request Middleware

Request tracing and one-line access logging shared by the services.
"""

import logging
import time
import uuid
from typing import Callable

from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

SKIPPED_PATHS = ('/health/', '/health/ready/', '/health/live/')


class RequestIDMiddleware:
    """
    Attach a request ID to each request and echo it in `X-Request-ID`.

    An incoming `X-Request-ID` (set by the gateway) is kept so that one
    learner action can be followed across services.
    """

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        request.request_id = request_id

        response = self.get_response(request)
        response['X-Request-ID'] = request_id
        return response


class LoggingMiddleware:
    """Log method, path, status and duration of every request."""

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if request.path in SKIPPED_PATHS:
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = round((time.monotonic() - started) * 1000, 2)

        log_method = logger.warning if response.status_code >= 400 else logger.info
        log_method(
            f"{request.method} {request.path} - {response.status_code}",
            extra={
                'request_id': getattr(request, 'request_id', None),
                'method': request.method,
                'path': request.path,
                'status_code': response.status_code,
                'duration_ms': duration_ms,
                'user_id': str(getattr(getattr(request, 'user', None), 'id', None)),
            }
        )

        response['X-Response-Time'] = f"{duration_ms:.2f}ms"
        return response
