# services/learning-service/src/apps/core/events/__init__.py
"""
Learning Service Events

Publishers for events emitted by the engine and handlers for events
consumed from other services.
"""

from .publishers import (
    publish_enrollment_granted,
    publish_enrollment_revoked,
    publish_module_progress_updated,
    publish_quiz_attempt_started,
    publish_quiz_attempt_submitted,
    publish_quiz_attempt_graded,
)
from .handlers import (
    handle_payment_completed,
    handle_payment_refunded,
    dispatch_event,
    EVENT_HANDLERS,
)

__all__ = [
    # Publishers
    'publish_enrollment_granted',
    'publish_enrollment_revoked',
    'publish_module_progress_updated',
    'publish_quiz_attempt_started',
    'publish_quiz_attempt_submitted',
    'publish_quiz_attempt_graded',
    # Handlers
    'handle_payment_completed',
    'handle_payment_refunded',
    'dispatch_event',
    'EVENT_HANDLERS',
]
