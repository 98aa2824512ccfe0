# services/learning-service/src/apps/core/events/publishers.py
"""
Event Publishers

Functions for publishing events to other services. Callers schedule them
with `after_commit` so nothing is announced for a rolled back change.
"""

import logging
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.utils import timezone

logger = logging.getLogger(__name__)


def _publish_event(event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Publish an event to the message broker.

    Args:
        event_type: Type of event
        data: Event data payload

    Returns:
        The published envelope
    """
    event = {
        'type': event_type,
        'timestamp': timezone.now().isoformat(),
        'service': getattr(settings, 'SERVICE_NAME', 'learning-service'),
        'data': data,
    }

    # The broker bridge tails this logger and forwards the envelope
    logger.info(f"Publishing event: {event_type}", extra={'event_data': event})
    return event


def publish_enrollment_granted(
    user_id: str,
    course_id: str,
    enrollment_type: str,
    module_ids: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """
    Publish enrollment granted event.

    Args:
        user_id: Learner ID
        course_id: Course ID
        enrollment_type: full or module
        module_ids: Modules newly granted (module enrollments)
    """
    return _publish_event('learning.enrollment_granted', {
        'user_id': user_id,
        'course_id': course_id,
        'enrollment_type': enrollment_type,
        'module_ids': module_ids or [],
    })


def publish_enrollment_revoked(
    user_id: str,
    course_id: str,
    module_ids: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Publish enrollment revoked event (empty module_ids means the whole course)."""
    return _publish_event('learning.enrollment_revoked', {
        'user_id': user_id,
        'course_id': course_id,
        'module_ids': module_ids or [],
    })


def publish_module_progress_updated(
    user_id: str,
    course_id: str,
    module_id: str,
    progress: float,
) -> Dict[str, Any]:
    return _publish_event('learning.module_progress_updated', {
        'user_id': user_id,
        'course_id': course_id,
        'module_id': module_id,
        'progress': progress,
    })


def publish_quiz_attempt_started(
    user_id: str,
    quiz_id: str,
    attempt_id: str,
    attempt_number: int,
) -> Dict[str, Any]:
    return _publish_event('learning.quiz_attempt_started', {
        'user_id': user_id,
        'quiz_id': quiz_id,
        'attempt_id': attempt_id,
        'attempt_number': attempt_number,
    })


def publish_quiz_attempt_submitted(
    user_id: str,
    quiz_id: str,
    attempt_id: str,
    needs_manual_grading: bool,
) -> Dict[str, Any]:
    """
    Publish quiz attempt submitted event.

    Attempts waiting for manual grading show up in the staff grading queue.
    """
    return _publish_event('learning.quiz_attempt_submitted', {
        'user_id': user_id,
        'quiz_id': quiz_id,
        'attempt_id': attempt_id,
        'needs_manual_grading': needs_manual_grading,
    })


def publish_quiz_attempt_graded(
    user_id: str,
    quiz_id: str,
    attempt_id: str,
    percentage: float,
    passed: bool,
    graded_by: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Publish quiz attempt graded event.

    The notification service emails the learner when `graded_by` is set
    (manual grading).

    Args:
        user_id: Learner ID
        quiz_id: Quiz ID
        attempt_id: Attempt ID
        percentage: Final percentage
        passed: Whether the attempt passed
        graded_by: Grader, None for automatic grading
    """
    return _publish_event('learning.quiz_attempt_graded', {
        'user_id': user_id,
        'quiz_id': quiz_id,
        'attempt_id': attempt_id,
        'percentage': percentage,
        'passed': passed,
        'graded_by': graded_by,
    })
