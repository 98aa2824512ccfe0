# services/learning-service/src/apps/core/events/handlers.py
"""
Event Handlers

Functions for handling events from other services.
"""

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


def _scope_from_event(event_data: Dict[str, Any]):
    from ..models import FullAccess, ModuleAccess

    if event_data.get('purchase_type', 'full') == 'full':
        return FullAccess()
    return ModuleAccess(frozenset(event_data.get('module_ids') or []))


def handle_payment_completed(event_data: Dict[str, Any]) -> bool:
    """
    Handle payment completed event from the payment subsystem.

    Grants the purchased course or modules.

    Args:
        event_data: user_id, course_id, purchase_type ('full' or 'module')
            and module_ids for module purchases

    Returns:
        True if handled successfully
    """
    from ..services import EnrollmentService, LearningServiceError

    try:
        enrollment = EnrollmentService.grant_enrollment(
            user_id=event_data['user_id'],
            course_id=event_data['course_id'],
            scope=_scope_from_event(event_data),
        )
        logger.info(
            f"Granted enrollment {enrollment.id} for payment {event_data.get('payment_id')}"
        )
        return True

    except (KeyError, LearningServiceError) as e:
        logger.error(
            f"Error handling payment completed event: {e}",
            extra={'event_data': event_data}
        )
        return False


def handle_payment_refunded(event_data: Dict[str, Any]) -> bool:
    """
    Handle payment refunded event from the payment subsystem.

    Args:
        event_data: user_id, course_id and, for partial refunds, module_ids

    Returns:
        True if handled successfully
    """
    from ..services import EnrollmentService, LearningServiceError

    try:
        EnrollmentService.revoke_enrollment(
            user_id=event_data['user_id'],
            course_id=event_data['course_id'],
            module_ids=event_data.get('module_ids') or None,
        )
        logger.info(
            f"Revoked enrollment of user {event_data['user_id']} "
            f"for refunded payment {event_data.get('payment_id')}"
        )
        return True

    except (KeyError, LearningServiceError) as e:
        logger.error(
            f"Error handling payment refunded event: {e}",
            extra={'event_data': event_data}
        )
        return False


EVENT_HANDLERS = {
    'payment.completed': handle_payment_completed,
    'payment.refunded': handle_payment_refunded,
}


def dispatch_event(event_type: str, event_data: Dict[str, Any]) -> bool:
    """
    Dispatch an event to the appropriate handler.

    Args:
        event_type: Type of event
        event_data: Event data

    Returns:
        True if handled successfully
    """
    handler = EVENT_HANDLERS.get(event_type)

    if not handler:
        logger.debug(f"No handler registered for event type: {event_type}")
        return True

    return handler(event_data)
