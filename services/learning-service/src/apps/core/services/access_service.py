# services/learning-service/src/apps/core/services/access_service.py
"""
Access Service

Decides what a caller may see or do inside a course. Pure reads: nothing
here writes, so checks are safe on every read path.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.conf import settings

from ..models import Course, Lesson, Module, ModuleAccess
from .enrollment_service import EnrollmentService
from .exceptions import AccessDeniedError, AccessReason, NotFoundError
from .progress_service import ProgressService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """The caller of an engine operation."""

    user_id: Optional[str]
    roles: Tuple[str, ...] = ()

    @classmethod
    def from_user(cls, user) -> 'Actor':
        user_id = getattr(user, 'id', None)
        return cls(
            user_id=str(user_id) if user_id is not None else None,
            roles=tuple(getattr(user, 'roles', ()) or ()),
        )

    @property
    def is_staff(self) -> bool:
        return bool(set(self.roles) & set(settings.LEARNING_ENGINE['STAFF_ROLES']))

    def require_staff(self) -> None:
        if not self.is_staff:
            raise AccessDeniedError(
                AccessReason.STAFF_ONLY,
                message="Only staff members can perform this action"
            )


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an access check."""

    allowed: bool
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def grant(cls, **details) -> 'AccessDecision':
        return cls(allowed=True, details=details)

    @classmethod
    def deny(cls, reason: str, **details) -> 'AccessDecision':
        return cls(allowed=False, reason=reason, details=details)

    def raise_if_denied(self) -> None:
        if not self.allowed:
            raise AccessDeniedError(self.reason, details=self.details)

    def to_dict(self) -> Dict[str, Any]:
        return {'allowed': self.allowed, 'reason': self.reason, 'details': self.details}


class AccessService:
    """Service for module, lesson and quiz access decisions."""

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    @staticmethod
    def get_course(course_id: str) -> Course:
        course = Course.objects.filter(id=course_id).first()
        if not course:
            raise NotFoundError('course', course_id)
        return course

    @staticmethod
    def get_module(course_id: str, module_id: str) -> Module:
        module = Module.objects.filter(
            id=module_id,
            course_id=course_id,
            course__is_deleted=False,
        ).select_related('course').first()
        if not module:
            raise NotFoundError('module', module_id)
        return module

    @staticmethod
    def get_lesson(course_id: str, module_id: str, lesson_id: str) -> Lesson:
        lesson = Lesson.objects.filter(
            id=lesson_id,
            module_id=module_id,
            module__course_id=course_id,
            module__is_deleted=False,
        ).select_related('module').first()
        if not lesson:
            raise NotFoundError('lesson', lesson_id)
        return lesson

    @staticmethod
    def has_full_access(actor: Actor, course: Course) -> bool:
        """
        Staff and the course creator skip the module checks.

        Lesson and quiz gates still apply to the creator.
        """
        return actor.is_staff or course.is_creator(actor.user_id)

    # =========================================================================
    # MODULE ACCESS
    # =========================================================================

    @staticmethod
    def check_prerequisites(user_id: str, module: Module) -> List[Dict[str, Any]]:
        """
        Status of each prerequisite of a module for a user.

        Returns:
            List of dicts with module_id, title, order, required, completed
            and is_met
        """
        thresholds = module.get_required_completions()
        statuses = []
        for prerequisite in module.prerequisites.all().order_by('order'):
            required = thresholds[str(prerequisite.id)]
            completed = ProgressService.get_module_progress(
                user_id, module.course_id, prerequisite.id
            )['progress']
            statuses.append({
                'module_id': str(prerequisite.id),
                'title': prerequisite.title,
                'order': prerequisite.order,
                'required': required,
                'completed': completed,
                'is_met': completed >= required,
            })
        return statuses

    @staticmethod
    def can_access_module(actor: Actor, course_id: str, module_id: str) -> AccessDecision:
        """
        Decide whether the caller may open a module.

        Args:
            actor: Caller
            course_id: Course ID
            module_id: Module ID

        Returns:
            AccessDecision with reason not_enrolled, module_not_purchased or
            prerequisites_not_met when denied
        """
        module = AccessService.get_module(course_id, module_id)
        return AccessService._decide_module(actor, module)

    @staticmethod
    def _decide_module(actor: Actor, module: Module, enrollment=None) -> AccessDecision:
        course = module.course
        if AccessService.has_full_access(actor, course):
            return AccessDecision.grant(bypass=True)

        if enrollment is None:
            enrollment = EnrollmentService.get_enrollment(actor.user_id, course.id)
        if not enrollment:
            return AccessDecision.deny(AccessReason.NOT_ENROLLED)

        scope = enrollment.scope
        if isinstance(scope, ModuleAccess) and not scope.includes(module.id):
            return AccessDecision.deny(AccessReason.MODULE_NOT_PURCHASED, module_id=str(module.id))

        prerequisites = AccessService.check_prerequisites(actor.user_id, module)
        if not all(p['is_met'] for p in prerequisites):
            return AccessDecision.deny(
                AccessReason.PREREQUISITES_NOT_MET,
                prerequisites=[p for p in prerequisites if not p['is_met']],
            )

        return AccessDecision.grant(enrollment_type=enrollment.enrollment_type)

    @staticmethod
    def decide_modules(actor: Actor, modules: Iterable[Module]) -> Dict[str, AccessDecision]:
        """Decisions for several modules of one course, sharing one enrollment lookup."""
        modules = list(modules)
        if not modules:
            return {}
        course = modules[0].course
        enrollment = None
        if not AccessService.has_full_access(actor, course):
            enrollment = EnrollmentService.get_enrollment(actor.user_id, course.id)
            if not enrollment:
                denied = AccessDecision.deny(AccessReason.NOT_ENROLLED)
                return {str(m.id): denied for m in modules}
        return {str(m.id): AccessService._decide_module(actor, m, enrollment) for m in modules}

    # =========================================================================
    # LESSON AND QUIZ ACCESS
    # =========================================================================

    @staticmethod
    def _previous_quiz_gate(actor: Actor, lesson: Lesson) -> Optional[AccessDecision]:
        previous = lesson.get_previous_lesson()
        if not previous or not previous.block_progress:
            return None
        previous_quiz = previous.get_quiz()
        if not previous_quiz:
            return None
        if ProgressService.has_completed_quiz(
            actor.user_id, lesson.module.course_id, lesson.module_id, previous_quiz.id
        ):
            return None
        return AccessDecision.deny(
            AccessReason.PREVIOUS_QUIZ_NOT_PASSED,
            previous_lesson_id=str(previous.id),
            previous_quiz_id=str(previous_quiz.id),
        )

    @staticmethod
    def can_access_lesson(
        actor: Actor,
        course_id: str,
        module_id: str,
        lesson_id: str,
    ) -> AccessDecision:
        """Module access plus the previous-lesson quiz gate."""
        decision = AccessService.can_access_module(actor, course_id, module_id)
        if not decision.allowed:
            return decision

        lesson = AccessService.get_lesson(course_id, module_id, lesson_id)
        if actor.is_staff:
            return decision
        return AccessService._previous_quiz_gate(actor, lesson) or decision

    @staticmethod
    def can_attempt_quiz(
        actor: Actor,
        course_id: str,
        module_id: str,
        lesson_id: str,
    ) -> AccessDecision:
        """
        Decide whether the caller may start the lesson's quiz.

        Checks, in order: module access, the lesson's minimum time on
        lesson, then the previous lesson's quiz. Staff skip the last two.

        Returns:
            AccessDecision; quiz_time_not_met or previous_quiz_not_passed
            when a lesson gate fails
        """
        decision = AccessService.can_access_module(actor, course_id, module_id)
        if not decision.allowed:
            return decision

        lesson = AccessService.get_lesson(course_id, module_id, lesson_id)
        if actor.is_staff:
            return decision

        if lesson.minimum_time_required > 0:
            required_seconds = lesson.minimum_time_required * 60
            spent = ProgressService.get_time_spent(actor.user_id, lesson.id)
            if spent < required_seconds:
                return AccessDecision.deny(
                    AccessReason.QUIZ_TIME_NOT_MET,
                    required_minutes=lesson.minimum_time_required,
                    time_spent_seconds=spent,
                )

        return AccessService._previous_quiz_gate(actor, lesson) or decision
