# services/learning-service/src/apps/core/services/enrollment_service.py
"""
Enrollment Service

Enrollment lifecycle driven by the payment subsystem: creation on purchase,
upgrade to full access, revocation on refund.
"""

import logging
from typing import Iterable, List, Optional

from django.db.models import F
from django.db.models.functions import Greatest

from ..models import (
    Course,
    EnrolledModule,
    Enrollment,
    EnrollmentScope,
    EnrollmentType,
    FullAccess,
    Module,
    ModuleAccess,
)
from ..events.publishers import publish_enrollment_granted, publish_enrollment_revoked
from .exceptions import InvalidRequestError, NotFoundError, StateConflictError
from .unit_of_work import after_commit, unit_of_work

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Service for managing course enrollments."""

    @staticmethod
    def get_enrollment(user_id: Optional[str], course_id: str) -> Optional[Enrollment]:
        """The user's enrollment in a course, or None."""
        if not user_id:
            return None
        return (
            Enrollment.objects
            .filter(user_id=user_id, course_id=course_id)
            .prefetch_related('enrolled_modules')
            .first()
        )

    @staticmethod
    def get_user_enrollments(user_id: str) -> List[Enrollment]:
        """
        Enrollments of a user in courses that still exist.

        Args:
            user_id: User ID

        Returns:
            Enrollments, newest first
        """
        return (
            Enrollment.objects
            .filter(user_id=user_id, course__is_deleted=False)
            .select_related('course')
            .prefetch_related('enrolled_modules')
            .order_by('-enrolled_at')
        )

    @staticmethod
    def has_learners(module: Module) -> bool:
        """Whether any learner holds access to the module."""
        full_enrollments = Enrollment.objects.filter(
            course_id=module.course_id,
            enrollment_type=EnrollmentType.FULL,
        )
        return full_enrollments.exists() or EnrolledModule.objects.filter(module=module).exists()

    @staticmethod
    def _validated_modules(course: Course, module_ids: Iterable[str]) -> List[Module]:
        wanted = list(dict.fromkeys(str(m) for m in module_ids))
        if not wanted:
            raise InvalidRequestError("At least one module is required", field='module_ids')

        modules = list(Module.objects.filter(course=course, id__in=wanted))
        if len(modules) != len(wanted):
            found = {str(m.id) for m in modules}
            raise InvalidRequestError(
                "One or more modules do not belong to this course",
                field='module_ids',
                details={'invalid': [m for m in wanted if m not in found]}
            )
        return modules

    @staticmethod
    @unit_of_work
    def grant_enrollment(user_id: str, course_id: str, scope: EnrollmentScope) -> Enrollment:
        """
        Grant access to a course after a confirmed purchase.

        Idempotent: modules already held are skipped, and a full enrollment
        already covers any module grant. Granting full access over a module
        enrollment upgrades it and drops the module rows.

        Args:
            user_id: Learner ID
            course_id: Course ID
            scope: FullAccess() or ModuleAccess(module_ids)

        Returns:
            The learner's enrollment
        """
        course = Course.objects.select_for_update().filter(id=course_id).first()
        if not course:
            raise NotFoundError('course', course_id)

        modules = []
        if isinstance(scope, ModuleAccess):
            modules = EnrollmentService._validated_modules(course, scope.module_ids)
        elif not isinstance(scope, FullAccess):
            raise InvalidRequestError("Unknown enrollment scope", field='scope')

        enrollment = (
            Enrollment.objects.select_for_update()
            .filter(user_id=user_id, course=course)
            .first()
        )

        if enrollment is None:
            enrollment = Enrollment.objects.create(
                user_id=user_id,
                course=course,
                enrollment_type=(
                    EnrollmentType.FULL if isinstance(scope, FullAccess) else EnrollmentType.MODULE
                ),
            )
            EnrolledModule.objects.bulk_create([
                EnrolledModule(enrollment=enrollment, module=module) for module in modules
            ])
            Course.objects.filter(pk=course.pk).update(total_students=F('total_students') + 1)
            logger.info(f"Enrolled user {user_id} in course {course_id} ({enrollment.enrollment_type})")
            added = [str(m.id) for m in modules]

        elif enrollment.enrollment_type == EnrollmentType.FULL:
            logger.info(f"User {user_id} already holds full access to course {course_id}")
            return enrollment

        elif isinstance(scope, FullAccess):
            enrollment.enrolled_modules.all().delete()
            enrollment.enrollment_type = EnrollmentType.FULL
            enrollment.save(update_fields=['enrollment_type', 'updated_at'])
            logger.info(f"Upgraded user {user_id} to full access in course {course_id}")
            added = []

        else:
            held = {str(m) for m in enrollment.enrolled_modules.values_list('module_id', flat=True)}
            new_modules = [m for m in modules if str(m.id) not in held]
            if not new_modules:
                return enrollment
            EnrolledModule.objects.bulk_create([
                EnrolledModule(enrollment=enrollment, module=module) for module in new_modules
            ])
            logger.info(f"Added {len(new_modules)} modules to user {user_id} in course {course_id}")
            added = [str(m.id) for m in new_modules]

        after_commit(
            publish_enrollment_granted,
            user_id=str(user_id),
            course_id=str(course_id),
            enrollment_type=enrollment.enrollment_type,
            module_ids=added,
        )
        return enrollment

    @staticmethod
    @unit_of_work
    def revoke_enrollment(
        user_id: str,
        course_id: str,
        module_ids: Optional[Iterable[str]] = None,
    ) -> Optional[Enrollment]:
        """
        Revoke access after a refund.

        Without `module_ids` the whole enrollment is removed. With
        `module_ids` only those modules are removed from a module
        enrollment; removing the last one removes the enrollment. Progress
        records are kept.

        Returns:
            The remaining enrollment, or None if nothing remains
        """
        enrollment = (
            Enrollment.objects.select_for_update()
            .filter(user_id=user_id, course_id=course_id)
            .first()
        )
        if enrollment is None:
            logger.info(f"No enrollment to revoke for user {user_id} in course {course_id}")
            return None

        removed_modules: List[str] = []
        if module_ids is not None:
            if enrollment.enrollment_type == EnrollmentType.FULL:
                raise StateConflictError(
                    "Individual modules cannot be revoked from a full enrollment",
                    details={'course_id': str(course_id)}
                )
            requested = list(dict.fromkeys(str(m) for m in module_ids))
            held = enrollment.enrolled_modules.filter(module_id__in=requested)
            removed_modules = [str(m) for m in held.values_list('module_id', flat=True)]
            held.delete()
            if enrollment.enrolled_modules.exists():
                if not removed_modules:
                    logger.info(f"No held modules to revoke for user {user_id} in course {course_id}")
                    return enrollment
                enrollment.save(update_fields=['updated_at'])
                after_commit(
                    publish_enrollment_revoked,
                    user_id=str(user_id),
                    course_id=str(course_id),
                    module_ids=removed_modules,
                )
                logger.info(f"Revoked {len(removed_modules)} modules for user {user_id} in course {course_id}")
                return enrollment

        enrollment.delete()
        Course.objects.filter(pk=course_id).update(
            total_students=Greatest(F('total_students') - 1, 0)
        )
        after_commit(
            publish_enrollment_revoked,
            user_id=str(user_id),
            course_id=str(course_id),
            module_ids=removed_modules,
        )
        logger.info(f"Revoked enrollment of user {user_id} in course {course_id}")
        return None

