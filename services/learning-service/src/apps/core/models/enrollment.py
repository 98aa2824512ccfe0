# services/learning-service/src/apps/core/models/enrollment.py
"""
Enrollment Models

A learner's purchased access to a course, either the whole course or a set
of modules.
"""

from dataclasses import dataclass
from typing import FrozenSet, Union

from django.db import models
from django.utils import timezone

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin

from .course import Course, Module


class EnrollmentType(models.TextChoices):
    """Enrollment type choices."""
    FULL = 'full', 'Full Course'
    MODULE = 'module', 'Individual Modules'


@dataclass(frozen=True)
class FullAccess:
    """Access to every module of the course."""


@dataclass(frozen=True)
class ModuleAccess:
    """Access to the listed modules only."""
    module_ids: FrozenSet[str]

    def __post_init__(self):
        object.__setattr__(self, 'module_ids', frozenset(str(m) for m in self.module_ids))

    def includes(self, module_id) -> bool:
        return str(module_id) in self.module_ids


EnrollmentScope = Union[FullAccess, ModuleAccess]


class Enrollment(UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Enrollment of one user in one course.

    A full enrollment never has module rows; upgrading to full removes them.
    """

    user_id = models.UUIDField(db_index=True)
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    enrollment_type = models.CharField(
        max_length=10,
        choices=EnrollmentType.choices
    )
    enrolled_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'course_enrollments'
        constraints = [
            models.UniqueConstraint(
                fields=['user_id', 'course'],
                name='unique_course_enrollment'
            ),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.course_id} ({self.enrollment_type})"

    @property
    def scope(self) -> EnrollmentScope:
        if self.enrollment_type == EnrollmentType.FULL:
            return FullAccess()
        return ModuleAccess(frozenset(
            str(module_id)
            for module_id in self.enrolled_modules.values_list('module_id', flat=True)
        ))


class EnrolledModule(UUIDPrimaryKeyMixin):
    """Module bought separately under a module enrollment."""

    enrollment = models.ForeignKey(
        Enrollment,
        on_delete=models.CASCADE,
        related_name='enrolled_modules'
    )
    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='+'
    )
    enrolled_at = models.DateTimeField(default=timezone.now)
    last_accessed = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'course_enrolled_modules'
        constraints = [
            models.UniqueConstraint(
                fields=['enrollment', 'module'],
                name='unique_enrolled_module'
            ),
        ]

    def __str__(self):
        return f"{self.enrollment_id} - {self.module_id}"
