# services/learning-service/src/apps/core/models/course.py
"""
Course Models

Courses, their ordered modules and the prerequisite edges between modules.
"""

from decimal import Decimal
from typing import Dict, Optional

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Q

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin


class Course(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """
    Course model.

    A course is sold either in full (`price`) or module by module
    (`module_price`). `total_students` counts distinct enrolled learners.
    """

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    created_by = models.UUIDField(
        db_index=True,
        help_text="Instructor who authored the course"
    )

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00')
    )
    module_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Price of a single module when bought separately"
    )
    image_key = models.CharField(max_length=500, blank=True)

    total_students = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'courses'
        ordering = ['title']

    def __str__(self):
        return self.title

    def is_creator(self, user_id) -> bool:
        return user_id is not None and str(self.created_by) == str(user_id)


class Module(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """
    Course module.

    `order` is unique among the course's non-deleted modules. The
    prerequisite relation points from a module to the modules it requires and
    must stay acyclic within a course.
    """

    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='modules'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    order = models.PositiveIntegerField()
    is_accessible = models.BooleanField(default=True)
    image_key = models.CharField(max_length=500, blank=True)

    prerequisites = models.ManyToManyField(
        'self',
        symmetrical=False,
        related_name='required_by',
        blank=True
    )

    class Meta:
        db_table = 'course_modules'
        ordering = ['order']
        indexes = [
            models.Index(fields=['course', 'order']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['course', 'order'],
                condition=Q(is_deleted=False),
                name='unique_active_module_order'
            ),
        ]

    def __str__(self):
        return f"{self.order}. {self.title}"

    def get_required_completions(self) -> Dict[str, float]:
        """Map of prerequisite module id to the completion percent it requires."""
        default = float(settings.LEARNING_ENGINE['DEFAULT_REQUIRED_COMPLETION'])
        thresholds = {str(p.id): default for p in self.prerequisites.all()}
        for dependency in self.dependencies.all():
            key = str(dependency.required_module_id)
            if key in thresholds:
                thresholds[key] = float(dependency.required_completion)
        return thresholds

    def get_required_completion(self, prerequisite_id) -> Optional[float]:
        return self.get_required_completions().get(str(prerequisite_id))


class ModuleDependency(UUIDPrimaryKeyMixin):
    """
    Completion bar for one prerequisite edge.

    A prerequisite without a dependency row requires full completion.
    """

    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='dependencies'
    )
    required_module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='+'
    )
    required_completion = models.FloatField(
        default=100.0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )

    class Meta:
        db_table = 'course_module_dependencies'
        constraints = [
            models.UniqueConstraint(
                fields=['module', 'required_module'],
                name='unique_module_dependency'
            ),
        ]

    def __str__(self):
        return f"{self.module_id} requires {self.required_module_id} at {self.required_completion}%"
