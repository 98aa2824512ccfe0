# services/learning-service/src/apps/core/models/progress.py
"""
Progress Models

Per-module completion state and the time-on-lesson counter.
"""

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin

from .course import Course, Module
from .lesson import Lesson
from .quiz import Quiz


class ModuleProgress(UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Completion state of one module for one user.

    `progress` is derived from the completed lesson set and recomputed on
    every completion event.
    """

    user_id = models.UUIDField(db_index=True)
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='+'
    )
    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='progress_records'
    )

    completed_lessons = models.ManyToManyField(
        Lesson,
        related_name='+',
        blank=True
    )
    completed_quizzes = models.ManyToManyField(
        Quiz,
        related_name='+',
        blank=True
    )
    progress = models.FloatField(
        default=0.0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    last_accessed = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'module_progress'
        verbose_name_plural = 'module progress'
        constraints = [
            models.UniqueConstraint(
                fields=['user_id', 'course', 'module'],
                name='unique_module_progress'
            ),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.module_id}: {self.progress:.1f}%"


class LessonProgress(UUIDPrimaryKeyMixin, TimestampMixin):
    """Seconds a user has spent on a lesson."""

    user_id = models.UUIDField(db_index=True)
    lesson = models.ForeignKey(
        Lesson,
        on_delete=models.CASCADE,
        related_name='+'
    )
    time_spent = models.PositiveIntegerField(default=0)
    last_accessed = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'lesson_progress'
        constraints = [
            models.UniqueConstraint(
                fields=['user_id', 'lesson'],
                name='unique_lesson_progress'
            ),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.lesson_id}: {self.time_spent}s"
