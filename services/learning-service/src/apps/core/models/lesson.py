# services/learning-service/src/apps/core/models/lesson.py
"""
Lesson Model

Ordered lessons inside a module, with the quiz gating settings and
completion requirements attached to each lesson.
"""

from typing import Any, Dict, Optional

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin

from .course import Module


class QuizPlacement(models.TextChoices):
    """Where the quiz is shown relative to the lesson content."""
    BEFORE = 'before', 'Before Content'
    AFTER = 'after', 'After Content'
    ANY = 'any', 'Any Time'


class Lesson(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """
    Lesson model.

    Quiz settings and completion requirements are stored as columns rather
    than a nested document; `quiz_settings` and `completion_requirements`
    expose them in their grouped form.
    """

    module = models.ForeignKey(
        Module,
        on_delete=models.CASCADE,
        related_name='lessons'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    order = models.PositiveIntegerField()
    video_url = models.URLField(max_length=500, blank=True)
    content = models.TextField(blank=True)

    # Only completed once its quiz attempt passes
    requires_quiz_pass = models.BooleanField(default=False)

    # Quiz settings
    quiz_required = models.BooleanField(default=False)
    minimum_passing_score = models.FloatField(
        default=70.0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    allow_review = models.BooleanField(default=True)
    block_progress = models.BooleanField(
        default=True,
        help_text="Next lesson's quiz stays locked until this lesson's quiz is passed"
    )
    show_quiz_at = models.CharField(
        max_length=10,
        choices=QuizPlacement.choices,
        default=QuizPlacement.AFTER
    )
    minimum_time_required = models.PositiveIntegerField(
        default=0,
        help_text="Minutes on the lesson before its quiz may be attempted"
    )

    # Completion requirements
    watch_video = models.BooleanField(default=False)
    download_assets = models.JSONField(
        default=list,
        blank=True,
        help_text="[{'asset_id': str, 'required': bool}]"
    )
    minimum_time_spent = models.PositiveIntegerField(
        default=0,
        help_text="Minutes"
    )

    class Meta:
        db_table = 'course_lessons'
        ordering = ['order']
        indexes = [
            models.Index(fields=['module', 'order']),
        ]

    def __str__(self):
        return f"{self.order}. {self.title}"

    def get_quiz(self) -> Optional['Quiz']:
        """Active quiz attached to this lesson, if any."""
        return self.quizzes.first()

    def get_previous_lesson(self) -> Optional['Lesson']:
        """Closest active lesson with a lower order in the same module."""
        return (
            Lesson.objects
            .filter(module_id=self.module_id, order__lt=self.order)
            .order_by('-order')
            .first()
        )

    @property
    def quiz_settings(self) -> Dict[str, Any]:
        return {
            'required': self.quiz_required,
            'minimum_passing_score': self.minimum_passing_score,
            'allow_review': self.allow_review,
            'block_progress': self.block_progress,
            'show_quiz_at': self.show_quiz_at,
            'minimum_time_required': self.minimum_time_required,
        }

    @property
    def completion_requirements(self) -> Dict[str, Any]:
        return {
            'watch_video': self.watch_video,
            'download_assets': self.download_assets,
            'minimum_time_spent': self.minimum_time_spent,
        }

    def apply_quiz_defaults(self, passing_score: float) -> None:
        """Settings applied when a quiz is attached to the lesson."""
        self.quiz_required = True
        self.minimum_passing_score = passing_score
        self.allow_review = True
        self.block_progress = True
        self.show_quiz_at = QuizPlacement.AFTER
        self.minimum_time_required = 0

    def reset_quiz_settings(self) -> None:
        """Settings applied when the lesson's quiz is removed."""
        self.quiz_required = False
        self.requires_quiz_pass = False
        self.minimum_passing_score = 70.0
        self.allow_review = True
        self.block_progress = False
        self.show_quiz_at = QuizPlacement.AFTER
        self.minimum_time_required = 0
