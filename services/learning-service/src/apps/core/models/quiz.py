# services/learning-service/src/apps/core/models/quiz.py
"""
Quiz Models

Lesson quizzes and their question banks.
"""

import random
from datetime import timedelta
from typing import Any, Dict, List, Optional

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin

from .lesson import Lesson


class QuestionType(models.TextChoices):
    """Question type choices."""
    MCQ = 'mcq', 'Multiple Choice'
    TEXT = 'text', 'Text / Essay'


class Quiz(UUIDPrimaryKeyMixin, TimestampMixin, SoftDeleteMixin):
    """
    Quiz attached to a lesson.

    `question_pool_size` of 0 means every attempt gets the whole bank;
    otherwise each attempt draws that many questions at random.
    """

    lesson = models.ForeignKey(
        Lesson,
        on_delete=models.CASCADE,
        related_name='quizzes'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    quiz_time = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        help_text="Time limit in minutes"
    )
    passing_score = models.FloatField(
        default=50.0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    max_attempts = models.PositiveIntegerField(
        default=3,
        validators=[MinValueValidator(1)]
    )
    question_pool_size = models.PositiveIntegerField(default=0)
    total_marks = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'lesson_quizzes'
        verbose_name_plural = 'quizzes'

    def __str__(self):
        return self.title

    @property
    def time_limit(self) -> timedelta:
        return timedelta(minutes=self.quiz_time)

    def recalculate_total_marks(self, save: bool = True) -> int:
        """Recompute total marks from the question bank."""
        self.total_marks = sum(q.marks for q in self.questions.all())
        if save:
            self.save(update_fields=['total_marks', 'updated_at'])
        return self.total_marks

    def select_questions(self, rng: Optional[random.Random] = None) -> List['Question']:
        """
        Draw the question set for a new attempt.

        Uses the whole bank when the pool size is 0 or not smaller than the
        bank, otherwise a uniform sample without replacement.
        """
        questions = list(self.questions.all())
        pool_size = self.question_pool_size
        if pool_size == 0 or pool_size >= len(questions):
            return questions

        rng = rng or random
        chosen = rng.sample(questions, pool_size)
        return sorted(chosen, key=lambda q: q.order)


class Question(UUIDPrimaryKeyMixin):
    """
    Quiz question.

    For mcq questions `options` holds `[{'option': 'B', 'is_correct': True}, ...]`
    with exactly one correct option.
    """

    quiz = models.ForeignKey(
        Quiz,
        on_delete=models.CASCADE,
        related_name='questions'
    )
    text = models.TextField()
    question_type = models.CharField(
        max_length=10,
        choices=QuestionType.choices,
        default=QuestionType.MCQ
    )
    marks = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)]
    )
    options = models.JSONField(default=list, blank=True)
    order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'quiz_questions'
        ordering = ['order']

    def __str__(self):
        return self.text[:50]

    @property
    def is_mcq(self) -> bool:
        return self.question_type == QuestionType.MCQ

    @property
    def correct_option(self) -> Optional[str]:
        for option in self.options:
            if option.get('is_correct'):
                return option.get('option')
        return None

    def is_correct_answer(self, selected_option: Optional[str]) -> bool:
        return selected_option is not None and selected_option == self.correct_option

    def to_learner_dict(self) -> Dict[str, Any]:
        """Question as shown during an attempt, without answer data."""
        data = {
            'id': str(self.id),
            'text': self.text,
            'question_type': self.question_type,
            'marks': self.marks,
        }
        if self.is_mcq:
            data['options'] = [{'option': o.get('option')} for o in self.options]
        return data

    def to_staff_dict(self) -> Dict[str, Any]:
        data = self.to_learner_dict()
        if self.is_mcq:
            data['options'] = [
                {'option': o.get('option'), 'is_correct': bool(o.get('is_correct'))}
                for o in self.options
            ]
        return data
