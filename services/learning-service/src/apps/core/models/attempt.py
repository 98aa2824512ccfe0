# services/learning-service/src/apps/core/models/attempt.py
"""
Quiz Attempt Model

One timed, numbered attempt of a learner at a quiz.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from django.db import models
from django.db.models import Q
from django.utils import timezone

from shared.common.mixins import UUIDPrimaryKeyMixin, TimestampMixin

from .quiz import Quiz


class AttemptStatus(models.TextChoices):
    """Attempt status choices."""
    IN_PROGRESS = 'in_progress', 'In Progress'
    SUBMITTED = 'submitted', 'Submitted'
    GRADED = 'graded', 'Graded'


class QuizAttempt(UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Quiz attempt.

    The question set, each question's maximum marks and the attempt's total
    marks are frozen when the attempt starts or is submitted, so later edits
    to the quiz never change how a pending attempt is graded.

    Answer entries look like::

        {
            'question_id': str, 'question_type': 'mcq' | 'text',
            'question_text': str, 'max_marks': int,
            'selected_option': str | None, 'text_answer': str | None,
            'correct_option': str | None, 'is_correct': bool | None,
            'marks': int | None, 'feedback': str,
        }
    """

    quiz = models.ForeignKey(
        Quiz,
        on_delete=models.CASCADE,
        related_name='attempts'
    )
    user_id = models.UUIDField(db_index=True)
    attempt_number = models.PositiveIntegerField()

    question_set = models.JSONField(
        default=list,
        help_text="Question ids drawn for this attempt"
    )
    total_marks = models.PositiveIntegerField(
        default=0,
        help_text="Sum of marks of the drawn questions"
    )

    start_time = models.DateTimeField()
    submit_time = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=AttemptStatus.choices,
        default=AttemptStatus.IN_PROGRESS
    )

    answers = models.JSONField(default=list, blank=True)
    score = models.FloatField(null=True, blank=True)
    percentage = models.FloatField(null=True, blank=True)
    passed = models.BooleanField(null=True, blank=True)
    needs_manual_grading = models.BooleanField(default=False)

    graded_by = models.UUIDField(null=True, blank=True)
    graded_at = models.DateTimeField(null=True, blank=True)
    notification_viewed = models.BooleanField(default=False)

    class Meta:
        db_table = 'quiz_attempts'
        ordering = ['attempt_number']
        indexes = [
            models.Index(fields=['quiz', 'user_id']),
            models.Index(fields=['status']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['quiz', 'user_id', 'attempt_number'],
                name='unique_quiz_attempt_number'
            ),
            models.UniqueConstraint(
                fields=['quiz', 'user_id'],
                condition=Q(status='in_progress'),
                name='single_live_quiz_attempt'
            ),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.quiz_id} #{self.attempt_number}"

    @property
    def deadline(self) -> datetime:
        return self.start_time + self.quiz.time_limit

    @property
    def is_live(self) -> bool:
        return self.status == AttemptStatus.IN_PROGRESS

    @property
    def is_completed(self) -> bool:
        return self.status in (AttemptStatus.SUBMITTED, AttemptStatus.GRADED)

    def is_expired(self, now: datetime = None) -> bool:
        """True once more than the quiz time has elapsed since start."""
        now = now or timezone.now()
        return now - self.start_time > self.quiz.time_limit

    def contains_question(self, question_id) -> bool:
        return str(question_id) in {str(q) for q in self.question_set}

    def expire(self) -> None:
        """Close an abandoned attempt with zero score."""
        self.status = AttemptStatus.SUBMITTED
        self.submit_time = self.deadline
        self.score = 0
        self.percentage = 0
        self.passed = False
        self.save(update_fields=[
            'status', 'submit_time', 'score', 'percentage', 'passed', 'updated_at'
        ])

    def awarded_marks(self) -> float:
        return float(sum(a.get('marks') or 0 for a in self.answers))

    def summary(self) -> Dict[str, Any]:
        return {
            'attempt_id': str(self.id),
            'attempt_number': self.attempt_number,
            'status': self.status,
            'start_time': self.start_time,
            'submit_time': self.submit_time,
            'score': self.score,
            'percentage': self.percentage,
            'passed': self.passed,
            'needs_manual_grading': self.needs_manual_grading,
        }

    def answer_views(self, include_correct: bool) -> List[Dict[str, Any]]:
        """Stored answers, optionally stripped of correct-answer data."""
        views = []
        for answer in self.answers:
            view = {
                'question_id': answer.get('question_id'),
                'question': answer.get('question_text'),
                'question_type': answer.get('question_type'),
                'marks': answer.get('marks'),
                'max_marks': answer.get('max_marks'),
                'selected_option': answer.get('selected_option'),
                'text_answer': answer.get('text_answer'),
                'feedback': answer.get('feedback', ''),
            }
            if include_correct and answer.get('question_type') == 'mcq':
                view['correct_option'] = answer.get('correct_option')
                view['is_correct'] = answer.get('is_correct')
            views.append(view)
        return views

    def find_answer(self, question_id) -> Optional[Dict[str, Any]]:
        for answer in self.answers:
            if answer.get('question_id') == str(question_id):
                return answer
        return None
