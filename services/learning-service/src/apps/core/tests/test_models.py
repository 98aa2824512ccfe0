# services/learning-service/src/apps/core/tests/test_models.py
"""
Learning Service Model Tests

Tests for model helpers.
"""

import random
import pytest
from datetime import timedelta

from django.utils import timezone

from apps.core.models import (
    AttemptStatus,
    FullAccess,
    ModuleAccess,
    Module,
    QuizAttempt,
)


class TestEnrollmentScope:
    """Tests for the enrollment scope variants."""

    def test_module_access_normalizes_ids(self):
        from uuid import UUID

        module_id = UUID('12345678-1234-5678-1234-567812345678')
        scope = ModuleAccess(frozenset([module_id]))

        assert scope.includes(str(module_id))
        assert scope.includes(module_id)
        assert not scope.includes('other')

    def test_full_access_equality(self):
        assert FullAccess() == FullAccess()


@pytest.mark.django_db
class TestModule:
    """Tests for Module."""

    def test_soft_deleted_modules_hidden(self, module):
        module.soft_delete()

        assert not Module.objects.filter(pk=module.pk).exists()
        assert Module.objects.include_deleted().filter(pk=module.pk).exists()
        assert Module.objects.include_deleted().deleted().count() == 1

    def test_restore(self, module):
        module.soft_delete()
        module.restore()

        assert Module.objects.filter(pk=module.pk).exists()


@pytest.mark.django_db
class TestLesson:
    """Tests for Lesson."""

    def test_previous_lesson(self, module, make_lesson):
        first = make_lesson(module, 1)
        second = make_lesson(module, 3)

        assert second.get_previous_lesson() == first
        assert first.get_previous_lesson() is None

    def test_quiz_settings_reset(self, lesson):
        lesson.apply_quiz_defaults(65)
        assert lesson.quiz_settings['required'] is True
        assert lesson.quiz_settings['minimum_passing_score'] == 65

        lesson.reset_quiz_settings()
        assert lesson.quiz_settings['required'] is False


@pytest.mark.django_db
class TestQuiz:
    """Tests for Quiz and Question."""

    def test_whole_bank_without_pool(self, lesson, make_quiz):
        quiz = make_quiz(lesson, questions=[('mcq', 1), ('text', 2), ('mcq', 3)])

        assert [q.marks for q in quiz.select_questions()] == [1, 2, 3]
        assert quiz.total_marks == 6

    def test_pool_sample_keeps_bank_order(self, lesson, make_quiz):
        quiz = make_quiz(lesson, questions=[('mcq', m) for m in range(1, 7)], question_pool_size=4)

        chosen = quiz.select_questions(random.Random(3))

        assert len(chosen) == 4
        assert [q.order for q in chosen] == sorted(q.order for q in chosen)

    def test_learner_view_hides_answers(self, lesson, make_quiz):
        question = make_quiz(lesson).questions.first()

        assert question.to_learner_dict()['options'] == [{'option': 'A'}, {'option': 'B'}]
        assert question.to_staff_dict()['options'][0]['is_correct'] is True
        assert question.is_correct_answer('A')
        assert not question.is_correct_answer(None)


@pytest.mark.django_db
class TestQuizAttempt:
    """Tests for QuizAttempt."""

    def test_expiry_is_strict(self, lesson, make_quiz, learner_id):
        quiz = make_quiz(lesson, quiz_time=10)
        started = timezone.now() - timedelta(minutes=30)
        attempt = QuizAttempt.objects.create(
            quiz=quiz, user_id=learner_id, attempt_number=1, start_time=started
        )

        assert attempt.is_expired(started + timedelta(minutes=10)) is False
        assert attempt.is_expired(started + timedelta(minutes=10, seconds=1)) is True

    def test_expire_closes_with_zero(self, lesson, make_quiz, learner_id):
        quiz = make_quiz(lesson, quiz_time=10)
        attempt = QuizAttempt.objects.create(
            quiz=quiz, user_id=learner_id, attempt_number=1,
            start_time=timezone.now() - timedelta(minutes=30),
        )

        attempt.expire()
        attempt.refresh_from_db()

        assert attempt.status == AttemptStatus.SUBMITTED
        assert attempt.submit_time == attempt.start_time + timedelta(minutes=10)
        assert attempt.passed is False

    def test_answer_views_strip_correct_option(self, lesson, make_quiz, learner_id):
        quiz = make_quiz(lesson)
        attempt = QuizAttempt(
            quiz=quiz,
            user_id=learner_id,
            attempt_number=1,
            start_time=timezone.now(),
            answers=[{
                'question_id': 'q1', 'question_type': 'mcq', 'question_text': 'Q',
                'max_marks': 1, 'selected_option': 'B', 'text_answer': None,
                'correct_option': 'A', 'is_correct': False, 'marks': 0, 'feedback': '',
            }],
        )

        assert 'correct_option' not in attempt.answer_views(include_correct=False)[0]
        assert attempt.answer_views(include_correct=True)[0]['correct_option'] == 'A'
        assert attempt.awarded_marks() == 0.0
