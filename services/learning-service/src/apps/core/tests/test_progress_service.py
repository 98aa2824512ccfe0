# services/learning-service/src/apps/core/tests/test_progress_service.py
"""
Progress Service Tests

Tests for module completion tracking.
"""

import pytest
from unittest.mock import patch

from apps.core.models import ModuleProgress
from apps.core.services import AccessDeniedError, InvalidRequestError, NotFoundError, ProgressService


@pytest.mark.django_db
class TestProgressService:
    """Tests for ProgressService."""

    def test_progress_without_record(self, course, module, learner_id):
        state = ProgressService.get_module_progress(learner_id, course.id, module.id)

        assert state['progress'] == 0.0
        assert state['completed_lessons'] == set()
        assert state['last_accessed'] is None

    def test_lesson_completion_updates_percentage(self, course, module, make_lesson, learner_id):
        lessons = [make_lesson(module, order) for order in range(1, 4)]

        progress = ProgressService.record_lesson_complete(learner_id, course.id, module.id, lessons[0].id)

        assert progress.progress == pytest.approx(100 / 3)
        assert progress.last_accessed is not None

    def test_percentage_is_not_rounded(self, course, module, make_lesson, learner_id):
        lessons = [make_lesson(module, order) for order in range(1, 4)]
        for lesson in lessons[:2]:
            ProgressService.record_lesson_complete(learner_id, course.id, module.id, lesson.id)

        state = ProgressService.get_module_progress(learner_id, course.id, module.id)
        assert state['progress'] == 2 / 3 * 100

    def test_completing_twice_is_idempotent(self, course, module, make_lesson, learner_id):
        first = make_lesson(module, 1)
        make_lesson(module, 2)

        ProgressService.record_lesson_complete(learner_id, course.id, module.id, first.id)
        progress = ProgressService.record_lesson_complete(learner_id, course.id, module.id, first.id)

        assert progress.progress == 50.0
        assert ModuleProgress.objects.filter(user_id=learner_id, module=module).count() == 1

    def test_deleted_lessons_leave_the_denominator(self, course, module, make_lesson, learner_id):
        first = make_lesson(module, 1)
        second = make_lesson(module, 2)
        ProgressService.record_lesson_complete(learner_id, course.id, module.id, first.id)

        second.soft_delete()
        progress = ProgressService.record_lesson_complete(learner_id, course.id, module.id, first.id)

        assert progress.progress == 100.0

    def test_unknown_lesson(self, course, module, learner_id):
        from uuid import uuid4

        with pytest.raises(NotFoundError):
            ProgressService.record_lesson_complete(learner_id, course.id, module.id, uuid4())

    def test_quiz_gated_lesson_needs_a_pass(self, course, module, make_lesson, make_quiz, learner_id):
        lesson = make_lesson(module, 1, requires_quiz_pass=True)
        make_quiz(lesson)

        with pytest.raises(AccessDeniedError) as exc_info:
            ProgressService.record_lesson_complete(learner_id, course.id, module.id, lesson.id)

        assert exc_info.value.reason == 'quiz_not_passed'

    def test_quiz_pass_completes_lesson(self, course, module, make_lesson, make_quiz, learner_id):
        lesson = make_lesson(module, 1)
        make_lesson(module, 2)
        quiz = make_quiz(lesson)

        progress = ProgressService.record_quiz_pass(
            learner_id, course.id, module.id, lesson.id, quiz.id
        )

        assert progress.progress == 50.0
        assert ProgressService.has_completed_quiz(learner_id, course.id, module.id, quiz.id)

    def test_quiz_pass_without_lesson_completion(self, course, module, lesson, make_quiz, learner_id):
        quiz = make_quiz(lesson)

        progress = ProgressService.record_quiz_pass(
            learner_id, course.id, module.id, lesson.id, quiz.id, complete_lesson=False
        )

        assert progress.progress == 0.0
        assert ProgressService.has_completed_quiz(learner_id, course.id, module.id, quiz.id)

    def test_remove_quiz_completion_keeps_lesson(self, course, module, lesson, make_quiz, learner_id):
        quiz = make_quiz(lesson)
        ProgressService.record_quiz_pass(learner_id, course.id, module.id, lesson.id, quiz.id)

        ProgressService.remove_quiz_completion(learner_id, course.id, module.id, quiz.id)

        state = ProgressService.get_module_progress(learner_id, course.id, module.id)
        assert state['completed_quizzes'] == set()
        assert state['completed_lessons'] == {str(lesson.id)}
        assert state['progress'] == 100.0

    def test_progress_event_published_after_commit(
        self, course, module, lesson, learner_id, django_capture_on_commit_callbacks
    ):
        with patch('apps.core.services.progress_service.publish_module_progress_updated') as publish:
            with django_capture_on_commit_callbacks(execute=False) as callbacks:
                ProgressService.record_lesson_complete(learner_id, course.id, module.id, lesson.id)

            publish.assert_not_called()
            for callback in callbacks:
                callback()

        publish.assert_called_once_with(
            user_id=learner_id,
            course_id=str(course.id),
            module_id=str(module.id),
            progress=100.0,
        )

    def test_module_without_lessons(self, course, module, learner_id):
        progress = ProgressService._get_locked(learner_id, course.id, module.id)

        assert ProgressService._recompute(progress) == 0.0


@pytest.mark.django_db
class TestLessonTime:
    """Tests for time-on-lesson tracking."""

    def test_time_accumulates(self, lesson, learner_id):
        ProgressService.track_lesson_time(learner_id, lesson.id, 90)
        total = ProgressService.track_lesson_time(learner_id, lesson.id, 45)

        assert total == 135
        assert ProgressService.get_time_spent(learner_id, lesson.id) == 135

    def test_untracked_lesson(self, lesson, learner_id):
        assert ProgressService.get_time_spent(learner_id, lesson.id) == 0

    def test_negative_time_rejected(self, lesson, learner_id):
        with pytest.raises(InvalidRequestError):
            ProgressService.track_lesson_time(learner_id, lesson.id, -5)


@pytest.mark.django_db
class TestCourseProgress:
    """Tests for course-wide progress."""

    def test_overall_is_module_average(self, course, make_module, make_lesson, learner_id):
        first = make_module(1)
        second = make_module(2)
        lesson = make_lesson(first, 1)
        make_lesson(second, 1)

        ProgressService.record_lesson_complete(learner_id, course.id, first.id, lesson.id)
        result = ProgressService.get_course_progress(learner_id, course.id)

        assert result['overall_progress'] == 50.0
        assert [m['progress'] for m in result['modules']] == [100.0, 0.0]
