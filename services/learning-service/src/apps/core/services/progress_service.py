# services/learning-service/src/apps/core/services/progress_service.py
"""
Progress Service

Per-(user, course, module) completion state. Every write locks the progress
row and runs in the caller's transaction, so a rolled back quiz pass never
leaves a completion behind.
"""

import logging
from typing import Any, Dict, List, Optional

from django.db.models import F
from django.utils import timezone

from ..models import Lesson, LessonProgress, Module, ModuleProgress, Quiz
from ..events.publishers import publish_module_progress_updated
from .exceptions import AccessDeniedError, AccessReason, InvalidRequestError, NotFoundError
from .unit_of_work import after_commit, unit_of_work

logger = logging.getLogger(__name__)


class ProgressService:
    """Service for recording and reading learner progress."""

    # =========================================================================
    # COMPLETION EVENTS
    # =========================================================================

    @staticmethod
    def _get_locked(user_id: str, course_id: str, module_id: str) -> ModuleProgress:
        progress, created = ModuleProgress.objects.select_for_update().get_or_create(
            user_id=user_id,
            course_id=course_id,
            module_id=module_id,
        )
        if created:
            logger.info(f"Created progress record for user {user_id} in module {module_id}")
        return progress

    @staticmethod
    def _recompute(progress: ModuleProgress) -> float:
        total = Lesson.objects.filter(module_id=progress.module_id).count()
        if total == 0:
            return 0.0
        completed = progress.completed_lessons.count()
        return min(100.0, completed / total * 100)

    @staticmethod
    def _save(progress: ModuleProgress) -> ModuleProgress:
        previous = progress.progress
        progress.progress = ProgressService._recompute(progress)
        progress.last_accessed = timezone.now()
        progress.save(update_fields=['progress', 'last_accessed', 'updated_at'])

        if progress.progress != previous:
            after_commit(
                publish_module_progress_updated,
                user_id=str(progress.user_id),
                course_id=str(progress.course_id),
                module_id=str(progress.module_id),
                progress=progress.progress,
            )
        return progress

    @staticmethod
    def _get_lesson(course_id: str, module_id: str, lesson_id: str) -> Lesson:
        lesson = Lesson.objects.filter(
            id=lesson_id,
            module_id=module_id,
            module__course_id=course_id,
            module__is_deleted=False,
        ).first()
        if not lesson:
            raise NotFoundError('lesson', lesson_id)
        return lesson

    @staticmethod
    @unit_of_work
    def record_lesson_complete(
        user_id: str,
        course_id: str,
        module_id: str,
        lesson_id: str,
    ) -> ModuleProgress:
        """
        Mark a lesson complete from a lesson-view event.

        Lessons flagged `requires_quiz_pass` only complete through a passing
        quiz attempt.

        Args:
            user_id: Learner ID
            course_id: Course ID
            module_id: Module ID
            lesson_id: Lesson ID

        Returns:
            Updated progress record
        """
        lesson = ProgressService._get_lesson(course_id, module_id, lesson_id)
        progress = ProgressService._get_locked(user_id, course_id, module_id)

        if lesson.requires_quiz_pass:
            quiz = lesson.get_quiz()
            if quiz and not progress.completed_quizzes.filter(id=quiz.id).exists():
                raise AccessDeniedError(
                    AccessReason.QUIZ_NOT_PASSED,
                    message="This lesson is completed by passing its quiz",
                    details={'lesson_id': str(lesson_id), 'quiz_id': str(quiz.id)}
                )

        progress.completed_lessons.add(lesson)
        return ProgressService._save(progress)

    @staticmethod
    @unit_of_work
    def record_quiz_pass(
        user_id: str,
        course_id: str,
        module_id: str,
        lesson_id: str,
        quiz_id: str,
        complete_lesson: bool = True,
    ) -> ModuleProgress:
        """
        Record a passed quiz and, optionally, complete its lesson.

        Args:
            user_id: Learner ID
            course_id: Course ID
            module_id: Module ID
            lesson_id: Lesson the quiz belongs to
            quiz_id: Passed quiz
            complete_lesson: Also add the lesson to the completed set

        Returns:
            Updated progress record
        """
        lesson = ProgressService._get_lesson(course_id, module_id, lesson_id)
        progress = ProgressService._get_locked(user_id, course_id, module_id)

        progress.completed_quizzes.add(quiz_id)
        if complete_lesson:
            progress.completed_lessons.add(lesson)

        logger.info(f"User {user_id} passed quiz {quiz_id} in module {module_id}")
        return ProgressService._save(progress)

    @staticmethod
    @unit_of_work
    def remove_quiz_completion(
        user_id: str,
        course_id: str,
        module_id: str,
        quiz_id: str,
    ) -> None:
        """Pull a quiz out of the completed set (attempt reset)."""
        progress = ModuleProgress.objects.select_for_update().filter(
            user_id=user_id,
            course_id=course_id,
            module_id=module_id,
        ).first()
        if not progress:
            return

        progress.completed_quizzes.remove(quiz_id)
        ProgressService._save(progress)

    # =========================================================================
    # TIME ON LESSON
    # =========================================================================

    @staticmethod
    @unit_of_work
    def track_lesson_time(user_id: str, lesson_id: str, seconds: int) -> int:
        """
        Add seconds to the user's time-on-lesson counter.

        Returns:
            Total seconds recorded for the lesson
        """
        if seconds is None or int(seconds) < 0:
            raise InvalidRequestError("Time spent must be a positive number of seconds", field='seconds')

        if not Lesson.objects.filter(id=lesson_id).exists():
            raise NotFoundError('lesson', lesson_id)

        record, _ = LessonProgress.objects.select_for_update().get_or_create(
            user_id=user_id,
            lesson_id=lesson_id,
        )
        LessonProgress.objects.filter(pk=record.pk).update(
            time_spent=F('time_spent') + int(seconds),
            last_accessed=timezone.now(),
        )
        record.refresh_from_db(fields=['time_spent', 'last_accessed'])
        return record.time_spent

    @staticmethod
    def get_time_spent(user_id: str, lesson_id: str) -> int:
        """Seconds the user has spent on the lesson (0 if never tracked)."""
        return (
            LessonProgress.objects
            .filter(user_id=user_id, lesson_id=lesson_id)
            .values_list('time_spent', flat=True)
            .first()
        ) or 0

    # =========================================================================
    # READS
    # =========================================================================

    @staticmethod
    def get_module_progress(user_id: str, course_id: str, module_id: str) -> Dict[str, Any]:
        """
        Completion state of a module for a user.

        Returns:
            Dict with completed_lessons, completed_quizzes (id sets),
            progress (percent) and last_accessed
        """
        progress = ModuleProgress.objects.filter(
            user_id=user_id,
            course_id=course_id,
            module_id=module_id,
        ).first()

        if not progress:
            return {
                'completed_lessons': set(),
                'completed_quizzes': set(),
                'progress': 0.0,
                'last_accessed': None,
            }

        return {
            'completed_lessons': {str(i) for i in progress.completed_lessons.values_list('id', flat=True)},
            'completed_quizzes': {str(i) for i in progress.completed_quizzes.values_list('id', flat=True)},
            'progress': progress.progress,
            'last_accessed': progress.last_accessed,
        }

    @staticmethod
    def has_completed_quiz(user_id: str, course_id: str, module_id: str, quiz_id: str) -> bool:
        return ModuleProgress.objects.filter(
            user_id=user_id,
            course_id=course_id,
            module_id=module_id,
            completed_quizzes__id=quiz_id,
        ).exists()

    @staticmethod
    def get_course_progress(user_id: str, course_id: str) -> Dict[str, Any]:
        """
        Progress of every active module in a course plus the overall average.
        """
        modules: List[Dict[str, Any]] = []
        for module in Module.objects.filter(course_id=course_id).order_by('order'):
            state = ProgressService.get_module_progress(user_id, course_id, module.id)
            modules.append({
                'module_id': str(module.id),
                'title': module.title,
                'order': module.order,
                'progress': state['progress'],
                'completed_lessons': len(state['completed_lessons']),
                'completed_quizzes': len(state['completed_quizzes']),
                'last_accessed': state['last_accessed'],
            })

        overall = sum(m['progress'] for m in modules) / len(modules) if modules else 0.0
        return {
            'course_id': str(course_id),
            'overall_progress': overall,
            'modules': modules,
        }
