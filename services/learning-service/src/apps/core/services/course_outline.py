# services/learning-service/src/apps/core/services/course_outline.py
"""
Course Outline

Read model of a course for one caller: modules with their access decision
and progress, lessons, and a quiz summary per lesson.
"""

import logging
from typing import Any, Dict, List, Optional

from django.core.files.storage import default_storage
from django.db.models import Prefetch

from ..models import Lesson, Module, Quiz
from .access_service import AccessDecision, AccessService, Actor
from .enrollment_service import EnrollmentService
from .progress_service import ProgressService

logger = logging.getLogger(__name__)


def _image_url(key: str) -> Optional[str]:
    if not key:
        return None
    try:
        return default_storage.url(key)
    except Exception as e:
        logger.warning(f"Could not resolve URL for stored file {key}: {e}")
        return None


class CourseOutlineBuilder:
    """Builds the course outline shown to learners and staff."""

    @staticmethod
    def build(actor: Actor, course_id: str) -> Dict[str, Any]:
        """
        Outline of a course as the caller may see it.

        Lessons of modules the caller cannot open keep their titles but lose
        video, content and quiz details. Staff also receive question banks.

        Args:
            actor: Caller
            course_id: Course ID

        Returns:
            Course dict with nested modules, lessons and quizzes
        """
        course = AccessService.get_course(course_id)
        modules = list(
            Module.objects
            .filter(course=course)
            .select_related('course')
            .prefetch_related(
                'prerequisites',
                Prefetch('lessons', queryset=Lesson.objects.order_by('order')),
                Prefetch('lessons__quizzes', queryset=Quiz.objects.prefetch_related('questions')),
            )
            .order_by('order')
        )
        decisions = AccessService.decide_modules(actor, modules)
        enrollment = EnrollmentService.get_enrollment(actor.user_id, course.id)

        return {
            'id': str(course.id),
            'title': course.title,
            'description': course.description,
            'image_url': _image_url(course.image_key),
            'price': str(course.price),
            'module_price': str(course.module_price),
            'total_students': course.total_students,
            'is_creator': course.is_creator(actor.user_id),
            'enrollment_type': enrollment.enrollment_type if enrollment else None,
            'modules': [
                CourseOutlineBuilder._module(actor, module, decisions[str(module.id)])
                for module in modules
            ],
        }

    @staticmethod
    def _module(actor: Actor, module: Module, decision: AccessDecision) -> Dict[str, Any]:
        progress = None
        if actor.user_id:
            progress = ProgressService.get_module_progress(actor.user_id, module.course_id, module.id)

        return {
            'id': str(module.id),
            'title': module.title,
            'description': module.description,
            'order': module.order,
            'is_accessible': module.is_accessible,
            'image_url': _image_url(module.image_key),
            'prerequisites': [str(p.id) for p in module.prerequisites.all()],
            'access': decision.to_dict(),
            'progress': progress['progress'] if progress else 0.0,
            'lessons': [
                CourseOutlineBuilder._lesson(actor, lesson, decision.allowed, progress)
                for lesson in module.lessons.all()
            ],
        }

    @staticmethod
    def _lesson(
        actor: Actor,
        lesson: Lesson,
        unlocked: bool,
        progress: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        completed_lessons = progress['completed_lessons'] if progress else set()
        completed_quizzes = progress['completed_quizzes'] if progress else set()
        quizzes = list(lesson.quizzes.all())
        quiz = quizzes[0] if quizzes else None

        data = {
            'id': str(lesson.id),
            'title': lesson.title,
            'order': lesson.order,
            'is_completed': str(lesson.id) in completed_lessons,
            'has_quiz': quiz is not None,
            'locked': not unlocked,
        }
        if not unlocked:
            return data

        data.update({
            'description': lesson.description,
            'video_url': lesson.video_url,
            'content': lesson.content,
            'requires_quiz_pass': lesson.requires_quiz_pass,
            'quiz_settings': lesson.quiz_settings,
            'completion_requirements': lesson.completion_requirements,
        })

        if quiz is not None:
            questions = list(quiz.questions.all())
            data['quiz'] = {
                'id': str(quiz.id),
                'title': quiz.title,
                'quiz_time': quiz.quiz_time,
                'passing_score': quiz.passing_score,
                'max_attempts': quiz.max_attempts,
                'question_count': min(len(questions), quiz.question_pool_size or len(questions)),
                'is_completed': str(quiz.id) in completed_quizzes,
            }
            if actor.is_staff:
                data['quiz']['total_marks'] = quiz.total_marks
                data['quiz']['question_pool_size'] = quiz.question_pool_size
                data['quiz']['questions'] = [q.to_staff_dict() for q in questions]

        return data

    @staticmethod
    def describe_module_access(actor: Actor, course_id: str, module_id: str) -> Dict[str, Any]:
        """
        Enrollment status of one module for the caller.

        Returns:
            Dict with has_access, reason, prerequisite statuses and progress
        """
        module = AccessService.get_module(course_id, module_id)
        decision = AccessService.can_access_module(actor, course_id, module_id)

        prerequisites: List[Dict[str, Any]] = []
        progress = 0.0
        if actor.user_id:
            prerequisites = AccessService.check_prerequisites(actor.user_id, module)
            progress = ProgressService.get_module_progress(actor.user_id, course_id, module_id)['progress']

        return {
            'module_id': str(module.id),
            'has_access': decision.allowed,
            'reason': decision.reason,
            'details': decision.details,
            'prerequisites': prerequisites,
            'progress': progress,
        }
