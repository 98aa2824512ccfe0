# services/learning-service/src/apps/core/api/views/__init__.py
"""
Learning Service API Views

ViewSets for REST API endpoints.
"""

from .course_views import CourseViewSet, ModuleViewSet
from .lesson_views import LessonViewSet
from .attempt_views import QuizAttemptViewSet
from .enrollment_views import EnrollmentViewSet

__all__ = [
    'CourseViewSet',
    'ModuleViewSet',
    'LessonViewSet',
    'QuizAttemptViewSet',
    'EnrollmentViewSet',
]
