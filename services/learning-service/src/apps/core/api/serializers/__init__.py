# services/learning-service/src/apps/core/api/serializers/__init__.py
"""
Learning Service API Serializers

Serializers for REST API endpoints.
"""

from .course_serializers import (
    ModuleSerializer,
    ModuleCreateSerializer,
    ModuleUpdateSerializer,
    PrerequisitesSerializer,
    ModuleReorderSerializer,
    LessonTimeSerializer,
)
from .quiz_serializers import (
    QuizSerializer,
    QuizCreateSerializer,
    QuizUpdateSerializer,
    AttemptSubmitSerializer,
    AttemptGradeSerializer,
    QuizResetSerializer,
    QuizAttemptSerializer,
)
from .enrollment_serializers import (
    EnrollmentSerializer,
    EnrollmentGrantSerializer,
    EnrollmentRevokeSerializer,
)

__all__ = [
    # Course
    'ModuleSerializer',
    'ModuleCreateSerializer',
    'ModuleUpdateSerializer',
    'PrerequisitesSerializer',
    'ModuleReorderSerializer',
    'LessonTimeSerializer',
    # Quiz
    'QuizSerializer',
    'QuizCreateSerializer',
    'QuizUpdateSerializer',
    'AttemptSubmitSerializer',
    'AttemptGradeSerializer',
    'QuizResetSerializer',
    'QuizAttemptSerializer',
    # Enrollment
    'EnrollmentSerializer',
    'EnrollmentGrantSerializer',
    'EnrollmentRevokeSerializer',
]
