# services/learning-service/src/apps/core/services/__init__.py
"""
Learning Service Business Logic

Service layer for enrollments, prerequisites, progress and quiz attempts.
"""

from .exceptions import (
    AccessDeniedError,
    AccessReason,
    CircularPrerequisiteError,
    InvalidRequestError,
    LearningServiceError,
    NotFoundError,
    StateConflictError,
    TimeLimitExceededError,
)
from .dependency_graph import DependencyGraphService, find_cycle
from .progress_service import ProgressService
from .enrollment_service import EnrollmentService
from .access_service import AccessDecision, AccessService, Actor
from .module_service import ModuleService
from .quiz_service import QuizService
from .quiz_attempt_service import QuizAttemptService
from .course_outline import CourseOutlineBuilder

__all__ = [
    # Services
    'DependencyGraphService',
    'ProgressService',
    'EnrollmentService',
    'AccessService',
    'ModuleService',
    'QuizService',
    'QuizAttemptService',
    'CourseOutlineBuilder',
    'find_cycle',
    # Access
    'Actor',
    'AccessDecision',
    'AccessReason',
    # Errors
    'LearningServiceError',
    'InvalidRequestError',
    'CircularPrerequisiteError',
    'AccessDeniedError',
    'StateConflictError',
    'TimeLimitExceededError',
    'NotFoundError',
]
