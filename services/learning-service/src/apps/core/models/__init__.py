# services/learning-service/src/apps/core/models/__init__.py
"""
Learning Service Models

Database models for courses, enrollments, progress and quiz attempts.
"""

from .course import Course, Module, ModuleDependency
from .lesson import Lesson, QuizPlacement
from .quiz import Quiz, Question, QuestionType
from .attempt import QuizAttempt, AttemptStatus
from .enrollment import (
    Enrollment,
    EnrolledModule,
    EnrollmentType,
    EnrollmentScope,
    FullAccess,
    ModuleAccess,
)
from .progress import ModuleProgress, LessonProgress

__all__ = [
    # Course
    'Course',
    'Module',
    'ModuleDependency',
    # Lesson
    'Lesson',
    'QuizPlacement',
    # Quiz
    'Quiz',
    'Question',
    'QuestionType',
    # Attempt
    'QuizAttempt',
    'AttemptStatus',
    # Enrollment
    'Enrollment',
    'EnrolledModule',
    'EnrollmentType',
    'EnrollmentScope',
    'FullAccess',
    'ModuleAccess',
    # Progress
    'ModuleProgress',
    'LessonProgress',
]
