# services/learning-service/src/apps/core/tests/conftest.py
"""
Pytest Configuration and Fixtures

Shared fixtures for learning service tests.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from rest_framework.test import APIClient


@pytest.fixture
def creator_id():
    """Author of the sample course."""
    return str(uuid4())


@pytest.fixture
def learner_id():
    """Generate a random learner ID."""
    return str(uuid4())


@pytest.fixture
def learner(learner_id):
    """Learner actor without staff roles."""
    from apps.core.services import Actor

    return Actor(user_id=learner_id, roles=('student',))


@pytest.fixture
def staff():
    """Staff actor."""
    from apps.core.services import Actor

    return Actor(user_id=str(uuid4()), roles=('admin',))


@pytest.fixture
def course(db, creator_id):
    """Create a sample course."""
    from apps.core.models import Course

    return Course.objects.create(
        title='Introduction to Genetics',
        created_by=creator_id,
        price=Decimal('99.00'),
        module_price=Decimal('25.00'),
    )


@pytest.fixture
def make_module(course):
    """Factory for modules of the sample course."""
    from apps.core.models import Module

    def _make(order, title=None, **kwargs):
        return Module.objects.create(
            course=course,
            title=title or f'Module {order}',
            order=order,
            **kwargs
        )

    return _make


@pytest.fixture
def make_lesson():
    """Factory for lessons."""
    from apps.core.models import Lesson

    def _make(module, order, title=None, **kwargs):
        return Lesson.objects.create(
            module=module,
            title=title or f'Lesson {order}',
            order=order,
            **kwargs
        )

    return _make


@pytest.fixture
def make_quiz():
    """
    Factory for quizzes.

    `questions` is a list of (question_type, marks) tuples; mcq questions
    get options 'A' (correct) and 'B'.
    """
    from apps.core.models import Question, QuestionType, Quiz

    def _make(lesson, questions=(('mcq', 1),), **kwargs):
        kwargs.setdefault('title', f'{lesson.title} Quiz')
        kwargs.setdefault('quiz_time', 10)
        quiz = Quiz.objects.create(lesson=lesson, **kwargs)
        for index, (question_type, marks) in enumerate(questions):
            options = []
            if question_type == QuestionType.MCQ:
                options = [
                    {'option': 'A', 'is_correct': True},
                    {'option': 'B', 'is_correct': False},
                ]
            Question.objects.create(
                quiz=quiz,
                text=f'Question {index + 1}',
                question_type=question_type,
                marks=marks,
                options=options,
                order=index,
            )
        quiz.recalculate_total_marks()
        return quiz

    return _make


@pytest.fixture
def module(make_module):
    """First module of the sample course."""
    return make_module(1)


@pytest.fixture
def lesson(module, make_lesson):
    """First lesson of the sample module."""
    return make_lesson(module, 1)


@pytest.fixture
def full_enrollment(course, learner_id):
    """Full course enrollment of the learner."""
    from apps.core.models import Enrollment, EnrollmentType

    return Enrollment.objects.create(
        user_id=learner_id,
        course=course,
        enrollment_type=EnrollmentType.FULL,
    )


@pytest.fixture
def api_client():
    """Create API client."""
    return APIClient()


@pytest.fixture
def make_client():
    """Build API clients authenticated as token users with the given roles."""
    from shared.common.authentication import TokenUser

    def _make(user_id=None, roles=('student',)):
        user = TokenUser({
            'sub': str(user_id or uuid4()),
            'email': 'user@example.com',
            'roles': list(roles),
        })
        client = APIClient()
        client.force_authenticate(user=user)
        client.user = user
        return client

    return _make
