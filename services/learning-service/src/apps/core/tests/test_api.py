# services/learning-service/src/apps/core/tests/test_api.py
"""
Learning Service API Tests

Tests for learning service REST API endpoints.
"""

import pytest
from uuid import uuid4

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.core.models import Enrollment, EnrollmentType, Module, QuizAttempt

BASE = '/api/v1/learning'


def _lesson_url(course, module, lesson, suffix=''):
    return f'{BASE}/courses/{course.id}/modules/{module.id}/lessons/{lesson.id}/{suffix}'


@pytest.fixture
def staff_client(make_client):
    return make_client(roles=('admin',))


@pytest.fixture
def learner_client(make_client, learner_id):
    return make_client(user_id=learner_id, roles=('user',))


@pytest.fixture
def quiz_payload():
    return {
        'title': 'Cells quiz',
        'quiz_time': 10,
        'max_attempts': 2,
        'questions': [
            {
                'text': 'Powerhouse of the cell?',
                'marks': 1,
                'options': [
                    {'option': 'Mitochondria', 'is_correct': True},
                    {'option': 'Nucleus', 'is_correct': False},
                ],
            },
            {'text': 'Explain diffusion', 'marks': 4},
        ],
    }


@pytest.mark.django_db
class TestAuthentication:
    """Tests for request authentication."""

    def test_anonymous_rejected(self, api_client, course):
        response = api_client.get(f'{BASE}/courses/{course.id}/')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] is False
        assert response.data['error']['code'] == 'NOT_AUTHENTICATED'


@pytest.mark.django_db
class TestCourseAPI:
    """Tests for course endpoints."""

    def test_outline_redacts_locked_modules(self, learner_client, course, module, make_lesson):
        make_lesson(module, 1, video_url='https://cdn.example.com/intro.mp4')

        response = learner_client.get(f'{BASE}/courses/{course.id}/')

        assert response.status_code == status.HTTP_200_OK
        module_data = response.data['modules'][0]
        assert module_data['access']['allowed'] is False
        assert module_data['access']['reason'] == 'not_enrolled'
        assert module_data['lessons'][0]['locked'] is True
        assert 'video_url' not in module_data['lessons'][0]

    def test_outline_for_enrolled_learner(self, learner_client, course, module, lesson, full_enrollment):
        response = learner_client.get(f'{BASE}/courses/{course.id}/')

        lesson_data = response.data['modules'][0]['lessons'][0]
        assert response.data['enrollment_type'] == 'full'
        assert lesson_data['locked'] is False
        assert 'video_url' in lesson_data

    def test_outline_unknown_course(self, learner_client):
        response = learner_client.get(f'{BASE}/courses/{uuid4()}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['error']['code'] == 'NOT_FOUND'

    def test_course_progress(self, learner_client, course, module, lesson):
        response = learner_client.get(f'{BASE}/courses/{course.id}/progress/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['overall_progress'] == 0.0


@pytest.mark.django_db
class TestModuleAPI:
    """Tests for module endpoints."""

    def test_create_module(self, staff_client, course, module):
        response = staff_client.post(
            f'{BASE}/courses/{course.id}/modules/',
            {'title': 'Genetics', 'order': 2, 'prerequisites': [str(module.id)]},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['prerequisites'] == [str(module.id)]
        assert response.data['dependencies'] == [{'module_id': str(module.id), 'required_completion': 100.0}]

    def test_learner_cannot_create(self, learner_client, course):
        response = learner_client.post(
            f'{BASE}/courses/{course.id}/modules/',
            {'title': 'Genetics', 'order': 1},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_circular_prerequisites(self, staff_client, course, make_module):
        first = make_module(1)
        second = make_module(2)
        second.prerequisites.add(first)

        response = staff_client.put(
            f'{BASE}/courses/{course.id}/modules/{first.id}/prerequisites/',
            {'prerequisites': [str(second.id)]},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['error']['code'] == 'CIRCULAR_PREREQUISITE'

    def test_partial_update(self, staff_client, course, module):
        response = staff_client.patch(
            f'{BASE}/courses/{course.id}/modules/{module.id}/',
            {'title': 'Renamed'},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['title'] == 'Renamed'

    def test_reorder(self, staff_client, course, make_module):
        first = make_module(1)
        second = make_module(2)

        response = staff_client.post(
            f'{BASE}/courses/{course.id}/modules/reorder/',
            {'orders': [
                {'module_id': str(first.id), 'order': 2},
                {'module_id': str(second.id), 'order': 1},
            ]},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert [m['id'] for m in response.data] == [str(second.id), str(first.id)]

    def test_delete(self, staff_client, course, module):
        response = staff_client.delete(f'{BASE}/courses/{course.id}/modules/{module.id}/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['soft_deleted'] is False
        assert not Module.objects.filter(pk=module.pk).exists()

    def test_module_access(self, learner_client, course, module):
        response = learner_client.get(f'{BASE}/courses/{course.id}/modules/{module.id}/access/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['has_access'] is False
        assert response.data['reason'] == 'not_enrolled'


@pytest.mark.django_db
class TestQuizFlowAPI:
    """End-to-end quiz flow over HTTP."""

    def test_create_take_and_grade(self, staff_client, learner_client, course, module, lesson, quiz_payload, full_enrollment):
        response = staff_client.post(_lesson_url(course, module, lesson, 'quiz/'), quiz_payload, format='json')
        assert response.status_code == status.HTTP_201_CREATED

        learner = learner_client

        response = learner.post(_lesson_url(course, module, lesson, 'quiz/start/'))
        assert response.status_code == status.HTTP_201_CREATED
        started = response.data
        assert started['attempt_number'] == 1

        answers = []
        for question in started['questions']:
            if question['question_type'] == 'mcq':
                answers.append({'question_id': question['id'], 'selected_option': 'Mitochondria'})
            else:
                answers.append({'question_id': question['id'], 'text_answer': 'Movement down a gradient'})

        response = learner.post(f"{BASE}/attempts/{started['attempt_id']}/submit/", {'answers': answers}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'submitted'

        response = staff_client.get(f'{BASE}/attempts/ungraded/')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1

        text_id = next(q['id'] for q in started['questions'] if q['question_type'] == 'text')
        response = staff_client.post(
            f"{BASE}/attempts/{started['attempt_id']}/grade/",
            {'grades': [{'question_id': text_id, 'marks': 3, 'feedback': 'Clear'}]},
            format='json'
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['percentage'] == 80.0
        assert response.data['passed'] is True

        response = learner.get(f"{BASE}/attempts/{started['attempt_id']}/results/")
        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'graded'

    def test_second_start_conflicts(self, learner_client, course, module, lesson, make_quiz, full_enrollment):
        make_quiz(lesson)
        learner_client.post(_lesson_url(course, module, lesson, 'quiz/start/'))

        response = learner_client.post(_lesson_url(course, module, lesson, 'quiz/start/'))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['error']['code'] == 'ONGOING_ATTEMPT'

    def test_start_without_enrollment(self, learner_client, course, module, lesson, make_quiz):
        make_quiz(lesson)

        response = learner_client.post(_lesson_url(course, module, lesson, 'quiz/start/'))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['error']['details']['reason'] == 'not_enrolled'

    def test_quiz_status(self, learner_client, course, module, lesson, make_quiz, full_enrollment):
        make_quiz(lesson)

        response = learner_client.get(_lesson_url(course, module, lesson, 'quiz/'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['can_start_new_attempt'] is True
        assert response.data['attempts'] == []

    def test_reset_by_staff(self, staff_client, course, module, lesson, make_quiz, learner_id):
        quiz = make_quiz(lesson)
        QuizAttempt.objects.create(quiz=quiz, user_id=learner_id, attempt_number=1, start_time=timezone.now())

        response = staff_client.post(
            _lesson_url(course, module, lesson, 'quiz/reset/'),
            {'user_id': learner_id},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['attempts_reset'] == 1

    def test_lesson_complete_and_time(self, learner_client, course, module, lesson, full_enrollment):
        response = learner_client.post(_lesson_url(course, module, lesson, 'time/'), {'seconds': 30}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert response.data['time_spent'] == 30

        response = learner_client.post(_lesson_url(course, module, lesson, 'complete/'))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['progress'] == 100.0


@pytest.mark.django_db
class TestEnrollmentAPI:
    """Tests for enrollment endpoints."""

    def _service_client(self):
        client = APIClient()
        client.credentials(HTTP_X_SERVICE_NAME='payment-service', HTTP_X_SERVICE_KEY='test-payment-key')
        return client

    def test_grant_from_payment_service(self, course, learner_id):
        response = self._service_client().post(
            f'{BASE}/enrollments/grant/',
            {'user_id': learner_id, 'course_id': str(course.id), 'enrollment_type': 'full'},
            format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert Enrollment.objects.filter(user_id=learner_id, course=course).exists()

    def test_wrong_service_key(self, course, learner_id):
        client = APIClient()
        client.credentials(HTTP_X_SERVICE_NAME='payment-service', HTTP_X_SERVICE_KEY='wrong')

        response = client.post(
            f'{BASE}/enrollments/grant/',
            {'user_id': learner_id, 'course_id': str(course.id), 'enrollment_type': 'full'},
            format='json'
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_learner_cannot_grant(self, learner_client, course, learner_id):
        response = learner_client.post(
            f'{BASE}/enrollments/grant/',
            {'user_id': learner_id, 'course_id': str(course.id), 'enrollment_type': 'full'},
            format='json'
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_module_grant_needs_modules(self, course, learner_id):
        response = self._service_client().post(
            f'{BASE}/enrollments/grant/',
            {'user_id': learner_id, 'course_id': str(course.id), 'enrollment_type': 'module'},
            format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_revoke(self, course, learner_id):
        Enrollment.objects.create(user_id=learner_id, course=course, enrollment_type=EnrollmentType.FULL)

        response = self._service_client().post(
            f'{BASE}/enrollments/revoke/',
            {'user_id': learner_id, 'course_id': str(course.id)},
            format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['enrollment'] is None

    def test_list_own_enrollments(self, learner_client, course, full_enrollment):
        Enrollment.objects.create(user_id=uuid4(), course=course, enrollment_type=EnrollmentType.FULL)

        response = learner_client.get(f'{BASE}/enrollments/')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['course_id'] == str(course.id)
