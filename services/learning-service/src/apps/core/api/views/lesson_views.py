# services/learning-service/src/apps/core/api/views/lesson_views.py
"""
Lesson Views

Lesson-scoped endpoints: the lesson's quiz, starting and resetting
attempts, completion and time tracking.
"""

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle

from shared.common.permissions import IsStaff

from ...services import (
    AccessService,
    Actor,
    ProgressService,
    QuizAttemptService,
    QuizService,
)
from ..serializers import (
    QuizSerializer,
    QuizCreateSerializer,
    QuizUpdateSerializer,
    QuizResetSerializer,
    LessonTimeSerializer,
)

STAFF_ACTIONS = ('create_quiz', 'update_quiz', 'delete_quiz', 'reset_quiz')


def _questions(validated):
    return [
        {
            **question,
            'id': str(question['id']) if question.get('id') else None,
            'options': [dict(o) for o in question.get('options', [])],
        }
        for question in validated
    ]


class LessonViewSet(viewsets.ViewSet):
    """
    ViewSet for lesson actions within a module.
    """

    throttle_scope = 'quiz'

    def get_permissions(self):
        if self.action in STAFF_ACTIONS:
            return [IsStaff()]
        return [IsAuthenticated()]

    def get_throttles(self):
        if self.action == 'start_quiz':
            return [ScopedRateThrottle()]
        return super().get_throttles()

    @action(detail=True, methods=['get'])
    def quiz(self, request, course_pk=None, module_pk=None, pk=None):
        """Quiz status: attempts, limits and gating for the caller."""
        status_data = QuizAttemptService.get_quiz_status(
            Actor.from_user(request.user), course_pk, module_pk, pk
        )
        return Response(status_data)

    @quiz.mapping.post
    def create_quiz(self, request, course_pk=None, module_pk=None, pk=None):
        """Attach a quiz to the lesson."""
        serializer = QuizCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        quiz = QuizService.create_quiz(
            course_id=course_pk,
            module_id=module_pk,
            lesson_id=pk,
            questions=_questions(data.pop('questions')),
            **data
        )
        return Response(QuizSerializer(quiz).data, status=status.HTTP_201_CREATED)

    @quiz.mapping.patch
    def update_quiz(self, request, course_pk=None, module_pk=None, pk=None):
        """Edit the lesson's quiz."""
        serializer = QuizUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        questions = data.pop('questions', None)
        quiz = QuizService.update_quiz(
            course_pk,
            module_pk,
            pk,
            questions=_questions(questions) if questions is not None else None,
            **data
        )
        return Response(QuizSerializer(quiz).data)

    @quiz.mapping.delete
    def delete_quiz(self, request, course_pk=None, module_pk=None, pk=None):
        """Remove the lesson's quiz."""
        result = QuizService.delete_quiz(course_pk, module_pk, pk, deleted_by=str(request.user.id))
        return Response(result)

    @action(detail=True, methods=['post'], url_path='quiz/start')
    def start_quiz(self, request, course_pk=None, module_pk=None, pk=None):
        """Start a quiz attempt."""
        result = QuizAttemptService.start_attempt(
            Actor.from_user(request.user), course_pk, module_pk, pk
        )
        return Response(result, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='quiz/reset')
    def reset_quiz(self, request, course_pk=None, module_pk=None, pk=None):
        """Delete a learner's attempts so the quiz can be retaken."""
        serializer = QuizResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = QuizAttemptService.reset_attempts(
            Actor.from_user(request.user),
            course_pk,
            module_pk,
            pk,
            user_id=str(serializer.validated_data['user_id']),
        )
        return Response(result)

    @action(detail=True, methods=['post'])
    def complete(self, request, course_pk=None, module_pk=None, pk=None):
        """Mark the lesson complete for the caller."""
        AccessService.can_access_lesson(
            Actor.from_user(request.user), course_pk, module_pk, pk
        ).raise_if_denied()

        progress = ProgressService.record_lesson_complete(
            str(request.user.id), course_pk, module_pk, pk
        )
        return Response({
            'lesson_id': str(pk),
            'module_id': str(module_pk),
            'progress': progress.progress,
        })

    @action(detail=True, methods=['post'])
    def time(self, request, course_pk=None, module_pk=None, pk=None):
        """Add time spent on the lesson."""
        serializer = LessonTimeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        AccessService.can_access_module(
            Actor.from_user(request.user), course_pk, module_pk
        ).raise_if_denied()
        lesson = AccessService.get_lesson(course_pk, module_pk, pk)

        total = ProgressService.track_lesson_time(
            str(request.user.id), lesson.id, serializer.validated_data['seconds']
        )
        return Response({'lesson_id': str(lesson.id), 'time_spent': total})
