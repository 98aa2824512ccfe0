# services/learning-service/src/apps/core/api/views/attempt_views.py
"""
Quiz Attempt Views

ViewSet for submitting, grading and reviewing quiz attempts.
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle

from shared.common.permissions import IsStaff

from ...services import Actor, QuizAttemptService
from ..serializers import (
    AttemptSubmitSerializer,
    AttemptGradeSerializer,
    QuizAttemptSerializer,
)


class QuizAttemptViewSet(viewsets.GenericViewSet):
    """
    ViewSet for quiz attempts.

    Owners submit and review their attempts; staff grade them.
    """

    serializer_class = QuizAttemptSerializer
    throttle_scope = 'quiz'

    def get_permissions(self):
        if self.action in ('grade', 'ungraded'):
            return [IsStaff()]
        return [IsAuthenticated()]

    def get_throttles(self):
        if self.action == 'submit':
            return [ScopedRateThrottle()]
        return super().get_throttles()

    def retrieve(self, request, pk=None):
        """Attempt detail; live attempts include their questions."""
        return Response(QuizAttemptService.get_attempt_detail(Actor.from_user(request.user), pk))

    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        """Submit answers for a live attempt."""
        serializer = AttemptSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        answers = [
            {**answer, 'question_id': str(answer['question_id'])}
            for answer in serializer.validated_data['answers']
        ]
        result = QuizAttemptService.submit_attempt(Actor.from_user(request.user), pk, answers)
        return Response(result)

    @action(detail=True, methods=['post'])
    def grade(self, request, pk=None):
        """Grade the text answers of a submitted attempt."""
        serializer = AttemptGradeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        grades = [
            {**grade, 'question_id': str(grade['question_id'])}
            for grade in serializer.validated_data['grades']
        ]
        attempt = QuizAttemptService.grade_attempt(Actor.from_user(request.user), pk, grades)
        return Response(QuizAttemptSerializer(attempt).data)

    @action(detail=True, methods=['get'])
    def results(self, request, pk=None):
        """Results of a graded attempt."""
        return Response(QuizAttemptService.get_results(Actor.from_user(request.user), pk))

    @action(detail=False, methods=['get'])
    def ungraded(self, request):
        """Submissions waiting for a grader."""
        queryset = QuizAttemptService.get_ungraded_submissions(
            Actor.from_user(request.user),
            course_id=request.query_params.get('course_id'),
            module_id=request.query_params.get('module_id'),
            lesson_id=request.query_params.get('lesson_id'),
        )

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)
