# services/learning-service/src/apps/core/api/views/enrollment_views.py
"""
Enrollment Views

ViewSet for enrollment-related API endpoints.
"""

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from shared.common.permissions import IsStaffOrService

from ...models import EnrollmentType, FullAccess, ModuleAccess
from ...services import EnrollmentService
from ..serializers import (
    EnrollmentSerializer,
    EnrollmentGrantSerializer,
    EnrollmentRevokeSerializer,
)


class EnrollmentViewSet(viewsets.GenericViewSet):
    """
    ViewSet for enrollments.

    Learners list their own enrollments; grants and revocations come from
    the payment subsystem or staff.
    """

    serializer_class = EnrollmentSerializer

    def get_permissions(self):
        if self.action in ('grant', 'revoke'):
            return [IsStaffOrService()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return EnrollmentService.get_user_enrollments(str(self.request.user.id))

    def list(self, request):
        """Enrollments of the caller."""
        queryset = self.get_queryset()

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    @action(detail=False, methods=['post'])
    def grant(self, request):
        """Grant access after a confirmed purchase."""
        serializer = EnrollmentGrantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data['enrollment_type'] == EnrollmentType.FULL:
            scope = FullAccess()
        else:
            scope = ModuleAccess(frozenset(str(m) for m in data['module_ids']))

        enrollment = EnrollmentService.grant_enrollment(
            str(data['user_id']), str(data['course_id']), scope
        )
        return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def revoke(self, request):
        """Revoke access after a refund."""
        serializer = EnrollmentRevokeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        module_ids = data.get('module_ids')
        enrollment = EnrollmentService.revoke_enrollment(
            str(data['user_id']),
            str(data['course_id']),
            module_ids=[str(m) for m in module_ids] if module_ids is not None else None,
        )

        if enrollment is None:
            return Response({'revoked': True, 'enrollment': None})
        return Response({'revoked': True, 'enrollment': EnrollmentSerializer(enrollment).data})
