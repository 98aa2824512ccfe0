# services/learning-service/src/apps/core/api/views/course_views.py
"""
Course Views

ViewSets for course outline and module authoring endpoints.
"""

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from shared.common.permissions import IsStaff

from ...services import (
    AccessService,
    Actor,
    CourseOutlineBuilder,
    ModuleService,
    ProgressService,
)
from ..serializers import (
    ModuleSerializer,
    ModuleCreateSerializer,
    ModuleUpdateSerializer,
    PrerequisitesSerializer,
    ModuleReorderSerializer,
)


def _dependencies(validated):
    return [
        {'module_id': str(d['module_id']), 'required_completion': d['required_completion']}
        for d in validated
    ]


class CourseViewSet(viewsets.ViewSet):
    """
    ViewSet for course reads.

    Course authoring lives in the catalogue service; this service only
    serves the per-learner outline and progress.
    """

    permission_classes = [IsAuthenticated]

    def retrieve(self, request, pk=None):
        """Course outline with access and progress for the caller."""
        outline = CourseOutlineBuilder.build(Actor.from_user(request.user), pk)
        return Response(outline)

    @action(detail=True, methods=['get'])
    def progress(self, request, pk=None):
        """Progress of the caller in every module of the course."""
        AccessService.get_course(pk)
        return Response(ProgressService.get_course_progress(str(request.user.id), pk))


class ModuleViewSet(viewsets.ViewSet):
    """
    ViewSet for module authoring within a course.

    Writes are limited to staff; the access action is open to any
    authenticated caller.
    """

    def get_permissions(self):
        if self.action == 'access':
            return [IsAuthenticated()]
        return [IsStaff()]

    def create(self, request, course_pk=None):
        """Create a module with prerequisites."""
        serializer = ModuleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)

        module = ModuleService.create_module(
            course_id=course_pk,
            prerequisites=[str(p) for p in data.pop('prerequisites')],
            dependencies=_dependencies(data.pop('dependencies')),
            **data
        )

        return Response(ModuleSerializer(module).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, course_pk=None, pk=None):
        """Update module fields and prerequisites."""
        serializer = ModuleUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        changes = dict(serializer.validated_data)

        if 'prerequisites' in changes:
            changes['prerequisites'] = [str(p) for p in changes['prerequisites']]
        if 'dependencies' in changes:
            changes['dependencies'] = _dependencies(changes['dependencies'])

        module = ModuleService.update_module(course_pk, pk, **changes)
        return Response(ModuleSerializer(module).data)

    def destroy(self, request, course_pk=None, pk=None):
        """Delete a module; soft delete when learners hold access."""
        result = ModuleService.delete_module(course_pk, pk, deleted_by=str(request.user.id))
        return Response(result)

    @action(detail=True, methods=['put'])
    def prerequisites(self, request, course_pk=None, pk=None):
        """Replace the module's prerequisites."""
        serializer = PrerequisitesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        module = ModuleService.set_prerequisites(
            course_pk,
            pk,
            prerequisites=[str(p) for p in serializer.validated_data['prerequisites']],
            dependencies=_dependencies(serializer.validated_data['dependencies']),
        )
        return Response(ModuleSerializer(module).data)

    @action(detail=False, methods=['post'])
    def reorder(self, request, course_pk=None):
        """Assign new positions to modules."""
        serializer = ModuleReorderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        modules = ModuleService.reorder_modules(
            course_pk,
            [
                {'module_id': str(entry['module_id']), 'order': entry['order']}
                for entry in serializer.validated_data['orders']
            ]
        )
        return Response(ModuleSerializer(modules, many=True).data)

    @action(detail=True, methods=['get'])
    def access(self, request, course_pk=None, pk=None):
        """Enrollment status of the module for the caller."""
        result = CourseOutlineBuilder.describe_module_access(
            Actor.from_user(request.user), course_pk, pk
        )
        return Response(result)
