# shared/common/permissions.py
"""
Permission Classes

Role checks over the identities produced by shared.common.authentication.
"""

import logging
from typing import List

from django.conf import settings
from rest_framework import permissions
from rest_framework.request import Request
from rest_framework.views import APIView

logger = logging.getLogger(__name__)


class BasePermission(permissions.BasePermission):
    """Base permission class with utility methods"""

    def get_user_roles(self, request: Request) -> List[str]:
        """Get roles from user object or JWT payload"""
        if hasattr(request.user, 'roles'):
            return list(request.user.roles)
        if isinstance(getattr(request, 'auth', None), dict):
            return request.auth.get('roles', [])
        return []

    def is_authenticated(self, request: Request) -> bool:
        return bool(request.user and getattr(request.user, 'is_authenticated', False))


class IsServiceRequest(BasePermission):
    """Allow only service-to-service requests"""

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(getattr(request.user, 'is_service', False))


class HasRole(BasePermission):
    """Allow users holding any of `required_roles`."""

    required_roles: List[str] = []

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not self.is_authenticated(request):
            return False
        return bool(set(self.required_roles) & set(self.get_user_roles(request)))


class IsStaff(HasRole):
    """Allow platform staff (admin, sub-admin, moderator)."""

    message = 'Only staff members can perform this action.'

    def has_permission(self, request: Request, view: APIView) -> bool:
        self.required_roles = list(settings.LEARNING_ENGINE['STAFF_ROLES'])
        return super().has_permission(request, view)


class IsStaffOrService(BasePermission):
    """Allow staff users and authenticated internal services."""

    message = 'Only staff members or internal services can perform this action.'

    def has_permission(self, request: Request, view: APIView) -> bool:
        return (
            IsServiceRequest().has_permission(request, view)
            or IsStaff().has_permission(request, view)
        )
