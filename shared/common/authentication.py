# shared/common/authentication.py
"""
Request Authentication

Bearer JWT authentication for learners and staff, and shared-key
authentication for internal callers such as the payment subsystem.
"""

import hmac
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

import jwt
from django.conf import settings
from rest_framework import authentication, exceptions
from rest_framework.request import Request

logger = logging.getLogger(__name__)


class JWTAuthentication(authentication.BaseAuthentication):
    """
    Authenticate requests carrying `Authorization: Bearer <token>`.

    Tokens are issued by the identity service; this side only verifies them.
    """

    keyword = 'Bearer'

    def authenticate(self, request: Request) -> Optional[Tuple['TokenUser', Dict]]:
        auth_header = authentication.get_authorization_header(request)

        if not auth_header:
            return None

        try:
            auth_parts = auth_header.decode('utf-8').split()
        except UnicodeDecodeError:
            raise exceptions.AuthenticationFailed('Invalid token header encoding')

        if not auth_parts or auth_parts[0].lower() != self.keyword.lower():
            return None

        if len(auth_parts) != 2:
            raise exceptions.AuthenticationFailed('Invalid token header format')

        return self.authenticate_token(auth_parts[1])

    def authenticate_token(self, token: str) -> Tuple['TokenUser', Dict]:
        """Verify the token signature and claims and build the user."""
        jwt_settings = settings.JWT_SETTINGS
        decode_kwargs = {
            'algorithms': [jwt_settings['ALGORITHM']],
            'options': {'require': ['exp', 'sub']},
        }
        if jwt_settings.get('ISSUER'):
            decode_kwargs['issuer'] = jwt_settings['ISSUER']
        if jwt_settings.get('AUDIENCE'):
            decode_kwargs['audience'] = jwt_settings['AUDIENCE']

        try:
            payload = jwt.decode(token, jwt_settings['VERIFYING_KEY'], **decode_kwargs)
        except jwt.ExpiredSignatureError:
            raise exceptions.AuthenticationFailed('Token has expired')
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise exceptions.AuthenticationFailed('Invalid token')

        return TokenUser(payload), payload

    def authenticate_header(self, request: Request) -> str:
        return self.keyword


class ServiceAuthentication(authentication.BaseAuthentication):
    """
    Authenticate internal calls by `X-Service-Name` and `X-Service-Key`.

    Keys are configured per calling service in `settings.SERVICE_KEYS`.
    """

    def authenticate(self, request: Request) -> Optional[Tuple['ServiceUser', Dict]]:
        service_name = request.headers.get('X-Service-Name')
        service_key = request.headers.get('X-Service-Key')

        if not service_name or not service_key:
            return None

        expected = getattr(settings, 'SERVICE_KEYS', {}).get(service_name)
        if not expected or not hmac.compare_digest(str(expected), service_key):
            logger.warning(f"Rejected service credentials for {service_name}")
            raise exceptions.AuthenticationFailed('Invalid service credentials')

        return ServiceUser(service_name), {'service': service_name}

    def authenticate_header(self, request: Request) -> str:
        return 'Service'


class TokenUser:
    """
    User built from a verified JWT payload.

    Roles use the platform vocabulary: `user`, `admin`, `sub_admin` and
    `moderator`.
    """

    is_service = False
    is_active = True
    is_authenticated = True
    is_anonymous = False

    def __init__(self, payload: Dict[str, Any]):
        self.payload = payload
        self.id = payload.get('sub')
        self.email = payload.get('email')
        self.name = payload.get('name')
        roles = payload.get('roles')
        if roles is None and payload.get('role'):
            roles = [payload['role']]
        self.roles = list(roles or [])

    @property
    def pk(self):
        return self.id

    def __str__(self) -> str:
        return f"TokenUser({self.id})"

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return bool(set(self.roles) & set(roles))

    @property
    def is_staff_member(self) -> bool:
        return self.has_any_role(settings.LEARNING_ENGINE['STAFF_ROLES'])


class ServiceUser:
    """Caller identity for service-to-service requests."""

    is_service = True
    is_active = True
    is_authenticated = True
    is_anonymous = False
    is_staff_member = False
    roles: list = []

    def __init__(self, service_name: str):
        self.service_name = service_name
        self.id = f"service:{service_name}"

    @property
    def pk(self):
        return self.id

    def __str__(self) -> str:
        return f"ServiceUser({self.service_name})"
