# services/learning-service/src/apps/core/tests/test_authentication.py
"""
Authentication Tests

Unit tests for bearer token and service key authentication.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest
from django.test import RequestFactory
from rest_framework import exceptions

from shared.common.authentication import (
    JWTAuthentication,
    ServiceAuthentication,
    ServiceUser,
    TokenUser,
)


def _token(expires_in=timedelta(minutes=5), **claims):
    payload = {
        'sub': str(uuid4()),
        'iss': 'learning-platform',
        'exp': datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    return jwt.encode(payload, 'test-signing-key', algorithm='HS256')


# =============================================================================
# JWT Authentication Tests
# =============================================================================

class TestJWTAuthentication:
    """Tests for JWTAuthentication."""

    @pytest.fixture
    def request_factory(self):
        return RequestFactory()

    def test_valid_token(self, request_factory):
        token = _token(roles=['admin'])
        request = request_factory.get('/', HTTP_AUTHORIZATION=f'Bearer {token}')

        user, payload = JWTAuthentication().authenticate(request)

        assert user.id == payload['sub']
        assert user.roles == ['admin']
        assert user.is_staff_member is True

    def test_missing_header(self, request_factory):
        assert JWTAuthentication().authenticate(request_factory.get('/')) is None

    def test_other_scheme_ignored(self, request_factory):
        request = request_factory.get('/', HTTP_AUTHORIZATION='Basic dXNlcjpwYXNz')

        assert JWTAuthentication().authenticate(request) is None

    def test_expired_token(self, request_factory):
        token = _token(expires_in=timedelta(minutes=-5))
        request = request_factory.get('/', HTTP_AUTHORIZATION=f'Bearer {token}')

        with pytest.raises(exceptions.AuthenticationFailed) as exc_info:
            JWTAuthentication().authenticate(request)

        assert 'expired' in str(exc_info.value.detail)

    def test_wrong_issuer(self, request_factory):
        token = _token(iss='someone-else')
        request = request_factory.get('/', HTTP_AUTHORIZATION=f'Bearer {token}')

        with pytest.raises(exceptions.AuthenticationFailed):
            JWTAuthentication().authenticate(request)

    def test_malformed_header(self, request_factory):
        request = request_factory.get('/', HTTP_AUTHORIZATION='Bearer a b')

        with pytest.raises(exceptions.AuthenticationFailed):
            JWTAuthentication().authenticate(request)


# =============================================================================
# Service Authentication Tests
# =============================================================================

class TestServiceAuthentication:
    """Tests for ServiceAuthentication."""

    @pytest.fixture
    def request_factory(self):
        return RequestFactory()

    def test_valid_key(self, request_factory):
        request = request_factory.post(
            '/',
            HTTP_X_SERVICE_NAME='payment-service',
            HTTP_X_SERVICE_KEY='test-payment-key',
        )

        user, _ = ServiceAuthentication().authenticate(request)

        assert isinstance(user, ServiceUser)
        assert user.is_service is True
        assert user.id == 'service:payment-service'

    def test_wrong_key(self, request_factory):
        request = request_factory.post(
            '/',
            HTTP_X_SERVICE_NAME='payment-service',
            HTTP_X_SERVICE_KEY='guess',
        )

        with pytest.raises(exceptions.AuthenticationFailed):
            ServiceAuthentication().authenticate(request)

    def test_unknown_service(self, request_factory):
        request = request_factory.post(
            '/',
            HTTP_X_SERVICE_NAME='report-service',
            HTTP_X_SERVICE_KEY='test-payment-key',
        )

        with pytest.raises(exceptions.AuthenticationFailed):
            ServiceAuthentication().authenticate(request)

    def test_headers_absent(self, request_factory):
        assert ServiceAuthentication().authenticate(request_factory.post('/')) is None


class TestTokenUser:
    """Tests for TokenUser."""

    def test_single_role_claim(self):
        user = TokenUser({'sub': 'abc', 'role': 'moderator'})

        assert user.roles == ['moderator']
        assert user.is_staff_member is True
        assert user.pk == 'abc'

    def test_learner_is_not_staff(self):
        user = TokenUser({'sub': 'abc', 'roles': ['user']})

        assert user.is_staff_member is False
        assert user.has_role('user')
