"""Unit tests for caller identity resolution.

Trust Model:
- API Gateway validates the caller's token
- After validation, it injects x-user-id and x-user-role headers
- Backend trusts these headers since they come from API Gateway, not the client
"""

import pytest
from fastapi import Request

from parking.models import ErrorCode, ParkingError, UserRole
from parking_api.auth import get_caller, require_admin, require_staff


def _request(headers: list[tuple[bytes, bytes]], event: dict | None = None) -> Request:
    scope = {"type": "http", "path": "/api/payments", "headers": headers}
    if event is not None:
        scope["aws.event"] = event
    return Request(scope=scope)


class TestGetCaller:
    """Test suite for get_caller()."""

    def test_reads_identity_headers(self):
        """User ID and role come from the gateway headers."""
        caller = get_caller(_request([(b"x-user-id", b"user-42"), (b"x-user-role", b"admin")]))

        assert caller.user_id == "user-42"
        assert caller.role == UserRole.ADMIN
        assert caller.is_admin

    def test_missing_role_defaults_to_user(self):
        """Without a role header the caller is a regular user."""
        caller = get_caller(_request([(b"x-user-id", b"user-42")]))

        assert caller.role == UserRole.USER
        assert not caller.is_admin

    def test_unknown_role_defaults_to_user(self):
        """Unrecognised roles grant nothing."""
        caller = get_caller(_request([(b"x-user-id", b"user-42"), (b"x-user-role", b"root")]))

        assert caller.role == UserRole.USER

    def test_falls_back_to_authorizer_claims(self):
        """REST API authorizer claims are used when headers are absent."""
        event = {"requestContext": {"authorizer": {"claims": {"sub": "sub-1", "role": "attendant"}}}}

        caller = get_caller(_request([], event))

        assert caller.user_id == "sub-1"
        assert caller.role == UserRole.ATTENDANT

    @pytest.mark.parametrize("headers", [[], [(b"x-user-id", b"")], [(b"x-user-id", b"   ")]])
    def test_missing_user_raises_auth_required(self, headers):
        """No user ID means the caller is unauthenticated."""
        with pytest.raises(ParkingError) as exc_info:
            get_caller(_request(headers))

        assert exc_info.value.code == ErrorCode.AUTH_REQUIRED


class TestRoleChecks:
    """Test suite for require_admin() and require_staff()."""

    def test_admin_passes_both(self):
        """Admins pass both checks."""
        caller = get_caller(_request([(b"x-user-id", b"a"), (b"x-user-role", b"admin")]))

        assert require_admin(caller) is caller
        assert require_staff(caller) is caller

    def test_attendant_is_staff_but_not_admin(self):
        """Attendants may manage payments but not admin-only resources."""
        caller = get_caller(_request([(b"x-user-id", b"a"), (b"x-user-role", b"attendant")]))

        assert require_staff(caller) is caller
        with pytest.raises(ParkingError) as exc_info:
            require_admin(caller)
        assert exc_info.value.code == ErrorCode.FORBIDDEN

    def test_user_fails_both(self):
        """Regular users are forbidden from staff and admin actions."""
        caller = get_caller(_request([(b"x-user-id", b"u")]))

        with pytest.raises(ParkingError):
            require_staff(caller)
        with pytest.raises(ParkingError):
            require_admin(caller)
