"""Caller identity from API Gateway authorizer output.

The gateway validates the caller's token and injects the identity as
x-user-id and x-user-role headers. The backend trusts these headers
because clients cannot reach it except through the gateway.

Usage:
    @router.delete("/payments/{payment_id}")
    async def delete_payment(caller: Caller = Depends(require_admin)):
        ...
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request

from parking.models import ErrorCode, ParkingError, UserRole

logger = logging.getLogger(__name__)

USER_ID_HEADER = "x-user-id"
USER_ROLE_HEADER = "x-user-role"


@dataclass(frozen=True)
class Caller:
    """Authenticated caller."""

    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def _authorizer_claims(request: Request) -> dict[str, str]:
    """Claims passed by a REST API authorizer (available via Mangum)."""
    event = request.scope.get("aws.event", {})
    claims: dict[str, str] = (
        event.get("requestContext", {}).get("authorizer", {}).get("claims", {})
    )
    return claims


def get_caller(request: Request) -> Caller:
    """Resolve the caller from gateway headers, falling back to authorizer claims.

    Raises:
        ParkingError: AUTH_REQUIRED if no user ID is present
    """
    claims = _authorizer_claims(request)
    user_id = (request.headers.get(USER_ID_HEADER) or claims.get("sub") or "").strip()
    if not user_id:
        logger.warning("auth_user_missing", extra={"path": request.url.path})
        raise ParkingError(ErrorCode.AUTH_REQUIRED)

    role_name = (request.headers.get(USER_ROLE_HEADER) or claims.get("role") or "").strip()
    try:
        role = UserRole(role_name.lower())
    except ValueError:
        role = UserRole.USER

    return Caller(user_id=user_id, role=role)


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    """Dependency that only lets administrators through.

    Raises:
        ParkingError: FORBIDDEN for non-admin callers
    """
    if not caller.is_admin:
        logger.warning("auth_admin_required", extra={"user_id": caller.user_id})
        raise ParkingError(ErrorCode.FORBIDDEN, details={"role": caller.role.value})
    return caller


def require_staff(caller: Caller = Depends(get_caller)) -> Caller:
    """Dependency for administrators and lot attendants.

    Raises:
        ParkingError: FORBIDDEN for regular users
    """
    if caller.role not in (UserRole.ADMIN, UserRole.ATTENDANT):
        logger.warning("auth_staff_required", extra={"user_id": caller.user_id})
        raise ParkingError(ErrorCode.FORBIDDEN, details={"role": caller.role.value})
    return caller
