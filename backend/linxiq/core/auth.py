"""
FastAPI authentication and authorization dependencies.

The identity of the caller is resolved once per request into a Caller and
handed explicitly to every service call. Role checks happen in exactly one
place, require_permission().
"""
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from linxiq.models import User, get_db
from .logging_config import caller_context
from .error_responses import ErrorMessages, raise_forbidden, raise_unauthorized
from .permissions import Permission, Role, has_permission
from .security import decode_token

# HTTP Bearer token scheme
security = HTTPBearer()


@dataclass(frozen=True)
class Caller:
    """Authenticated identity for one request."""

    person_id: int
    role: Role

    def can(self, permission: Permission) -> bool:
        return has_permission(self.role, permission)


def _decode_user_id(token: str) -> int:
    payload = decode_token(token)
    if payload is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    if payload.get("type") != "access":
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)

    user_id = payload.get("user_id")
    if user_id is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN_PAYLOAD)

    return user_id


def resolve_caller(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Caller:
    """
    Resolve the bearer token into a Caller.

    The role comes from the users table rather than the token, so a role
    change takes effect on the next request.

    Raises:
        HTTPException: 401 if the token is invalid or the user does not exist
    """
    user_id = _decode_user_id(credentials.credentials)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise_unauthorized(ErrorMessages.USER_NOT_FOUND_AUTH)

    try:
        role = Role(user.role)
    except ValueError:
        raise_unauthorized(ErrorMessages.UNKNOWN_ROLE)

    return Caller(person_id=user.id, role=role)


async def get_current_caller(
    request: Request, caller: Caller = Depends(resolve_caller)
) -> Caller:
    """
    The authenticated Caller, bound to the request's logging context.

    Runs on the event loop so caller_context is inherited by the endpoint
    and the services it calls. request.state.caller is read by
    RequestLoggingMiddleware for the response log line.
    """
    caller_context.set((caller.person_id, caller.role.value))
    request.state.caller = caller
    return caller


def require_permission(permission: Permission) -> Callable[..., Caller]:
    """
    Build a dependency that admits only callers holding ``permission``.

    Usage:
        @router.post("/assignments")
        def assign(caller: Caller = Depends(require_permission(Permission.ASSIGN_TEST))):
            ...
    """

    def dependency(caller: Caller = Depends(get_current_caller)) -> Caller:
        if not caller.can(permission):
            raise_forbidden(ErrorMessages.missing_permission(permission.value))
        return caller

    return dependency
