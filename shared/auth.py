from fastapi import Request

from .errors import Forbidden, Unauthorized

SYSTEM_USER_ID = "00000000-0000-0000-0000-000000000000"
SERVICE_ROLE = "service"
ADMIN_ROLE = "admin"


def current_user(request: Request) -> dict:
    # set by the gateway auth middleware
    user = getattr(request.state, "user", None)
    if not isinstance(user, dict) or not user.get("sub"):
        raise Unauthorized()
    return user


def current_user_id(request: Request) -> str:
    return str(current_user(request)["sub"])


def require_service(request: Request) -> dict:
    user = current_user(request)
    if user.get("role") != SERVICE_ROLE:
        raise Forbidden("Service credential required")
    return user


def require_admin(request: Request) -> dict:
    user = current_user(request)
    if user.get("role") not in (ADMIN_ROLE, SERVICE_ROLE):
        raise Forbidden("Admin role required")
    return user
