import hmac
import logging
from typing import Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.auth import SERVICE_ROLE, SYSTEM_USER_ID

logger = logging.getLogger("api-gateway")

# Public paths that don't require auth
PUBLIC_PATHS = {
    "/health",
    "/docs",
    "/openapi.json",
}


def _is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith("/docs/")


class TokenVerifier:
    """Verifies user bearer tokens against the auth service."""

    def __init__(self, auth_service_url: str, timeout: float = 5.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.auth_service_url = auth_service_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def verify(self, token: str) -> Optional[dict]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r = await client.post(f"{self.auth_service_url}/auth/verify", json={"token": token})

        if r.status_code != 200:
            return None
        user = r.json()  # expected: {"sub": "...", "email": "...", "role": "..."}
        return user if isinstance(user, dict) else None


def _unauthorized(detail: str = "Unauthorized") -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": detail})


def make_auth_middleware(verifier: TokenVerifier, service_role_key: str):
    async def auth_middleware(request: Request, call_next):
        path = request.url.path

        if request.method == "OPTIONS" or _is_public_path(path):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.lower().startswith("bearer "):
            return _unauthorized("Missing authorization header")

        token = auth_header.split(" ", 1)[1].strip()
        if not token:
            return _unauthorized("Missing token")

        if service_role_key and hmac.compare_digest(token.encode(), service_role_key.encode()):
            request.state.user = {"sub": SYSTEM_USER_ID, "role": SERVICE_ROLE}
            return await call_next(request)

        try:
            user = await verifier.verify(token)
        except httpx.RequestError as e:
            logger.error("Auth service unreachable: %s", type(e).__name__)
            return JSONResponse(status_code=503, content={"error": "Auth service unavailable"})
        except ValueError:
            logger.error("Auth service returned a non-JSON body")
            return _unauthorized()

        if not user or not user.get("sub"):
            return _unauthorized()
        request.state.user = user

        return await call_next(request)

    return auth_middleware
