"""HTTP routes for signup, login, key checks and user listing."""

import ipaddress

from fastapi import APIRouter, Request, Response
from starlette.concurrency import run_in_threadpool

from auth.service import AuthService
from auth.types import (
    CheckKeyRequest,
    LoginRequest,
    SignupRequest,
    TokenResponse,
    ViewableUser,
)
from utils.user_context import get_current_user_id


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def create_auth_router(auth_service: AuthService) -> APIRouter:
    """Create auth router with injected service.

    Store round-trips and bcrypt are blocking, so every service call runs in
    the thread pool rather than on the event loop.
    """
    router = APIRouter(tags=["auth"])

    @router.post("/signup", response_model=TokenResponse)
    async def signup(request: Request, body: SignupRequest):
        """Redeem an invitation key, create the account, return a token."""
        token = await run_in_threadpool(
            auth_service.register,
            email=body.email,
            password=body.password,
            key_id=body.key,
            ip_address=_get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        return TokenResponse(token=token)

    @router.post("/login", response_model=TokenResponse)
    async def login(request: Request, body: LoginRequest):
        """Exchange email and password for a token."""
        token = await run_in_threadpool(
            auth_service.login,
            email=body.email,
            password=body.password,
            ip_address=_get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
        return TokenResponse(token=token)

    @router.post("/keys")
    async def check_key(body: CheckKeyRequest):
        """200 with an empty body if the key can still be redeemed."""
        await run_in_threadpool(auth_service.check_key, body.key)
        return Response(status_code=200)

    @router.get("/users", response_model=list[ViewableUser])
    async def list_users():
        """All users as {id, email}."""
        return await run_in_threadpool(auth_service.list_users)

    @router.get("/me", response_model=ViewableUser)
    async def get_current_user():
        """The caller's own profile. AuthMiddleware has set the caller context."""
        return await run_in_threadpool(auth_service.get_user, get_current_user_id())

    @router.get("/health")
    async def health():
        return {"status": "ok"}

    return router
