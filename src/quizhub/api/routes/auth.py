"""Authentication routes.

This module handles HTTP endpoints for user registration, login, token
refresh and account management.

Handlers are plain ``def`` functions: FastAPI runs them in its threadpool, so
bcrypt hashing never blocks the event loop.
"""

from typing import Any

from fastapi import APIRouter, Depends, status

from quizhub.config import API_PREFIX
from quizhub.core.dependencies import (
    AdminDep,
    AuthServiceDep,
    PrincipalDep,
    limit_auth_attempts,
)
from quizhub.schemas.common import ApiResponse
from quizhub.schemas.user import (
    AuthResult,
    ChangePasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UpdateProfileRequest,
    UpdateUserStatusRequest,
    UserPublic,
)

router = APIRouter(prefix=f"{API_PREFIX}/auth", tags=["Auth"])

# Failed attempts on these routes count towards the per-client limit
rate_limited = [Depends(limit_auth_attempts)]


@router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    status_code=status.HTTP_201_CREATED,
    dependencies=rate_limited,
    summary="Register a new user",
)
def register(req: RegisterRequest, auth_service: AuthServiceDep) -> ApiResponse[AuthResult]:
    """Register a new user and sign them in.

    Args:
        req: Registration request with email, password and optional name.
        auth_service: Injected AuthService instance.

    Returns:
        Envelope with the new user and a token pair.
    """
    result = auth_service.register(req.email, req.password, req.name)
    return ApiResponse(data=result, message="User registered successfully")


@router.post(
    "/login",
    response_model=ApiResponse[AuthResult],
    dependencies=rate_limited,
    summary="Login",
)
def login(req: LoginRequest, auth_service: AuthServiceDep) -> ApiResponse[AuthResult]:
    """Login with email and password.

    Args:
        req: Login request with email and password.
        auth_service: Injected AuthService instance.

    Returns:
        Envelope with the user and a fresh token pair.
    """
    result = auth_service.login(req.email, req.password)
    return ApiResponse(data=result, message="Login successful")


@router.post("/refresh", response_model=ApiResponse[TokenPair], summary="Refresh tokens")
def refresh(req: RefreshRequest, auth_service: AuthServiceDep) -> ApiResponse[TokenPair]:
    """Exchange a refresh token for a new access/refresh pair."""
    pair = auth_service.refresh(req.refresh_token)
    return ApiResponse(data=pair, message="Tokens refreshed successfully")


@router.post("/logout", response_model=ApiResponse[Any], summary="Logout")
def logout(principal: PrincipalDep, auth_service: AuthServiceDep) -> ApiResponse[Any]:
    """Logout endpoint.

    Note: tokens are stateless, so logout is completed client-side by
    discarding them. Issued tokens stay valid until they expire.
    """
    auth_service.logout(principal)
    return ApiResponse(message="Logout successful")


@router.get("/me", response_model=ApiResponse[UserPublic], summary="Current user")
def me(principal: PrincipalDep, auth_service: AuthServiceDep) -> ApiResponse[UserPublic]:
    return ApiResponse(data=auth_service.get_profile(principal))


@router.put("/profile", response_model=ApiResponse[UserPublic], summary="Update profile")
def update_profile(
    req: UpdateProfileRequest,
    principal: PrincipalDep,
    auth_service: AuthServiceDep,
) -> ApiResponse[UserPublic]:
    user = auth_service.update_profile(principal, req.name)
    return ApiResponse(data=user, message="Profile updated successfully")


@router.post(
    "/change-password", response_model=ApiResponse[Any], summary="Change password"
)
def change_password(
    req: ChangePasswordRequest,
    principal: PrincipalDep,
    auth_service: AuthServiceDep,
) -> ApiResponse[Any]:
    """Change the password of the current user.

    Raises:
        BadRequestError: If the current password is wrong.
    """
    auth_service.change_password(principal, req.current_password, req.new_password)
    return ApiResponse(message="Password changed successfully")


@router.post(
    "/disable-2fa", response_model=ApiResponse[UserPublic], summary="Disable 2FA"
)
def disable_two_factor(
    principal: PrincipalDep, auth_service: AuthServiceDep
) -> ApiResponse[UserPublic]:
    user = auth_service.disable_two_factor(principal)
    return ApiResponse(data=user, message="Two-factor authentication disabled")


@router.get(
    "/users/{user_id}", response_model=ApiResponse[UserPublic], summary="Get a user"
)
def get_user(
    user_id: str, admin: AdminDep, auth_service: AuthServiceDep
) -> ApiResponse[UserPublic]:
    """Look up any user. Admin only."""
    return ApiResponse(data=auth_service.get_user(user_id))


@router.put(
    "/users/{user_id}/status",
    response_model=ApiResponse[UserPublic],
    summary="Activate or deactivate a user",
)
def update_user_status(
    user_id: str,
    req: UpdateUserStatusRequest,
    admin: AdminDep,
    auth_service: AuthServiceDep,
) -> ApiResponse[UserPublic]:
    """Activate or deactivate an account. Admin only.

    Deactivated users cannot login or refresh; access tokens they already
    hold keep working until they expire.
    """
    user = auth_service.set_user_active(user_id, req.is_active)
    return ApiResponse(data=user, message="User status updated successfully")
