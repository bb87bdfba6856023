"""
Auth API Endpoints.

Registration, login, token refresh and the current user's profile.
"""

from fastapi import APIRouter

from notegraph.backend.core.dependencies import CurrentUser, DbSession, RequestId
from notegraph.backend.schemas.base import ApiResponse, ResponseMetadata
from notegraph.backend.schemas.user import (
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from notegraph.backend.services.auth import AuthService

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[AuthResponse],
    status_code=201,
    summary="Register",
)
async def register(
    data: RegisterRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AuthResponse]:
    service = AuthService(db)
    user, tokens = await service.register(data.email, data.password, data.name)
    return ApiResponse(
        message="User registered",
        data=AuthResponse(user=UserResponse.model_validate(user), tokens=tokens),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/login",
    response_model=ApiResponse[AuthResponse],
    summary="Log in",
)
async def login(
    data: LoginRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[AuthResponse]:
    service = AuthService(db)
    user, tokens = await service.login(data.email, data.password)
    return ApiResponse(
        message="Login successful",
        data=AuthResponse(user=UserResponse.model_validate(user), tokens=tokens),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenResponse],
    summary="Refresh access token",
)
async def refresh(
    data: RefreshRequest,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[TokenResponse]:
    service = AuthService(db)
    return ApiResponse(
        data=await service.refresh(data.refresh_token),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/profile",
    response_model=ApiResponse[UserResponse],
    summary="Get profile",
)
async def get_profile(
    user: CurrentUser,
    request_id: RequestId,
) -> ApiResponse[UserResponse]:
    return ApiResponse(
        data=UserResponse.model_validate(user),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.put(
    "/profile",
    response_model=ApiResponse[UserResponse],
    summary="Update profile",
)
async def update_profile(
    data: ProfileUpdate,
    user: CurrentUser,
    db: DbSession,
    request_id: RequestId,
) -> ApiResponse[UserResponse]:
    service = AuthService(db)
    updated = await service.update_profile(user, data.name)
    return ApiResponse(
        message="Profile updated",
        data=UserResponse.model_validate(updated),
        metadata=ResponseMetadata(request_id=request_id),
    )
