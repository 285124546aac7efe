from fastapi import APIRouter, Depends, status
from typing import AsyncGenerator

from depmatrix.core.exceptions import AuthenticationError
from depmatrix.core.logging_config import logger, set_user_id
from depmatrix.core.security import create_access_token
from depmatrix.schemas.auth import (
    CurrentUser,
    LoginResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    UserRole,
)
from depmatrix.modules.auth.dependencies import get_current_user
from depmatrix.services.persistence_client import AuthServiceClient

router = APIRouter()


async def get_auth_client() -> AsyncGenerator[AuthServiceClient, None]:
    async with AuthServiceClient() as client:
        yield client


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    auth_client: AuthServiceClient = Depends(get_auth_client)
):
    """Register a new account with the Auth Service"""
    created = await auth_client.register(user_data.username, user_data.email, user_data.password)
    logger.log_auth_event("register", True, username=user_data.username)
    return created


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: UserLogin,
    auth_client: AuthServiceClient = Depends(get_auth_client)
):
    """Authenticate against the Auth Service and issue a session token"""
    result = await auth_client.login(credentials.username, credentials.password)
    user = result["user"]

    role = user.get("role", UserRole.USER.value)
    if role not in (UserRole.USER.value, UserRole.ADMIN.value):
        raise AuthenticationError(f"Unsupported role: {role}")

    user_id = str(user["id"])
    set_user_id(user_id)
    token = create_access_token({
        "sub": user_id,
        "role": role,
        "username": user.get("username") or credentials.username,
        "upstream_token": result["token"],
    })

    return LoginResponse(
        access_token=token,
        user=UserResponse(id=user_id, role=UserRole(role), username=user.get("username") or credentials.username),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser = Depends(get_current_user)):
    """Current user from the session token"""
    return UserResponse(id=current_user.id, role=current_user.role, username=current_user.username)


@router.post("/logout")
async def logout(
    current_user: CurrentUser = Depends(get_current_user),
    auth_client: AuthServiceClient = Depends(get_auth_client)
):
    """End the session. Tokens are stateless; the client drops its copy."""
    logger.log_auth_event("logout", True, username=current_user.username or current_user.id)
    return await auth_client.logout()
