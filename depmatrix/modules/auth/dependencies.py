from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import AsyncGenerator

from depmatrix.core.logging_config import set_user_id
from depmatrix.core.security import decode_token
from depmatrix.schemas.auth import CurrentUser, UserRole
from depmatrix.services.matrix_service import MatrixService
from depmatrix.services.matrix_store import MatrixStore, RemoteMatrixStore, create_matrix_store

security = HTTPBearer()


def _user_from_token(token: str) -> CurrentUser:
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    role = payload.get("role", UserRole.USER.value)
    if role not in (UserRole.USER.value, UserRole.ADMIN.value):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid role in token"
        )

    set_user_id(str(user_id))
    return CurrentUser(
        id=str(user_id),
        role=UserRole(role),
        username=payload.get("username"),
        upstream_token=payload.get("upstream_token"),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> CurrentUser:
    """Get current authenticated user from the session token"""
    return _user_from_token(credentials.credentials)


async def get_current_admin(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """Get current admin user"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


# ==================== Service Dependencies ====================

async def get_matrix_store(
    current_user: CurrentUser = Depends(get_current_user)
) -> AsyncGenerator[MatrixStore, None]:
    """Record store for this request; the caller's upstream token is forwarded"""
    store = create_matrix_store(token=current_user.upstream_token)
    try:
        yield store
    finally:
        if isinstance(store, RemoteMatrixStore):
            await store.client.close()


async def get_matrix_service(
    store: MatrixStore = Depends(get_matrix_store)
) -> MatrixService:
    return MatrixService(store)
