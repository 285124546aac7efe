"""
Admin user role management, proxied to the Auth Service.
"""
from fastapi import APIRouter, Depends
from typing import AsyncGenerator

from depmatrix.core.logging_config import logger
from depmatrix.modules.auth.dependencies import get_current_admin
from depmatrix.schemas.auth import CurrentUser, RoleUpdate
from depmatrix.services.persistence_client import AuthServiceClient

router = APIRouter()


async def get_admin_auth_client(
    current_admin: CurrentUser = Depends(get_current_admin)
) -> AsyncGenerator[AuthServiceClient, None]:
    async with AuthServiceClient(token=current_admin.upstream_token) as client:
        yield client


@router.get("")
async def list_users(
    auth_client: AuthServiceClient = Depends(get_admin_auth_client),
    current_admin: CurrentUser = Depends(get_current_admin)
):
    return await auth_client.list_users()


@router.put("/role")
async def update_user_role(
    body: RoleUpdate,
    auth_client: AuthServiceClient = Depends(get_admin_auth_client),
    current_admin: CurrentUser = Depends(get_current_admin)
):
    """Promote or demote a user"""
    result = await auth_client.update_user_role(body.user_id, body.new_role.value)
    logger.info(
        f"Role of user {body.user_id} set to {body.new_role.value} by {current_admin.id}",
        extra={"event_type": "role_update", "target_user": body.user_id, "new_role": body.new_role.value},
    )
    return result
