"""
Admin matrix management endpoints.
"""
from fastapi import APIRouter, Depends, status

from depmatrix.modules.auth.dependencies import get_current_admin, get_matrix_service
from depmatrix.schemas.auth import CurrentUser
from depmatrix.schemas.matrix import (
    AttributeCreate,
    AttributeRename,
    MatrixCreate,
    MatrixDataUpdate,
    MatrixInfoUpdate,
    MatrixItem,
    MatrixView,
    ShareLinkResponse,
)
from depmatrix.services.matrix_service import MatrixService

router = APIRouter()


@router.post("", response_model=MatrixItem, status_code=status.HTTP_201_CREATED)
async def create_matrix(
    payload: MatrixCreate,
    current_admin: CurrentUser = Depends(get_current_admin),
    service: MatrixService = Depends(get_matrix_service)
):
    """Create a matrix; seeded with the default attributes when no data is given"""
    return await service.create_matrix(payload, current_admin)


@router.patch("/{matrix_id}", response_model=MatrixItem)
async def update_matrix_info(
    matrix_id: str,
    info: MatrixInfoUpdate,
    current_admin: CurrentUser = Depends(get_current_admin),
    service: MatrixService = Depends(get_matrix_service)
):
    """Update title, description or access keyword"""
    return await service.update_info(matrix_id, info, current_admin)


@router.put("/{matrix_id}", response_model=MatrixView)
async def save_matrix(
    matrix_id: str,
    body: MatrixDataUpdate,
    current_admin: CurrentUser = Depends(get_current_admin),
    service: MatrixService = Depends(get_matrix_service)
):
    """Overwrite the matrix structure and record an edit_matrix history entry"""
    saved = await service.save_matrix(matrix_id, body.data, current_admin)
    return service.build_view(saved)


@router.delete("/{matrix_id}")
async def delete_matrix(
    matrix_id: str,
    current_admin: CurrentUser = Depends(get_current_admin),
    service: MatrixService = Depends(get_matrix_service)
):
    await service.delete_matrix(matrix_id, current_admin)
    return {"success": True, "message": "Matrix deleted successfully"}


@router.get("/{matrix_id}/share", response_model=ShareLinkResponse)
async def get_share_link(
    matrix_id: str,
    current_admin: CurrentUser = Depends(get_current_admin),
    service: MatrixService = Depends(get_matrix_service)
):
    """Share link and the keyword to hand out with it"""
    return await service.share_link(matrix_id)


# ==================== Attributes ====================

@router.post("/{matrix_id}/attributes", response_model=MatrixView, status_code=status.HTTP_201_CREATED)
async def add_attribute(
    matrix_id: str,
    body: AttributeCreate,
    current_admin: CurrentUser = Depends(get_current_admin),
    service: MatrixService = Depends(get_matrix_service)
):
    """Add an attribute; 409 when the requested ID is taken"""
    saved = await service.add_attribute(matrix_id, body.name, body.category, body.id)
    return service.build_view(saved)


@router.patch("/{matrix_id}/attributes/{row_id}", response_model=MatrixView)
async def rename_attribute(
    matrix_id: str,
    row_id: int,
    body: AttributeRename,
    current_admin: CurrentUser = Depends(get_current_admin),
    service: MatrixService = Depends(get_matrix_service)
):
    saved = await service.rename_attribute(matrix_id, row_id, body.name)
    return service.build_view(saved)


@router.delete("/{matrix_id}/attributes/{row_id}", response_model=MatrixView)
async def remove_attribute(
    matrix_id: str,
    row_id: int,
    current_admin: CurrentUser = Depends(get_current_admin),
    service: MatrixService = Depends(get_matrix_service)
):
    """Remove an attribute together with every dependency that mentions it"""
    saved = await service.remove_attribute(matrix_id, row_id)
    return service.build_view(saved)
