"""
Matrix endpoints for authenticated users.

Non-admins must unlock a matrix with its access keyword before they can
read or edit it; admins pass the gate unconditionally.
"""
from fastapi import APIRouter, Depends
from typing import List

from depmatrix.core.config import settings
from depmatrix.modules.auth.dependencies import get_current_user, get_matrix_service
from depmatrix.schemas.auth import CurrentUser
from depmatrix.schemas.history import HistoryEntry
from depmatrix.schemas.matrix import (
    CellToggle,
    KeywordVerify,
    MatrixSummary,
    MatrixTotals,
    MatrixView,
    VerifyResponse,
)
from depmatrix.services.matrix_service import MatrixService

router = APIRouter()


@router.get("", response_model=List[MatrixSummary])
async def list_matrices(
    current_user: CurrentUser = Depends(get_current_user),
    service: MatrixService = Depends(get_matrix_service)
):
    """List all matrices"""
    return await service.list_matrices(current_user)


@router.get("/categories")
async def list_categories(current_user: CurrentUser = Depends(get_current_user)):
    """Category choices for new attributes"""
    return {"categories": settings.MATRIX_CATEGORIES, "default": settings.DEFAULT_CATEGORY}


@router.get("/{matrix_id}", response_model=MatrixView)
async def get_matrix(
    matrix_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: MatrixService = Depends(get_matrix_service)
):
    """Matrix with totals and category grouping (403 until unlocked)"""
    return await service.get_view(matrix_id, current_user)


@router.post("/{matrix_id}/verify", response_model=VerifyResponse)
async def verify_keyword(
    matrix_id: str,
    body: KeywordVerify,
    current_user: CurrentUser = Depends(get_current_user),
    service: MatrixService = Depends(get_matrix_service)
):
    """Unlock a matrix for the current user"""
    authorized = await service.verify_access(matrix_id, current_user, body.keyword)
    return VerifyResponse(authorized=authorized)


@router.get("/{matrix_id}/totals", response_model=MatrixTotals)
async def get_totals(
    matrix_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: MatrixService = Depends(get_matrix_service)
):
    return await service.get_totals(matrix_id, current_user)


@router.post("/{matrix_id}/cells", response_model=MatrixView)
async def toggle_cell(
    matrix_id: str,
    body: CellToggle,
    current_user: CurrentUser = Depends(get_current_user),
    service: MatrixService = Depends(get_matrix_service)
):
    """Flip one upper-triangle dependency and persist the matrix"""
    return await service.toggle_cell(matrix_id, current_user, body.row_id, body.column_id)


@router.post("/{matrix_id}/submit", response_model=HistoryEntry)
async def submit_matrix(
    matrix_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: MatrixService = Depends(get_matrix_service)
):
    """Record a submit_matrix history entry with a snapshot of the matrix"""
    return await service.submit(matrix_id, current_user)
