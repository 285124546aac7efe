"""
Admin History endpoints.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from depmatrix.core.config import settings
from depmatrix.modules.auth.dependencies import get_current_admin
from depmatrix.schemas.auth import CurrentUser
from depmatrix.schemas.history import HistoryAction, HistoryEntriesResponse
from depmatrix.schemas.matrix import StructuredMatrix, MatrixTotals
from depmatrix.services.history_service import HistoryLog, history_log
from depmatrix.services.matrix_model import compute_totals

router = APIRouter()


def get_history_log() -> HistoryLog:
    return history_log


@router.get("", response_model=HistoryEntriesResponse)
async def list_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.HISTORY_PAGE_SIZE, ge=1, le=settings.HISTORY_MAX_PAGE_SIZE),
    action: Optional[HistoryAction] = None,
    user_id: Optional[str] = None,
    matrix_id: Optional[str] = None,
    history: HistoryLog = Depends(get_history_log),
    current_admin: CurrentUser = Depends(get_current_admin)
):
    """List history entries, newest first"""
    return history.list_entries(
        action=action.value if action else None,
        user_id=user_id,
        matrix_id=matrix_id,
        page=page,
        page_size=page_size,
    )


@router.get("/actions")
async def get_available_actions(
    history: HistoryLog = Depends(get_history_log),
    current_admin: CurrentUser = Depends(get_current_admin)
):
    """Distinct action types present in the log, for filtering"""
    return {"actions": history.available_actions()}


@router.get("/{entry_id}/snapshot")
async def get_snapshot(
    entry_id: str,
    history: HistoryLog = Depends(get_history_log),
    current_admin: CurrentUser = Depends(get_current_admin)
):
    """Matrix snapshot stored on a submit/save entry, with its totals"""
    matrix: StructuredMatrix = history.get_snapshot(entry_id)
    totals: MatrixTotals = compute_totals(matrix)
    return {"matrix": matrix.model_dump(), "totals": totals.model_dump()}
