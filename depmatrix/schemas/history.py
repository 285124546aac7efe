from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from enum import Enum


class HistoryAction(str, Enum):
    """Kinds of change recorded in the history log"""
    ADD = "add"
    REMOVE = "remove"
    SUBMIT_MATRIX = "submit_matrix"
    EDIT_MATRIX = "edit_matrix"


class HistoryEntry(BaseModel):
    """One append-only change record"""
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    id: str
    matrix_id: Optional[str] = Field(None, alias="matrixId")
    user_id: str = Field(..., alias="userId")
    user_role: str = Field(..., alias="userRole")
    timestamp: str  # ISO-8601
    action: HistoryAction
    row_id: Optional[int] = Field(None, alias="rowId")
    column_id: Optional[int] = Field(None, alias="columnId")
    row_name: Optional[str] = Field(None, alias="rowName")
    column_name: Optional[str] = Field(None, alias="columnName")
    cell_key: Optional[str] = Field(None, alias="cellKey")
    details: Optional[str] = None
    matrix_snapshot: Optional[str] = Field(None, alias="matrixSnapshot")


class HistoryEntriesResponse(BaseModel):
    """Paginated history listing, newest first"""
    items: List[HistoryEntry]
    total: int
    page: int
    page_size: int
    total_pages: int
