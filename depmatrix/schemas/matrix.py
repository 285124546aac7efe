from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict


# ==================== Matrix Structure ====================

class Row(BaseModel):
    """One attribute: a matrix axis element and its category"""
    id: int = Field(..., gt=0)
    name: str
    category: str


class Column(BaseModel):
    """Mirrored axis element; name is the string form of the ID"""
    id: int
    name: str


class StructuredMatrix(BaseModel):
    """Rows, mirrored columns and the sparse "{rowId}_{colId}" -> bool map"""
    rows: List[Row] = Field(default_factory=list)
    columns: List[Column] = Field(default_factory=list)
    dependencies: Dict[str, bool] = Field(default_factory=dict)


# ==================== Persisted Record ====================

class MatrixItem(BaseModel):
    """Matrix record as stored by the Persistence Service"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    keyword: str = ""
    created_at: str = Field("", alias="createdAt")
    created_by: str = Field("", alias="createdBy")
    data: StructuredMatrix = Field(default_factory=StructuredMatrix)
    shared_with: List[str] = Field(default_factory=list, alias="sharedWith")


class MatrixSummary(BaseModel):
    """Matrix list entry"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    keyword: Optional[str] = None  # only populated for admins
    created_at: str = Field("", alias="createdAt")
    created_by: str = Field("", alias="createdBy")
    attribute_count: int = 0
    dependency_count: int = 0


# ==================== Requests ====================

class MatrixCreate(BaseModel):
    """Admin create request; title and keyword are checked by the service"""
    title: str = ""
    description: str = ""
    keyword: str = ""
    data: Optional[StructuredMatrix] = None


class MatrixInfoUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    keyword: Optional[str] = None


class MatrixDataUpdate(BaseModel):
    """Admin save of the whole structure"""
    data: StructuredMatrix


class AttributeCreate(BaseModel):
    name: str
    category: str
    id: Optional[int] = None


class AttributeRename(BaseModel):
    name: str


class CellToggle(BaseModel):
    row_id: int
    column_id: int


class KeywordVerify(BaseModel):
    keyword: str


# ==================== Derived Views ====================

class MatrixTotals(BaseModel):
    """Zero-filled aggregates over the upper triangle"""
    row_totals: Dict[int, int] = Field(default_factory=dict)
    column_totals: Dict[int, int] = Field(default_factory=dict)
    category_totals: Dict[str, int] = Field(default_factory=dict)


class CategoryGroup(BaseModel):
    category: str
    rows: List[Row]


class MatrixView(BaseModel):
    """Everything a client needs to render one matrix"""
    matrix: MatrixItem
    totals: MatrixTotals
    categories: List[CategoryGroup]
    editable_cells: List[str]


class VerifyResponse(BaseModel):
    authorized: bool


class ShareLinkResponse(BaseModel):
    link: str
    keyword: str
