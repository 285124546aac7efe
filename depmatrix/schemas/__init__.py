# Pydantic schemas
from depmatrix.schemas.matrix import (
    Row,
    Column,
    StructuredMatrix,
    MatrixItem,
    MatrixSummary,
    MatrixCreate,
    MatrixInfoUpdate,
    MatrixDataUpdate,
    AttributeCreate,
    AttributeRename,
    CellToggle,
    KeywordVerify,
    MatrixTotals,
    CategoryGroup,
    MatrixView,
    VerifyResponse,
    ShareLinkResponse,
)
from depmatrix.schemas.history import HistoryAction, HistoryEntry, HistoryEntriesResponse
from depmatrix.schemas.auth import (
    UserRole,
    UserLogin,
    UserRegister,
    CurrentUser,
    UserResponse,
    LoginResponse,
    RoleUpdate,
)
