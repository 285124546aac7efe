"""
Custom Exceptions for DepMatrix
===============================

Use these instead of generic Exception to:
1. Make errors more specific and debuggable
2. Enable proper error handling at API layer
3. Provide meaningful error messages to users

Usage:
    from depmatrix.core.exceptions import MatrixNotFoundError, DuplicateIdError

    if not record:
        raise MatrixNotFoundError(matrix_id)

    try:
        matrix = add_attribute(matrix, name, category, requested_id)
    except DuplicateIdError as e:
        logger.warning(f"Attribute insert rejected: {e}")
        raise
"""

from typing import Optional, Any, Dict


class DependencyMatrixError(Exception):
    """Base exception for all DepMatrix errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(DependencyMatrixError):
    """User authentication failed"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class TokenExpiredError(AuthenticationError):
    """Session token has expired"""

    def __init__(self):
        super().__init__("Token has expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """Session token is invalid"""

    def __init__(self):
        super().__init__("Invalid token")
        self.code = "INVALID_TOKEN"


class AuthorizationError(DependencyMatrixError):
    """User not authorized for this action"""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class AccessDeniedError(AuthorizationError):
    """Access keyword missing or wrong for a matrix. Recoverable: re-prompt."""

    def __init__(self, matrix_id: str, message: str = "Invalid access keyword"):
        super().__init__(message)
        self.code = "ACCESS_DENIED"
        self.details = {"matrix_id": matrix_id}


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(DependencyMatrixError):
    """Base class for not found errors"""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


NotFoundError = ResourceNotFoundError


class MatrixNotFoundError(ResourceNotFoundError):
    """Matrix record not found"""

    def __init__(self, matrix_id: str):
        super().__init__("Matrix", matrix_id)


class AttributeNotFoundError(ResourceNotFoundError):
    """Attribute (row) not found in a matrix"""

    def __init__(self, row_id: int, matrix_id: str = ""):
        super().__init__("Attribute", str(row_id))
        self.details["matrix_id"] = matrix_id


class HistoryEntryNotFoundError(ResourceNotFoundError):
    """History entry not found"""

    def __init__(self, entry_id: str):
        super().__init__("History_Entry", entry_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(DependencyMatrixError):
    """Input validation failed"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class DuplicateIdError(ValidationError):
    """Requested attribute ID already exists in the matrix"""

    def __init__(self, row_id: int):
        super().__init__(f"Attribute ID {row_id} already exists", field="id")
        self.code = "DUPLICATE_ID"
        self.details["row_id"] = row_id


class NonEditableCellError(ValidationError):
    """Cell lies on the diagonal or in the lower triangle"""

    def __init__(self, row_id: int, col_id: int):
        super().__init__(
            f"Cell {row_id}_{col_id} is not editable: row ID must be lower than column ID"
        )
        self.code = "CELL_NOT_EDITABLE"
        self.details.update({"row_id": row_id, "column_id": col_id})


# ============================================
# Persistence Errors
# ============================================

class PersistenceError(DependencyMatrixError):
    """Persistence Service request failed (transient; local state may be unsynchronized)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, code="PERSISTENCE_ERROR")
        if status_code:
            self.details["status_code"] = status_code


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: DependencyMatrixError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
