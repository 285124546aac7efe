# Authentication module

from depmatrix.modules.auth.dependencies import (
    get_current_user,
    get_current_admin,
    get_matrix_store,
    get_matrix_service,
)

__all__ = [
    "get_current_user",
    "get_current_admin",
    "get_matrix_store",
    "get_matrix_service",
]
