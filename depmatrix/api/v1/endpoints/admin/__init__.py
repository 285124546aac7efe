"""
Admin API endpoints for DepMatrix.
All endpoints require the admin role.
"""
from fastapi import APIRouter

from depmatrix.api.v1.endpoints.admin import matrices, history, users

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(matrices.router, prefix="/matrices", tags=["Admin Matrices"])
admin_router.include_router(history.router, prefix="/history", tags=["Admin History"])
admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
