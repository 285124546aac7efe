from fastapi import APIRouter
from depmatrix.api.v1.endpoints import auth, matrices
from depmatrix.api.v1.endpoints.admin import admin_router

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "depmatrix"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(matrices.router, prefix="/matrices", tags=["Matrices"])
api_router.include_router(admin_router)
