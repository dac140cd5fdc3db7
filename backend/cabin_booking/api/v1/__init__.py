"""Version 1 API routers."""

from fastapi import APIRouter

from . import health, reservations, rpc

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(rpc.router, prefix="/rpc", tags=["rpc"])
router.include_router(
    reservations.router, prefix="/reservations", tags=["reservations"]
)

__all__ = ["router"]
