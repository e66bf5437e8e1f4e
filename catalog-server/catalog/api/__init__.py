from fastapi import APIRouter

from catalog.api.routers import products


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(products.router, tags=["products"])
    return router


__all__ = [
    "create_api_router",
]
