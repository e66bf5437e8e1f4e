"""Reusable FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request, WebSocket
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.container import CatalogContainer
from catalog.infrastructure.database.session import session_scope
from catalog.modules.products import CatalogService


def get_container(request: Request) -> CatalogContainer:
    return request.app.state.container


def get_ws_container(websocket: WebSocket) -> CatalogContainer:
    return websocket.app.state.container


async def get_db_session(
    container: CatalogContainer = Depends(get_container),
) -> AsyncGenerator[AsyncSession, None]:
    async for session in session_scope(container.session_factory):
        yield session


def get_catalog_service(
    db: AsyncSession = Depends(get_db_session),
    container: CatalogContainer = Depends(get_container),
) -> CatalogService:
    return CatalogService.with_session(db, container)


__all__ = [
    "get_catalog_service",
    "get_container",
    "get_db_session",
    "get_ws_container",
]
