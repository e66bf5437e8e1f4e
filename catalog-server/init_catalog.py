"""
Initialize the catalog store.
Creates the products table and the image directories for a fresh install.
"""
import asyncio
from typing import Optional

from catalog.core.config import Settings, get_settings
from catalog.core.container import CatalogContainer
from catalog.main import resolve_storage_paths


async def init_catalog(settings: Optional[Settings] = None) -> CatalogContainer:
    """Create tables and storage directories; returns the disposed container."""
    container = CatalogContainer.build(resolve_storage_paths(settings or get_settings()))
    try:
        await container.start()
    finally:
        await container.shutdown()
    return container


if __name__ == "__main__":
    ready = asyncio.run(init_catalog())
    print("=" * 50)
    print("Catalog initialized")
    print(f"Database: {ready.settings.database_url}")
    print(f"Images:   {ready.blob_store.root}")
    print(f"Staging:  {ready.stager.staging_root}")
    print("=" * 50)
