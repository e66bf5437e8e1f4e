"""Shared test fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from catalog.core.config import DatabaseSettings, Settings, StorageSettings
from catalog.infrastructure.cache.query_cache import QueryCache
from catalog.infrastructure.storage.blob_store import LocalBlobStore
from catalog.interfaces.ws.notifier import ChangeNotifier
from catalog.main import create_app
from catalog.modules.media.models import UploadedFile
from catalog.modules.media.purger import BlobPurger
from catalog.modules.media.staging import UploadStager
from catalog.modules.media.upload_gate import DeclaredTypeFilter, UploadGate
from catalog.modules.products.service import CatalogService
from tests.fakes import FakeProductRepository, RecordingNotifier

JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00" + b"\x00" * 48 + b"\xff\xd9"
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 48
GIF_BYTES = b"GIF89a\x01\x00\x01\x00\x80\x00\x00" + b"\x00" * 32 + b";"
WEBP_BYTES = b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 40
TEXT_BYTES = b"this is plain text pretending to be a photo\n"

IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp"]
IMAGE_MIME_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        environment="test",
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"),
        storage=StorageSettings(photo_dir=tmp_path / "photo", staging_dir=tmp_path / "staging"),
    )


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def blob_store(tmp_path: Path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "photo")


@pytest.fixture
def stager(tmp_path: Path) -> UploadStager:
    return UploadStager(tmp_path / "staging", max_file_bytes=1024 * 1024)


@pytest.fixture
def gate(stager: UploadStager) -> UploadGate:
    return UploadGate(
        stager=stager,
        declared_filter=DeclaredTypeFilter.from_lists(IMAGE_EXTENSIONS, IMAGE_MIME_TYPES),
        max_files=10,
    )


@pytest.fixture
def make_upload(stager: UploadStager) -> Callable[..., UploadedFile]:
    """Write ``data`` into the staging area as if the transport had received it."""
    counter = {"n": 0}

    def _make(file_name: str, content_type: str | None, data: bytes) -> UploadedFile:
        counter["n"] += 1
        path = stager.staging_root / f"staged-{counter['n']}{Path(file_name).suffix}"
        path.write_bytes(data)
        return UploadedFile(
            staged_path=path,
            file_name=file_name,
            content_type=content_type,
            size_bytes=len(data),
        )

    return _make


@pytest.fixture
def repository() -> FakeProductRepository:
    return FakeProductRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache(ttl_seconds=300)


@pytest.fixture
def service(
    repository: FakeProductRepository,
    stager: UploadStager,
    gate: UploadGate,
    blob_store: LocalBlobStore,
    notifier: ChangeNotifier,
    cache: QueryCache,
) -> CatalogService:
    return CatalogService(
        repository=repository,
        stager=stager,
        gate=gate,
        blob_store=blob_store,
        purger=BlobPurger(blob_store),
        notifier=notifier,
        cache=cache,
    )


def staged_files(stager: UploadStager) -> list[Path]:
    return sorted(stager.staging_root.iterdir())


def stored_blobs(blob_store: LocalBlobStore) -> list[str]:
    return sorted(path.name for path in blob_store.root.iterdir())
