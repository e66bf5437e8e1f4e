import logging

import pytest

from catalog.infrastructure.storage.blob_store import DeleteOutcome, LocalBlobStore
from catalog.modules.media.purger import BlobPurger
from tests.conftest import stored_blobs


def _put(blob_store: LocalBlobStore, name: str) -> str:
    (blob_store.root / name).write_bytes(b"data")
    return name


@pytest.mark.asyncio
async def test_purge_deletes_existing_and_skips_missing(blob_store):
    _put(blob_store, "a.jpg")
    _put(blob_store, "keep.jpg")

    report = await BlobPurger(blob_store).purge({"a.jpg", "missing.jpg"})

    assert report.deleted == ["a.jpg"]
    assert report.missing == ["missing.jpg"]
    assert report.failed == []
    assert stored_blobs(blob_store) == ["keep.jpg"]


@pytest.mark.asyncio
async def test_purge_empty_set_does_nothing(blob_store):
    report = await BlobPurger(blob_store).purge(frozenset())

    assert report.deleted == report.missing == report.failed == []


@pytest.mark.asyncio
async def test_purge_logs_failures_and_continues(blob_store, monkeypatch, caplog):
    _put(blob_store, "a.jpg")
    _put(blob_store, "b.jpg")
    _put(blob_store, "c.jpg")
    original_delete = blob_store.delete

    def flaky_delete(reference):
        if reference == "a.jpg":
            return DeleteOutcome.IO_ERROR
        if reference == "b.jpg":
            raise RuntimeError("disk on fire")
        return original_delete(reference)

    monkeypatch.setattr(blob_store, "delete", flaky_delete)

    with caplog.at_level(logging.ERROR):
        report = await BlobPurger(blob_store).purge(["a.jpg", "b.jpg", "c.jpg"])

    assert report.failed == ["a.jpg", "b.jpg"]
    assert report.deleted == ["c.jpg"]
    assert "a.jpg" in caplog.text
    assert "b.jpg" in caplog.text


@pytest.mark.asyncio
async def test_purge_refuses_references_outside_root(tmp_path, blob_store):
    outside = tmp_path / "secret.txt"
    outside.write_text("keep me")

    report = await BlobPurger(blob_store).purge(["../secret.txt"])

    assert report.missing == ["../secret.txt"]
    assert outside.exists()
