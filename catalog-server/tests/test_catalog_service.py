import json

import pytest

from catalog.core.exceptions import StoreError, ValidationError
from catalog.infrastructure.cache.query_cache import listing_key, product_key
from catalog.interfaces.ws.notifier import MutationAction
from catalog.modules.media.exceptions import SignatureRejection, UnknownImageReferenceError
from catalog.modules.products import ProductForm, ProductNotFoundError
from catalog.modules.products.service import parse_kept_images, validate_create, validate_update
from tests.conftest import JPEG_BYTES, PNG_BYTES, TEXT_BYTES, staged_files, stored_blobs


def _form(**overrides) -> ProductForm:
    values = {"name": "Pen", "price": "10", "description": "blue ink", "status": None}
    values.update(overrides)
    return ProductForm(**values)


@pytest.mark.asyncio
async def test_create_promotes_uploads_and_notifies(service, repository, stager, blob_store, notifier, make_upload):
    uploads = [make_upload("a.jpg", "image/jpeg", JPEG_BYTES), make_upload("b.png", "image/png", PNG_BYTES)]

    result = await service.create_product(_form(), uploads)

    assert len(result.images) == 2
    assert result.images[0].endswith(".jpg") and result.images[1].endswith(".png")
    assert stored_blobs(blob_store) == sorted(result.images)
    assert staged_files(stager) == []
    assert json.loads(repository.rows[result.product_id].images) == result.images
    assert repository.rows[result.product_id].status == 1
    assert [(event.action, event.product_id) for event in notifier.events] == [
        (MutationAction.CREATE, result.product_id)
    ]


@pytest.mark.asyncio
async def test_create_requires_name_and_price(service, repository, stager, notifier, make_upload):
    uploads = [make_upload("a.jpg", "image/jpeg", JPEG_BYTES)]

    with pytest.raises(ValidationError):
        await service.create_product(_form(price="  "), uploads)

    assert repository.rows == {}
    assert staged_files(stager) == []
    assert notifier.events == []


@pytest.mark.asyncio
async def test_create_with_disguised_file_writes_nothing(service, repository, stager, blob_store, make_upload):
    uploads = [
        make_upload("a.jpg", "image/jpeg", JPEG_BYTES),
        make_upload("evil.jpg", "image/jpeg", TEXT_BYTES),
    ]

    with pytest.raises(SignatureRejection):
        await service.create_product(_form(), uploads)

    assert repository.rows == {}
    assert stored_blobs(blob_store) == []
    assert staged_files(stager) == []


@pytest.mark.asyncio
async def test_store_failure_removes_promoted_blobs_and_keeps_cache(
    service, repository, stager, blob_store, cache, notifier, make_upload
):
    cache.set(listing_key(1, 12), b"cached page")
    repository.fail_on_commit = True
    uploads = [make_upload("a.jpg", "image/jpeg", JPEG_BYTES)]

    with pytest.raises(StoreError):
        await service.create_product(_form(), uploads)

    assert repository.rows == {}
    assert repository.rollbacks >= 1
    assert stored_blobs(blob_store) == []
    assert staged_files(stager) == []
    assert cache.get(listing_key(1, 12)) == b"cached page"
    assert notifier.events == []


@pytest.mark.asyncio
async def test_update_reconciles_images_and_purges_orphans(service, repository, blob_store, notifier, make_upload):
    for name in ("old-a.jpg", "old-b.jpg"):
        (blob_store.root / name).write_bytes(JPEG_BYTES)
    product_id = repository.seed(name="Pen", price=10, images=json.dumps(["old-a.jpg", "old-b.jpg"]))
    uploads = [make_upload("new.png", "image/png", PNG_BYTES)]

    result = await service.update_product(product_id, _form(name="", price=""), json.dumps(["old-b.jpg"]), uploads)

    assert result.images[0] == "old-b.jpg"
    assert result.images[1].endswith(".png")
    assert sorted(stored_blobs(blob_store)) == sorted(result.images)
    stored = repository.rows[product_id]
    assert stored.name == "Pen"
    assert json.loads(stored.images) == result.images
    assert notifier.events[-1].action is MutationAction.UPDATE


@pytest.mark.asyncio
async def test_update_invalidates_cached_reads(service, repository, cache):
    product_id = repository.seed(name="Pen", price=10)
    await service.list_page(1, 12)
    await service.get_product(product_id)
    assert cache.get(listing_key(1, 12)) is not None

    await service.update_product(product_id, _form(name="Pencil", price="3"), None, [])

    assert cache.get(listing_key(1, 12)) is None
    assert cache.get(product_key(product_id)) is None
    page = json.loads(await service.list_page(1, 12))
    assert page["data"][0]["name"] == "Pencil"


@pytest.mark.asyncio
async def test_update_unknown_product_discards_uploads(service, stager, blob_store, notifier, make_upload):
    uploads = [make_upload("a.jpg", "image/jpeg", JPEG_BYTES)]

    with pytest.raises(ProductNotFoundError):
        await service.update_product(404, _form(), "[]", uploads)

    assert staged_files(stager) == []
    assert stored_blobs(blob_store) == []
    assert notifier.events == []


@pytest.mark.asyncio
async def test_strict_mode_refuses_foreign_kept_reference(service, repository, stager, blob_store, make_upload):
    service.strict_kept_images = True
    (blob_store.root / "mine.jpg").write_bytes(JPEG_BYTES)
    product_id = repository.seed(name="Pen", price=10, images=json.dumps(["mine.jpg"]))
    uploads = [make_upload("a.png", "image/png", PNG_BYTES)]

    with pytest.raises(UnknownImageReferenceError):
        await service.update_product(product_id, _form(), json.dumps(["mine.jpg", "theirs.jpg"]), uploads)

    assert stored_blobs(blob_store) == ["mine.jpg"]
    assert staged_files(stager) == []
    assert json.loads(repository.rows[product_id].images) == ["mine.jpg"]


@pytest.mark.asyncio
async def test_delete_removes_row_and_images(service, repository, blob_store, notifier):
    (blob_store.root / "a.jpg").write_bytes(JPEG_BYTES)
    product_id = repository.seed(name="Pen", price=10, images=json.dumps(["a.jpg"]))

    await service.delete_product(product_id)

    assert product_id not in repository.rows
    assert stored_blobs(blob_store) == []
    assert notifier.events[-1].action is MutationAction.DELETE
    with pytest.raises(ProductNotFoundError):
        await service.get_product(product_id)


@pytest.mark.asyncio
async def test_delete_unknown_product(service):
    with pytest.raises(ProductNotFoundError):
        await service.delete_product(99)


@pytest.mark.asyncio
async def test_listing_is_newest_first_and_paginated(service, repository):
    for index in range(3):
        repository.seed(name=f"item-{index}", price=index)

    first = json.loads(await service.list_page(1, 2))
    second = json.loads(await service.list_page(2, 2))

    assert first["totalItems"] == 3
    assert [item["name"] for item in first["data"]] == ["item-2", "item-1"]
    assert [item["name"] for item in second["data"]] == ["item-0"]


def test_validate_create_rejects_bad_price():
    with pytest.raises(ValidationError):
        validate_create(_form(price="cheap"))
    with pytest.raises(ValidationError):
        validate_create(_form(price="-1"))
    with pytest.raises(ValidationError):
        validate_create(_form(price="nan"))


def test_validate_update_keeps_blank_fields():
    fields = validate_update(ProductForm(name=" ", price="", status="0"))

    assert fields.name is None
    assert fields.price is None
    assert fields.status == 0


@pytest.mark.parametrize("raw, expected", [(None, []), ("", []), ('["a.jpg"]', ["a.jpg"])])
def test_parse_kept_images(raw, expected):
    assert parse_kept_images(raw) == expected


@pytest.mark.parametrize("raw", ["not json", '{"a": 1}', "[1, 2]"])
def test_parse_kept_images_rejects_malformed(raw):
    with pytest.raises(ValidationError):
        parse_kept_images(raw)


@pytest.mark.asyncio
async def test_insert_failure_removes_promoted_blobs(service, repository, stager, blob_store, notifier, make_upload):
    repository.fail_on_insert = True
    uploads = [make_upload("a.jpg", "image/jpeg", JPEG_BYTES), make_upload("b.png", "image/png", PNG_BYTES)]

    with pytest.raises(StoreError):
        await service.create_product(_form(), uploads)

    assert repository.rows == {}
    assert repository.rollbacks == 1
    assert stored_blobs(blob_store) == []
    assert staged_files(stager) == []
    assert notifier.events == []


@pytest.mark.asyncio
async def test_update_store_failure_keeps_previous_blobs(
    service, repository, stager, blob_store, cache, notifier, make_upload
):
    for name in ("old-a.jpg", "old-b.jpg"):
        (blob_store.root / name).write_bytes(JPEG_BYTES)
    product_id = repository.seed(name="Pen", price=10, images=json.dumps(["old-a.jpg", "old-b.jpg"]))
    cache.set(listing_key(1, 12), b"cached page")
    cache.set(product_key(product_id), b"cached product")
    repository.fail_on_commit = True
    uploads = [make_upload("new.png", "image/png", PNG_BYTES)]

    with pytest.raises(StoreError):
        await service.update_product(product_id, _form(name="Pencil"), json.dumps(["old-b.jpg"]), uploads)

    assert stored_blobs(blob_store) == ["old-a.jpg", "old-b.jpg"]
    assert staged_files(stager) == []
    stored = repository.rows[product_id]
    assert stored.name == "Pen"
    assert json.loads(stored.images) == ["old-a.jpg", "old-b.jpg"]
    assert cache.get(listing_key(1, 12)) == b"cached page"
    assert cache.get(product_key(product_id)) == b"cached product"
    assert notifier.events == []


@pytest.mark.asyncio
async def test_delete_store_failure_keeps_row_and_blobs(service, repository, blob_store, cache, notifier):
    (blob_store.root / "a.jpg").write_bytes(JPEG_BYTES)
    product_id = repository.seed(name="Pen", price=10, images=json.dumps(["a.jpg"]))
    cache.set(listing_key(1, 12), b"cached page")
    repository.fail_on_commit = True

    with pytest.raises(StoreError):
        await service.delete_product(product_id)

    assert product_id in repository.rows
    assert stored_blobs(blob_store) == ["a.jpg"]
    assert cache.get(listing_key(1, 12)) == b"cached page"
    assert notifier.events == []


@pytest.mark.asyncio
async def test_events_are_published_after_cache_invalidation(service, repository, cache, notifier, make_upload):
    seen_cached = []
    original_broadcast = notifier.broadcast

    def checking_broadcast(event):
        seen_cached.append(
            (cache.get(listing_key(1, 12)), cache.get(product_key(event.product_id)))
        )
        return original_broadcast(event)

    notifier.broadcast = checking_broadcast
    product_id = repository.seed(name="Pen", price=10)

    for mutate in (
        lambda: service.update_product(product_id, _form(name="Pencil"), None, []),
        lambda: service.create_product(_form(name="Ruler"), []),
        lambda: service.delete_product(product_id),
    ):
        await service.list_page(1, 12)
        await service.get_product(product_id)
        await mutate()

    assert seen_cached == [(None, None)] * 3
