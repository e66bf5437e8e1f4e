import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from catalog.modules.media.exceptions import FileTooLargeError
from catalog.modules.media.staging import UploadStager, sanitize_filename
from tests.conftest import JPEG_BYTES, PNG_BYTES, staged_files


def _upload(name: str, data: bytes, content_type: str = "image/jpeg") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(data),
        filename=name,
        headers=Headers({"content-type": content_type}),
    )


@pytest.mark.asyncio
async def test_stage_writes_upload_to_staging_root(stager):
    staged = await stager.stage(_upload("../../etc/Photo.JPG", JPEG_BYTES))

    assert staged.file_name == "Photo.JPG"
    assert staged.content_type == "image/jpeg"
    assert staged.size_bytes == len(JPEG_BYTES)
    assert staged.staged_path.parent == stager.staging_root
    assert staged.staged_path.suffix == ".jpg"
    assert staged.staged_path.read_bytes() == JPEG_BYTES


@pytest.mark.asyncio
async def test_stage_all_discards_batch_when_a_file_is_too_large(tmp_path):
    stager = UploadStager(tmp_path / "staging", max_file_bytes=len(PNG_BYTES))
    uploads = [_upload("small.png", PNG_BYTES, "image/png"), _upload("big.png", PNG_BYTES * 2, "image/png")]

    with pytest.raises(FileTooLargeError):
        await stager.stage_all(uploads)

    assert staged_files(stager) == []


@pytest.mark.asyncio
async def test_discard_tolerates_missing_files(stager, make_upload):
    item = make_upload("a.jpg", "image/jpeg", JPEG_BYTES)
    item.staged_path.unlink()

    await stager.discard([item])

    assert staged_files(stager) == []


@pytest.mark.parametrize(
    "raw, expected",
    [(None, None), ("", None), ("C:\\photos\\cat.png", "cat.png"), ("dir/", None), ("ok.gif", "ok.gif")],
)
def test_sanitize_filename(raw, expected):
    assert sanitize_filename(raw) == expected
