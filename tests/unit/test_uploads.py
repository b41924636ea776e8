import io
from datetime import datetime
from pathlib import Path

import pytest

from resumeforge.config import Settings
from resumeforge.core.uploads import UploadStore
from resumeforge.errors import BadRequestError


def _store(tmp_path: Path, **overrides) -> UploadStore:
    return UploadStore(Settings(upload_dir=tmp_path, site_url="https://cv.example.com/", **overrides))


def test_save_writes_file_under_daily_directory(tmp_path: Path) -> None:
    store = _store(tmp_path)
    stored = store.save(content=b"%PDF-1.4", original_name="Resume.PDF", content_type="application/pdf")

    assert stored.filename.endswith(".pdf")
    assert stored.original_name == "Resume.PDF"
    assert stored.size == 8

    today = datetime.now()
    relative = f"{today:%Y}/{today:%m}/{today:%d}/{stored.filename}"
    assert (tmp_path / relative).read_bytes() == b"%PDF-1.4"
    assert stored.url == f"https://cv.example.com/uploads/{relative}"


def test_save_without_extension_keeps_bare_name(tmp_path: Path) -> None:
    stored = _store(tmp_path).save(content=b"hi", original_name="notes", content_type="text/plain")
    assert "." not in stored.filename


def test_validate_rejects_large_and_unlisted_files(tmp_path: Path) -> None:
    store = _store(tmp_path, max_file_size=4)
    with pytest.raises(BadRequestError):
        store.validate(size=5, content_type="text/plain")
    with pytest.raises(BadRequestError):
        store.validate(size=1, content_type="application/x-msdownload")
    store.validate(size=4, content_type="image/png")


def test_daily_dir_uses_zero_padded_date(tmp_path: Path) -> None:
    path = _store(tmp_path).daily_dir(datetime(2024, 3, 7))
    assert path == tmp_path / "2024" / "03" / "07"
    assert path.is_dir()


def test_read_stops_just_past_the_size_limit(tmp_path: Path) -> None:
    store = _store(tmp_path, max_file_size=4)
    content = store.read(io.BytesIO(b"0123456789"))
    assert content == b"01234"

    with pytest.raises(BadRequestError):
        store.save(content=content, original_name="big.txt", content_type="text/plain")
    assert not any(path.is_file() for path in tmp_path.rglob("*"))
