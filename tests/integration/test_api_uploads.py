from pathlib import Path
from urllib.parse import urlparse

from fastapi.testclient import TestClient

from resumeforge.api.app import create_app
from resumeforge.config import get_settings


def _authorized_client() -> tuple[TestClient, dict[str, str]]:
    client = TestClient(create_app())
    client.post("/user/register", json={"username": "quinn", "password": "password1"})
    login = client.post("/auth/login", json={"username": "quinn", "password": "password1"})
    return client, {"Authorization": f"Bearer {login.json()['data']['accessToken']}"}


def test_upload_stores_and_serves_file() -> None:
    client, headers = _authorized_client()
    resp = client.post(
        "/upload",
        headers=headers,
        files={"file": ("cover.txt", b"Dear hiring manager", "text/plain")},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["originalName"] == "cover.txt"
    assert data["size"] == len(b"Dear hiring manager")
    assert data["filename"].endswith(".txt")

    settings = get_settings()
    assert data["url"].startswith(f"{settings.site_url}/uploads/")
    path = urlparse(data["url"]).path
    stored = Path(settings.upload_dir) / path.removeprefix("/uploads/")
    assert stored.read_bytes() == b"Dear hiring manager"

    served = client.get(path)
    assert served.status_code == 200
    assert served.content == b"Dear hiring manager"


def test_upload_rejects_disallowed_type_and_size(monkeypatch) -> None:
    client, headers = _authorized_client()
    blocked = client.post(
        "/upload",
        headers=headers,
        files={"file": ("tool.exe", b"MZ", "application/x-msdownload")},
    )
    assert blocked.status_code == 400

    monkeypatch.setattr(get_settings(), "max_file_size", 4)
    too_big = client.post(
        "/upload",
        headers=headers,
        files={"file": ("notes.txt", b"12345", "text/plain")},
    )
    assert too_big.status_code == 400
    assert "size limit" in too_big.json()["message"]


def test_upload_requires_authentication() -> None:
    client = TestClient(create_app())
    resp = client.post("/upload", files={"file": ("a.txt", b"x", "text/plain")})
    assert resp.status_code == 401
