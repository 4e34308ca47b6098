import os

from fastapi.testclient import TestClient

import main
from config import UPLOAD_DIR


def test_upload_image(client):
    res = client.post("/api/uploads", files={"image": ("photo.png", b"\x89PNG fake", "image/png")})

    assert res.status_code == 200
    path = res.text
    assert path.startswith("/uploads/") and path.endswith(".png")
    assert os.path.exists(os.path.join(UPLOAD_DIR, os.path.basename(path)))
    assert client.get(path).content == b"\x89PNG fake"


def test_upload_name_ignores_client_extension(client):
    res = client.post("/api/uploads", files={"image": ("evil.html", b"<script>alert(1)</script>", "image/png")})

    assert res.status_code == 200
    path = res.text
    assert not path.endswith(".html")
    assert path.endswith(".png")
    assert not client.get(path).headers["content-type"].startswith("text/html")


def test_upload_unknown_image_type_stored_as_jpg(client):
    res = client.post("/api/uploads", files={"image": ("pic.svg", b"<svg/>", "image/svg+xml")})

    assert res.status_code == 200
    assert res.text.endswith(".jpg")


def test_upload_too_large(client, monkeypatch):
    monkeypatch.setattr(main, "MAX_UPLOAD_BYTES", 16)
    before = set(os.listdir(UPLOAD_DIR))

    res = client.post("/api/uploads", files={"image": ("big.png", b"x" * 64, "image/png")})

    assert res.status_code == 413
    assert set(os.listdir(UPLOAD_DIR)) == before


def test_upload_dir_created_on_startup(tmp_path, monkeypatch):
    target = tmp_path / "fresh-uploads"
    monkeypatch.setattr(main, "UPLOAD_DIR", str(target))
    assert not target.exists()

    with TestClient(main.app):
        assert target.is_dir()


def test_upload_without_file(client):
    assert client.post("/api/uploads").status_code == 400


def test_upload_rejects_non_image(client):
    res = client.post("/api/uploads", files={"image": ("notes.txt", b"hello", "text/plain")})
    assert res.status_code == 415


def test_paypal_config(client):
    res = client.get("/api/config/paypal")
    assert res.status_code == 200
    assert res.text == "sb"
