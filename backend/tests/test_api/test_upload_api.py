"""
API tests for /api/upload
"""
from unittest.mock import AsyncMock, patch

from storefront_admin.main import app
from storefront_admin.api import deps
from storefront_admin.services.upload_service import LocalImageStorage, UploadService

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _png(name):
    return ("images", (name, PNG_BYTES, "image/png"))


class TestUpload:

    def test_upload_returns_urls_in_order(self, client, auth_headers, tmp_path):
        response = client.post("/api/upload", headers=auth_headers, files=[_png("a.png"), _png("b.png")])

        assert response.status_code == 200
        urls = response.json()["image_urls"]
        assert len(urls) == 2
        assert all(url.startswith("/uploads/") and url.endswith(".png") for url in urls)
        assert len(list(tmp_path.iterdir())) == 2

    def test_five_files_are_rejected(self, client, auth_headers, tmp_path):
        files = [_png(f"{i}.png") for i in range(5)]

        response = client.post("/api/upload", headers=auth_headers, files=files)

        assert response.status_code == 400
        assert response.json()["message"].startswith("Too many files")
        assert list(tmp_path.iterdir()) == []

    def test_too_many_files_are_rejected_before_reading(self, client, auth_headers):
        files = [_png(f"{i}.png") for i in range(5)]

        with patch("starlette.datastructures.UploadFile.read", new_callable=AsyncMock) as mock_read:
            response = client.post("/api/upload", headers=auth_headers, files=files)

        assert response.status_code == 400
        mock_read.assert_not_awaited()

    def test_oversized_file_is_rejected(self, client, auth_headers, tmp_path):
        service = UploadService(LocalImageStorage(str(tmp_path)), max_size_bytes=10)
        app.dependency_overrides[deps.get_upload_service] = lambda: service

        response = client.post("/api/upload", headers=auth_headers, files=[_png("a.png")])

        assert response.status_code == 400
        assert response.json()["message"].startswith("File too large")
        assert response.json()["filename"] == "a.png"
        assert list(tmp_path.iterdir()) == []

    def test_non_image_is_rejected(self, client, auth_headers):
        response = client.post(
            "/api/upload",
            headers=auth_headers,
            files=[("images", ("notes.txt", b"hello", "text/plain"))],
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Only images (jpeg, jpg, png) are allowed"

    def test_missing_field_is_400(self, client, auth_headers):
        response = client.post("/api/upload", headers=auth_headers, files=[("other", ("a.png", PNG_BYTES, "image/png"))])

        assert response.status_code == 400

    def test_upload_requires_token(self, client):
        assert client.post("/api/upload", files=[_png("a.png")]).status_code == 401
