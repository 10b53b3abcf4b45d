"""
Unit tests for UploadService validation and storage
"""
import asyncio

import pytest

from storefront_admin.core.errors import UploadRejected
from storefront_admin.services.upload_service import IncomingImage, LocalImageStorage, UploadService


def image(name="lamp.png", content_type="image/png", size=16):
    return IncomingImage(filename=name, content_type=content_type, content=b"x" * size)


@pytest.fixture
def service(tmp_path):
    return UploadService(LocalImageStorage(upload_dir=str(tmp_path)), max_files=4, max_size_bytes=1024)


class TestValidation:

    def test_four_images_are_accepted(self, service):
        service.validate([image(f"{i}.jpg", "image/jpeg") for i in range(4)])

    def test_five_images_are_rejected(self, service):
        with pytest.raises(UploadRejected) as exc_info:
            service.validate([image() for _ in range(5)])

        assert exc_info.value.status_code == 400

    def test_empty_batch_is_rejected(self, service):
        with pytest.raises(UploadRejected, match="No files uploaded"):
            service.validate([])

    @pytest.mark.parametrize("name,content_type", [
        ("lamp.gif", "image/gif"),
        ("lamp.png", "text/plain"),
        ("lamp.txt", "image/png"),
        ("lamp", "image/png"),
    ])
    def test_extension_and_mime_must_both_match(self, service, name, content_type):
        with pytest.raises(UploadRejected, match="Only images"):
            service.validate([image(name, content_type)])

    def test_oversized_file_is_rejected(self, service):
        with pytest.raises(UploadRejected, match="File too large"):
            service.validate([image(size=2048)])

    def test_declared_size_checked_without_content(self, service):
        service.check_size("lamp.png", 1024)

        with pytest.raises(UploadRejected) as exc_info:
            service.check_size("lamp.png", 1025)

        assert exc_info.value.extra["filename"] == "lamp.png"

    def test_count_checked_without_content(self, service):
        service.check_count(4)

        with pytest.raises(UploadRejected, match="Too many files"):
            service.check_count(5)


class TestUpload:

    def test_files_are_written_and_urls_returned_in_order(self, service, tmp_path):
        urls = asyncio.run(service.upload([image("a.png"), image("b.JPG", "image/jpeg")]))

        assert urls[0].endswith(".png")
        assert urls[1].endswith(".jpg")
        for url in urls:
            assert (tmp_path / url.rsplit("/", 1)[1]).exists()

    def test_rejected_batch_writes_nothing(self, service, tmp_path):
        with pytest.raises(UploadRejected):
            asyncio.run(service.upload([image(), image("bad.gif", "image/gif")]))

        assert list(tmp_path.iterdir()) == []
