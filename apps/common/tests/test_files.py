from io import BytesIO

import pytest
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image

from apps.common.files import (
    ingest_uploads,
    key_owner,
    mime_from_extension,
    sniff_mime,
    storage_key_from_url,
    validate_upload,
)

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


def image_bytes(fmt="PNG"):
    buf = BytesIO()
    Image.new("RGB", (8, 8), color=(200, 10, 10)).save(buf, format=fmt)
    return buf.getvalue()


@pytest.mark.parametrize(
    "header, expected",
    [
        (b"\xff\xd8\xff\xe0rest", ("image/jpeg", "jpg")),
        (b"\x89PNG\r\n\x1a\nrest", ("image/png", "png")),
        (b"GIF89a....", ("image/gif", "gif")),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", ("image/webp", "webp")),
        (b"%PDF-1.7", ("application/pdf", "pdf")),
        (b"PK\x03\x04zip", None),
        (b"", None),
    ],
)
def test_sniff_mime(header, expected):
    assert sniff_mime(header) == expected


def test_mime_from_extension():
    assert mime_from_extension("answer-uploads/1/a.JPEG") == "image/jpeg"
    assert mime_from_extension("answer-uploads/1/a.pdf") == "application/pdf"
    assert mime_from_extension("answer-uploads/1/a.txt") is None


def test_validate_upload_ignores_declared_name():
    # PNG content named .pdf is stored as png
    upload = SimpleUploadedFile("scan.pdf", image_bytes("PNG"), content_type="application/pdf")
    ok, _msg, sniffed = validate_upload(upload)

    assert ok
    assert sniffed == ("image/png", "png")


def test_validate_upload_rejects_oversized(settings):
    settings.MAX_UPLOAD_SIZE_MB = 0.001
    upload = SimpleUploadedFile("big.pdf", PDF_BYTES + b"0" * 2048, content_type="application/pdf")
    ok, msg, _ = validate_upload(upload)

    assert not ok
    assert "too large" in msg


def test_validate_upload_rejects_truncated_image():
    upload = SimpleUploadedFile("broken.png", image_bytes("PNG")[:20], content_type="image/png")
    ok, msg, _ = validate_upload(upload)

    assert not ok
    assert msg.startswith("Corrupt image")


def test_ingest_isolates_failures_per_file():
    files = [
        SimpleUploadedFile("page1.png", image_bytes("PNG"), content_type="image/png"),
        SimpleUploadedFile("forged.jpg", b"this is not really a jpeg", content_type="image/jpeg"),
        SimpleUploadedFile("page2.pdf", PDF_BYTES, content_type="application/pdf"),
    ]
    result = ingest_uploads(files, 7, lambda path: f"http://testserver{path}")

    assert len(result.urls) == 2
    assert len(result.errors) == 1
    assert result.errors[0].startswith("forged.jpg:")
    for url in result.urls:
        key = storage_key_from_url(url)
        assert key_owner(key) == "7"
        assert default_storage.exists(key)
    assert result.urls[0].endswith(".png")
    assert result.urls[1].endswith(".pdf")


@pytest.mark.parametrize(
    "url, expected",
    [
        ("http://testserver/media/answer-uploads/3/1700-abc.pdf", "answer-uploads/3/1700-abc.pdf"),
        ("https://cdn.example.com/storage/v1/object/public/answer-uploads/3/x%20y.png", "answer-uploads/3/x y.png"),
        ("http://testserver/media/other/3/a.pdf", None),
        ("http://testserver/media/answer-uploads/../secret.txt", None),
        ("http://testserver/media/answer-uploads/", None),
    ],
)
def test_storage_key_from_url(url, expected):
    assert storage_key_from_url(url) == expected


@pytest.mark.django_db
class TestUploadEndpoint:
    url = "/api/upload"

    def test_mixed_batch_returns_urls_and_errors(self, auth_client, user):
        files = [
            SimpleUploadedFile("page1.jpg", image_bytes("JPEG"), content_type="image/jpeg"),
            SimpleUploadedFile("page2.png", image_bytes("PNG"), content_type="image/png"),
            SimpleUploadedFile("fake.jpg", b"GIF? no, plain text", content_type="image/jpeg"),
        ]
        response = auth_client.post(self.url, {"files": files}, format="multipart")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert len(body["urls"]) == 2
        assert all(u.startswith("http://testserver/media/answer-uploads/") for u in body["urls"])
        assert len(body["errors"]) == 1
        assert body["errors"][0].startswith("fake.jpg:")
        assert response["X-RateLimit-Limit"] == "30"

    def test_all_rejected_is_400(self, auth_client):
        files = [SimpleUploadedFile("fake.png", b"nope", content_type="image/png")]
        response = auth_client.post(self.url, {"files": files}, format="multipart")

        assert response.status_code == 400
        assert response.json()["error"] == "Failed to upload any files"
        assert len(response.json()["details"]) == 1

    def test_no_files_is_400(self, auth_client):
        response = auth_client.post(self.url, {}, format="multipart")

        assert response.status_code == 400
        assert response.json()["error"] == "No files provided"

    def test_json_body_is_rejected(self, auth_client):
        response = auth_client.post(self.url, {"files": []}, format="json")

        assert response.status_code in (400, 415)
        assert "error" in response.json()

    def test_requires_authentication(self, api_client):
        response = api_client.post(self.url, {}, format="multipart")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
