import io

import cloudinary.uploader
import pytest
from cloudinary.exceptions import Error as CloudinaryError

from movie_catalog.errors import MediaOperationFailed
from movie_catalog.media_store import MediaStore


@pytest.fixture
def store():
    return MediaStore(cloud_name=None)


def test_upload_poster_uses_catalog_transformation(store, monkeypatch):
    captured = {}

    def fake_upload(file, **options):
        captured.update(options)
        return {
            "secure_url": "https://cdn.test/poster.jpg",
            "public_id": "poster",
            "responsive_breakpoints": [
                {"breakpoints": [{"secure_url": "https://cdn.test/640.jpg"}, {"secure_url": "https://cdn.test/320.jpg"}]}
            ],
        }

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    poster = store.upload_poster(io.BytesIO(b"img"))

    assert poster == {
        "url": "https://cdn.test/poster.jpg",
        "public_id": "poster",
        "responsive": ["https://cdn.test/640.jpg", "https://cdn.test/320.jpg"],
    }
    assert captured["transformation"] == {"width": 1280, "height": 720}
    assert captured["responsive_breakpoints"] == {"create_derived": True, "max_width": 640, "max_images": 3}


def test_upload_trailer_is_video(store, monkeypatch):
    captured = {}

    def fake_upload(file, **options):
        captured.update(options)
        return {"secure_url": "https://cdn.test/t.mp4", "public_id": "t"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    assert store.upload_trailer(io.BytesIO(b"vid")) == {"url": "https://cdn.test/t.mp4", "public_id": "t"}
    assert captured["resource_type"] == "video"


def test_upload_error_is_wrapped(store, monkeypatch):
    def fake_upload(file, **options):
        raise CloudinaryError("quota exceeded")

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    with pytest.raises(MediaOperationFailed):
        store.upload_avatar(io.BytesIO(b"img"))


@pytest.mark.parametrize(
    "outcome, expected",
    [({"result": "ok"}, True), ({"result": "not found"}, False)],
)
def test_destroy_reports_result(store, monkeypatch, outcome, expected):
    monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id, **options: outcome)
    assert store.destroy("asset", resource_type="video") is expected


def test_destroy_swallows_host_errors_as_failure(store, monkeypatch):
    def fake_destroy(public_id, **options):
        raise CloudinaryError("timeout")

    monkeypatch.setattr(cloudinary.uploader, "destroy", fake_destroy)
    assert store.destroy("asset") is False
