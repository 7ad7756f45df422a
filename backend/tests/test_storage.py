"""Tests for media object storage on MinIO."""

from unittest.mock import MagicMock

import pytest

import app as app_module
from services import storage

MEDIA_URL = "/media/p1/proj1/span.jpg"
MEDIA_KEY = "media/p1/proj1/span.jpg"


class FakeS3Error(Exception):
    def __init__(self, code):
        super().__init__(code)
        self.code = code


@pytest.fixture(autouse=True)
def _reset_cache():
    storage.get_minio_client.cache_clear()
    yield
    storage.get_minio_client.cache_clear()


@pytest.fixture()
def s3_errors(monkeypatch):
    monkeypatch.setattr(storage, "S3Error", FakeS3Error)
    return FakeS3Error


def test_client_is_built_once_from_settings(monkeypatch):
    calls = []

    def fake_minio(endpoint, **kwargs):
        calls.append((endpoint, kwargs))
        return MagicMock(name="Minio")

    monkeypatch.setattr(storage, "Minio", fake_minio)

    assert storage.get_minio_client() is storage.get_minio_client()
    assert calls == [
        (
            storage.settings.minio_endpoint,
            {
                "access_key": storage.settings.minio_access_key,
                "secret_key": storage.settings.minio_secret_key,
                "secure": storage.settings.minio_secure,
            },
        )
    ]


@pytest.mark.parametrize(
    ("media_url", "expected"),
    [
        (MEDIA_URL, MEDIA_KEY),
        ("media/p1/proj1/span.jpg", MEDIA_KEY),
        ("  /media/p1/proj1/brief.pdf ", "media/p1/proj1/brief.pdf"),
    ],
)
def test_media_storage_key_maps_served_urls(media_url, expected):
    assert storage.media_storage_key(media_url) == expected


@pytest.mark.parametrize(
    "media_url",
    [
        "",
        "/avatars/u1/me.png",
        "/mediafiles/p1/proj1/span.jpg",
        "/media/p1/span.jpg",
        "/media/p1/proj1/extra/span.jpg",
        "/media/p1/../span.jpg",
        "/media/p1/proj1/..",
        "/media/p1//span.jpg",
    ],
)
def test_media_storage_key_refuses_keys_outside_media(media_url):
    with pytest.raises(storage.InvalidMediaKeyError):
        storage.media_storage_key(media_url)


def test_media_storage_key_follows_configured_prefix(monkeypatch):
    monkeypatch.setattr(storage.settings, "media_url_prefix", "/files/")

    assert storage.media_storage_key("/files/p1/proj1/span.jpg") == "files/p1/proj1/span.jpg"
    with pytest.raises(storage.InvalidMediaKeyError):
        storage.media_storage_key(MEDIA_URL)


def test_store_media_bytes_writes_under_media_key_without_bucket_check():
    client = MagicMock()

    object_key = storage.store_media_bytes(
        MEDIA_URL,
        b"jpeg-bytes",
        content_type="image/jpeg",
        client=client,
    )

    assert object_key == MEDIA_KEY
    client.bucket_exists.assert_not_called()
    client.make_bucket.assert_not_called()
    call = client.put_object.call_args
    assert call.args[:2] == (storage.settings.minio_bucket, MEDIA_KEY)
    assert call.kwargs["length"] == len(b"jpeg-bytes")
    assert call.kwargs["content_type"] == "image/jpeg"
    assert call.kwargs["data"].read() == b"jpeg-bytes"


def test_store_media_bytes_rejects_traversal_before_touching_minio():
    client = MagicMock()

    with pytest.raises(storage.InvalidMediaKeyError):
        storage.store_media_bytes("/media/../avatars/x/y.png", b"x", client=client)

    client.put_object.assert_not_called()


def test_delete_media_bytes_removes_media_key():
    client = MagicMock()

    storage.delete_media_bytes(MEDIA_URL, client)

    client.remove_object.assert_called_once_with(storage.settings.minio_bucket, MEDIA_KEY)


def test_delete_media_bytes_tolerates_missing_object(s3_errors):
    client = MagicMock()
    client.remove_object.side_effect = s3_errors("NoSuchKey")

    storage.delete_media_bytes(MEDIA_URL, client)


def test_delete_media_bytes_propagates_other_failures(s3_errors):
    client = MagicMock()
    client.remove_object.side_effect = s3_errors("AccessDenied")

    with pytest.raises(s3_errors):
        storage.delete_media_bytes(MEDIA_URL, client)


def test_presign_media_url_signs_media_key_for_two_minutes():
    client = MagicMock()
    client.presigned_get_object.return_value = "https://signed.local/object"

    assert storage.presign_media_url(MEDIA_URL, client=client) == "https://signed.local/object"

    bucket, key = client.presigned_get_object.call_args.args[:2]
    expires = client.presigned_get_object.call_args.kwargs["expires"]
    assert (bucket, key) == (storage.settings.minio_bucket, MEDIA_KEY)
    assert expires.total_seconds() == 120


def test_presign_media_url_rejects_bad_inputs():
    client = MagicMock()

    with pytest.raises(ValueError):
        storage.presign_media_url(MEDIA_URL, expires_seconds=0, client=client)
    with pytest.raises(storage.InvalidMediaKeyError):
        storage.presign_media_url("/etc/passwd", client=client)

    client.presigned_get_object.assert_not_called()


def test_ensure_bucket_creates_missing_bucket_and_accepts_race(s3_errors):
    client = MagicMock()
    client.bucket_exists.return_value = False

    storage.ensure_bucket(client)
    client.make_bucket.assert_called_once_with(storage.settings.minio_bucket)

    client.make_bucket.side_effect = s3_errors("BucketAlreadyOwnedByYou")
    storage.ensure_bucket(client)


def test_ensure_bucket_leaves_existing_bucket_alone():
    client = MagicMock()
    client.bucket_exists.return_value = True

    storage.ensure_bucket(client)

    client.make_bucket.assert_not_called()


@pytest.mark.asyncio
async def test_startup_prepares_bucket_once(monkeypatch):
    calls = []
    monkeypatch.setattr(app_module, "ensure_bucket", lambda: calls.append("ensure"))

    async with app_module.lifespan(app_module.create_app()):
        assert calls == ["ensure"]


@pytest.mark.asyncio
async def test_startup_survives_unreachable_minio(monkeypatch):
    def unreachable():
        raise ConnectionError("minio down")

    monkeypatch.setattr(app_module, "ensure_bucket", unreachable)

    assert await app_module.prepare_media_bucket() is False
