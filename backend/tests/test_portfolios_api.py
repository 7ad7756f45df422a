"""End-to-end tests for the portfolio HTTP endpoints."""

from uuid import uuid4

import pytest

from api.v1 import media as media_api
from api.v1 import portfolios as portfolios_api
from core import create_access_token
from services import media_storage_key


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def portfolio_payload(subdomain: str = "alice123", **overrides) -> dict:
    payload = {
        "title": "Alice Builds",
        "description": "Structural engineering work",
        "theme": "light",
        "layout": "grid",
        "subdomain": subdomain,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def object_storage(monkeypatch) -> dict[str, bytes]:
    """Replace MinIO with an in-memory bucket keyed like the real one."""
    objects: dict[str, bytes] = {}

    def fake_store(media_url, data, *, content_type="application/octet-stream", client=None):
        object_key = media_storage_key(media_url)
        objects[object_key] = data
        return object_key

    def fake_delete(media_url, client=None):
        objects.pop(media_storage_key(media_url), None)

    monkeypatch.setattr(portfolios_api, "store_media_bytes", fake_store)
    monkeypatch.setattr(portfolios_api, "delete_media_bytes", fake_delete)
    return objects


async def _create_portfolio(async_client, user_id: str, **overrides) -> dict:
    response = await async_client.post(
        "/api/v1/portfolios",
        json=portfolio_payload(**overrides),
        headers=auth_headers(user_id),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _create_project(async_client, user_id: str, portfolio_id: str) -> dict:
    response = await async_client.post(
        f"/api/v1/portfolios/{portfolio_id}/projects",
        json={
            "title": "Bridge Design",
            "description": "Pedestrian bridge",
            "content": "Write-up",
            "tags": ["steel"],
        },
        headers=auth_headers(user_id),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def _upload_media(
    async_client,
    user_id: str,
    portfolio_id: str,
    project_id: str,
    *,
    filename: str = "span.jpg",
    media_type: str = "image",
    data: bytes = b"jpeg-bytes",
):
    return await async_client.post(
        f"/api/v1/portfolios/{portfolio_id}/projects/{project_id}/media",
        files={"file": (filename, data, "image/jpeg")},
        data={"type": media_type, "caption": "Main span", "order": "1"},
        headers=auth_headers(user_id),
    )


@pytest.mark.asyncio
async def test_health(async_client):
    response = await async_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_end_to_end_scenario(async_client, alice, object_storage):
    portfolio = await _create_portfolio(async_client, alice.id, subdomain="alice123")
    project = await _create_project(async_client, alice.id, portfolio["id"])

    upload = await _upload_media(async_client, alice.id, portfolio["id"], project["id"])
    assert upload.status_code == 201, upload.text
    media = upload.json()
    assert media["url"] == f"/media/{portfolio['id']}/{project['id']}/span.jpg"
    assert object_storage == {f"media/{portfolio['id']}/{project['id']}/span.jpg": b"jpeg-bytes"}

    update = await async_client.patch(
        f"/api/v1/portfolios/{portfolio['id']}/projects/{project['id']}",
        json={"order": 2},
        headers=auth_headers(alice.id),
    )
    assert update.status_code == 200, update.text

    response = await async_client.get("/api/v1/portfolios/subdomain/alice123")
    assert response.status_code == 200
    projects = response.json()["projects"]
    assert len(projects) == 1
    assert projects[0]["title"] == "Bridge Design"
    assert projects[0]["order"] == 2
    assert len(projects[0]["media"]) == 1
    assert projects[0]["media"][0]["url"].endswith("/span.jpg")


@pytest.mark.asyncio
async def test_create_requires_authentication(async_client):
    response = await async_client.post("/api/v1/portfolios", json=portfolio_payload())
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_duplicate_subdomain_conflicts(async_client, alice, bob):
    await _create_portfolio(async_client, alice.id, subdomain="taken1")

    response = await async_client.post(
        "/api/v1/portfolios",
        json=portfolio_payload(subdomain="TAKEN1"),
        headers=auth_headers(bob.id),
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_invalid_payloads_are_unprocessable(async_client, alice):
    payload = portfolio_payload()
    del payload["title"]
    response = await async_client.post(
        "/api/v1/portfolios", json=payload, headers=auth_headers(alice.id)
    )
    assert response.status_code == 422

    response = await async_client.post(
        "/api/v1/portfolios",
        json=portfolio_payload(subdomain="has-dash"),
        headers=auth_headers(alice.id),
    )
    assert response.status_code == 422

    response = await async_client.get("/api/v1/portfolios/not-an-id")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_public_reads_and_owner_listing(async_client, alice, bob):
    portfolio = await _create_portfolio(async_client, alice.id)
    await _create_portfolio(async_client, bob.id, subdomain="bobsite")

    public = await async_client.get(f"/api/v1/portfolios/{portfolio['id']}")
    assert public.status_code == 200
    assert public.json()["subdomain"] == "alice123"

    mine = await async_client.get("/api/v1/portfolios", headers=auth_headers(alice.id))
    assert [item["id"] for item in mine.json()] == [portfolio["id"]]

    missing = await async_client.get(f"/api/v1/portfolios/{uuid4()}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_put_and_patch_update_portfolio(async_client, alice):
    portfolio = await _create_portfolio(async_client, alice.id)

    put = await async_client.put(
        f"/api/v1/portfolios/{portfolio['id']}",
        json={"title": "Renamed", "is_published": True},
        headers=auth_headers(alice.id),
    )
    assert put.status_code == 200
    assert put.json()["title"] == "Renamed"
    assert put.json()["is_published"] is True

    patch = await async_client.patch(
        f"/api/v1/portfolios/{portfolio['id']}",
        json={"title": None},
        headers=auth_headers(alice.id),
    )
    assert patch.status_code == 422


@pytest.mark.asyncio
async def test_foreign_owner_gets_forbidden_and_missing_gets_not_found(async_client, alice, bob):
    portfolio = await _create_portfolio(async_client, alice.id)

    forbidden = await async_client.patch(
        f"/api/v1/portfolios/{portfolio['id']}",
        json={"title": "Hijacked"},
        headers=auth_headers(bob.id),
    )
    assert forbidden.status_code == 403

    missing = await async_client.delete(
        f"/api/v1/portfolios/{uuid4()}",
        headers=auth_headers(bob.id),
    )
    assert missing.status_code == 404

    unchanged = await async_client.get(f"/api/v1/portfolios/{portfolio['id']}")
    assert unchanged.json()["title"] == "Alice Builds"


@pytest.mark.asyncio
async def test_section_endpoints(async_client, alice):
    portfolio = await _create_portfolio(async_client, alice.id)
    headers = auth_headers(alice.id)

    created = await async_client.post(
        f"/api/v1/portfolios/{portfolio['id']}/sections",
        json={"title": "About", "type": "text", "content": "Hello"},
        headers=headers,
    )
    assert created.status_code == 201
    section_id = created.json()["id"]

    updated = await async_client.put(
        f"/api/v1/portfolios/{portfolio['id']}/sections/{section_id}",
        json={"content": "Updated"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["content"] == "Updated"

    deleted = await async_client.delete(
        f"/api/v1/portfolios/{portfolio['id']}/sections/{section_id}",
        headers=headers,
    )
    assert deleted.status_code == 204

    again = await async_client.delete(
        f"/api/v1/portfolios/{portfolio['id']}/sections/{section_id}",
        headers=headers,
    )
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_media_type_mismatch_is_bad_request(async_client, alice, object_storage):
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])

    response = await _upload_media(
        async_client, alice.id, portfolio["id"], project["id"], filename="photo.exe"
    )
    assert response.status_code == 400

    response = await _upload_media(
        async_client,
        alice.id,
        portfolio["id"],
        project["id"],
        filename="photo.png",
        media_type="spreadsheet",
    )
    assert response.status_code == 400
    assert object_storage == {}


@pytest.mark.asyncio
async def test_oversized_upload_is_rejected(async_client, alice, object_storage, monkeypatch):
    monkeypatch.setattr(portfolios_api.settings, "upload_max_bytes", 4)
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])

    response = await _upload_media(
        async_client, alice.id, portfolio["id"], project["id"], data=b"too large"
    )
    assert response.status_code == 413
    assert object_storage == {}


@pytest.mark.asyncio
async def test_failed_byte_upload_removes_media_record(async_client, alice, monkeypatch):
    def failing_store(media_url, data, *, content_type="application/octet-stream", client=None):
        raise RuntimeError("storage unavailable")

    monkeypatch.setattr(portfolios_api, "store_media_bytes", failing_store)
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])

    response = await _upload_media(async_client, alice.id, portfolio["id"], project["id"])
    assert response.status_code == 500

    view = await async_client.get(f"/api/v1/portfolios/{portfolio['id']}")
    assert view.json()["projects"][0]["media"] == []


@pytest.mark.asyncio
async def test_deleting_project_discards_stored_bytes(async_client, alice, object_storage):
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])
    upload = await _upload_media(async_client, alice.id, portfolio["id"], project["id"])
    media_id = upload.json()["id"]
    assert len(object_storage) == 1

    deleted = await async_client.delete(
        f"/api/v1/portfolios/{portfolio['id']}/projects/{project['id']}",
        headers=auth_headers(alice.id),
    )
    assert deleted.status_code == 204
    assert object_storage == {}

    gone = await async_client.delete(
        f"/api/v1/portfolios/{portfolio['id']}/projects/{project['id']}/media/{media_id}",
        headers=auth_headers(alice.id),
    )
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_shared_media_url_keeps_bytes_until_last_record(async_client, alice, object_storage):
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])
    first = (await _upload_media(async_client, alice.id, portfolio["id"], project["id"])).json()
    second = (await _upload_media(async_client, alice.id, portfolio["id"], project["id"])).json()
    assert first["url"] == second["url"]

    base = f"/api/v1/portfolios/{portfolio['id']}/projects/{project['id']}/media"
    response = await async_client.delete(f"{base}/{first['id']}", headers=auth_headers(alice.id))
    assert response.status_code == 204
    assert len(object_storage) == 1

    response = await async_client.delete(f"{base}/{second['id']}", headers=auth_headers(alice.id))
    assert response.status_code == 204
    assert object_storage == {}


@pytest.mark.asyncio
async def test_delete_portfolio_discards_all_media(async_client, alice, object_storage):
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])
    await _upload_media(async_client, alice.id, portfolio["id"], project["id"])

    response = await async_client.delete(
        f"/api/v1/portfolios/{portfolio['id']}",
        headers=auth_headers(alice.id),
    )
    assert response.status_code == 204
    assert object_storage == {}

    missing = await async_client.get("/api/v1/portfolios/subdomain/alice123")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_media_url_redirects_to_signed_url(async_client, alice, object_storage, monkeypatch):
    signed_urls: list[str] = []

    def fake_presign(media_url, *, expires_seconds=120, client=None):
        signed_urls.append(media_url)
        return f"https://signed.local/{media_storage_key(media_url)}"

    monkeypatch.setattr(media_api, "presign_media_url", fake_presign)
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])
    media = (await _upload_media(async_client, alice.id, portfolio["id"], project["id"])).json()

    response = await async_client.get(media["url"])
    assert response.status_code == 307
    assert response.headers["location"] == f"https://signed.local{media['url']}"
    assert response.headers["cache-control"] == "no-store"
    assert signed_urls == [media["url"]]

    missing = await async_client.get(f"/media/{portfolio['id']}/{project['id']}/nope.jpg")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_upload_rejects_file_names_that_break_media_urls(async_client, alice, object_storage):
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])

    for filename in ("span.jpg?v=2", "span#1.jpg", "100%.jpg"):
        response = await _upload_media(
            async_client, alice.id, portfolio["id"], project["id"], filename=filename
        )
        assert response.status_code == 422, filename

    assert object_storage == {}
    view = await async_client.get(f"/api/v1/portfolios/{portfolio['id']}")
    assert view.json()["projects"][0]["media"] == []


@pytest.mark.asyncio
async def test_media_url_with_spaces_resolves(async_client, alice, object_storage, monkeypatch):
    monkeypatch.setattr(
        media_api,
        "presign_media_url",
        lambda media_url, *, expires_seconds=120, client=None: "https://signed.local/x",
    )
    portfolio = await _create_portfolio(async_client, alice.id)
    project = await _create_project(async_client, alice.id, portfolio["id"])
    upload = await _upload_media(
        async_client, alice.id, portfolio["id"], project["id"], filename="main span.jpg"
    )
    assert upload.status_code == 201, upload.text

    response = await async_client.get(upload.json()["url"])
    assert response.status_code == 307
