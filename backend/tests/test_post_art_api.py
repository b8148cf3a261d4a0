"""
POST /postArt: multipart contract end to end through the ASGI app.

Scenarios:
- Valid submission with no subscribers: 201 {"message", "id"} echoing the id.
- Three subscribers, one invalid: still 201; every subscriber attempted.
- Missing image, a non-multipart or malformed multipart body: 400 and nothing stored.
- Oversized image: 413.
- Storage failure: 500 {"error", "details"} and no record.
"""
from __future__ import annotations

import threading
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport

from backend.gallery.domain import NotificationPayload, Subscription
from backend.gallery.notifications import NotificationDispatcher
from backend.gallery.pipeline import ArtSubmissionPipeline
from backend.gallery.repo_memory import InMemoryGalleryRepo
from backend.storage.ports import NullBlobStore
from backend.web import main
from backend.web.routes import arts
from utils.images import make_png_bytes  # type: ignore

pytestmark = pytest.mark.anyio("asyncio")

PAYLOAD = NotificationPayload(title="New post", content="New post added", url="/help")


class _MemoryBlobStore:
    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def store(self, local_path: Path, content_type: str, token: str) -> str:
        body = local_path.read_bytes()
        with self._lock:
            url = f"https://cdn.test/arts/{len(self.blobs)}.png?token={token}"
            self.blobs[url] = body
        return url


class _Sender:
    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def send(self, subscription, data):
        with self._lock:
            self.calls.append(subscription.endpoint)
        if subscription.endpoint in self.failing:
            raise ConnectionError("gone")
        return 201


@pytest.fixture
def wired(staging_dir: Path):
    """Inject an in-memory pipeline and restore the previous one afterwards."""
    previous = arts.PIPELINE
    state = {}

    def _wire(*, storage=None, subscriptions=None, sender=None):
        state["storage"] = storage if storage is not None else _MemoryBlobStore()
        state["repo"] = InMemoryGalleryRepo(subscriptions)
        state["sender"] = sender if sender is not None else _Sender()
        arts.set_pipeline(
            ArtSubmissionPipeline(
                storage=state["storage"],
                repo=state["repo"],
                dispatcher=NotificationDispatcher(state["sender"]),
                payload=PAYLOAD,
                staging_dir=staging_dir,
            )
        )
        return state

    yield _wire
    arts.set_pipeline(previous)


async def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


def _form(**overrides) -> dict[str, str]:
    data = {"id": "abc", "artName": "Sun", "artistName": "Ada", "description": "..."}
    data.update(overrides)
    return data


async def test_post_art_without_subscribers_returns_201_and_echoes_id(wired):
    state = wired()
    image = make_png_bytes()

    async with (await _client()) as c:
        r = await c.post("/postArt", data=_form(), files={"artImage": ("sun.png", image, "image/png")})

    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "Art stored successfully"
    assert body["id"] == "abc"
    assert body["recordId"] != "abc"
    assert "private" in r.headers.get("Cache-Control", "")

    repo = state["repo"]
    assert list(repo.records) == [body["recordId"]]
    record = repo.records[body["recordId"]]
    assert record.art_name == "Sun" and record.artist_name == "Ada" and record.description == "..."
    assert state["storage"].blobs[record.image_url] == image
    assert state["sender"].calls == []


async def test_post_art_notifies_all_subscribers_despite_one_invalid(wired):
    subs = {
        f"s{i}": Subscription(endpoint=f"https://push.example/{i}", auth="a", p256dh="k") for i in range(3)
    }
    state = wired(subscriptions=subs, sender=_Sender(failing={"https://push.example/2"}))

    async with (await _client()) as c:
        r = await c.post(
            "/postArt", data=_form(), files={"artImage": ("sun.png", make_png_bytes(), "image/png")}
        )

    assert r.status_code == 201
    assert sorted(state["sender"].calls) == sorted(s.endpoint for s in subs.values())


async def test_post_art_accepts_image_field_alias(wired):
    state = wired()
    async with (await _client()) as c:
        r = await c.post("/postArt", data=_form(), files={"image": ("sun.png", make_png_bytes(), "image/png")})
    assert r.status_code == 201
    assert len(state["repo"].records) == 1


async def test_post_art_missing_image_is_400(wired):
    state = wired()
    async with (await _client()) as c:
        r = await c.post("/postArt", data=_form(), files={"other": ("x.txt", b"x", "text/plain")})
    assert r.status_code == 400
    assert r.json() == {"error": "invalid_submission", "details": "missing_image"}
    assert state["repo"].records == {}
    assert state["storage"].blobs == {}


async def test_post_art_json_body_is_400(wired):
    state = wired()
    async with (await _client()) as c:
        r = await c.post("/postArt", json={"artName": "Sun"})
    assert r.status_code == 400
    assert r.json()["details"] == "multipart_required"
    assert state["repo"].records == {}


async def test_post_art_empty_image_is_400(wired):
    wired()
    async with (await _client()) as c:
        r = await c.post("/postArt", data=_form(), files={"artImage": ("sun.png", b"", "image/png")})
    assert r.status_code == 400
    assert r.json()["details"] == "empty_image"


async def test_post_art_oversized_image_is_413(wired, monkeypatch: pytest.MonkeyPatch):
    state = wired()
    monkeypatch.setenv("ART_MAX_UPLOAD_BYTES", "64")
    async with (await _client()) as c:
        r = await c.post("/postArt", data=_form(), files={"artImage": ("big.png", b"x" * 65, "image/png")})
    assert r.status_code == 413
    assert r.json()["details"] == "payload_too_large"
    assert state["repo"].records == {}


async def test_post_art_storage_failure_is_500_without_record(wired):
    state = wired(storage=NullBlobStore())
    async with (await _client()) as c:
        r = await c.post(
            "/postArt", data=_form(), files={"artImage": ("sun.png", make_png_bytes(), "image/png")}
        )
    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Error processing art upload"
    assert "storage_adapter_not_configured" in body["details"]
    assert state["repo"].records == {}
    assert state["sender"].calls == []


async def test_post_art_without_text_fields_still_stores(wired):
    state = wired()
    async with (await _client()) as c:
        r = await c.post("/postArt", files={"artImage": ("sun.png", make_png_bytes(), "image/png")})
    assert r.status_code == 201
    assert r.json()["id"] is None
    record = next(iter(state["repo"].records.values()))
    assert record.art_name is None


async def test_health_endpoint():
    async with (await _client()) as c:
        r = await c.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.parametrize(
    "content_type, body",
    [
        ("multipart/form-data", b"garbage-without-boundary"),
        (
            "multipart/form-data; boundary=xyz",
            b'--xyz\r\nContent-Disposition: form-data; name="artImage"; filename="a.png"\r\n'
            b"Content-Type: image/png\r\n\r\n\x89PNG",
        ),
    ],
    ids=["missing-boundary", "truncated-part"],
)
async def test_post_art_malformed_multipart_is_400(wired, content_type: str, body: bytes):
    state = wired()
    async with (await _client()) as c:
        r = await c.post("/postArt", content=body, headers={"Content-Type": content_type})
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_submission"
    assert state["repo"].records == {}
    assert state["storage"].blobs == {}
