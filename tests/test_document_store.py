from __future__ import annotations

import json

import httpx
import pytest

from app.core.documents import HttpDocumentStore, InMemoryDocumentStore
from app.shared.exceptions import UpstreamUnavailableException


def _store(handler) -> HttpDocumentStore:
    return HttpDocumentStore(
        "http://documents.test/api/",
        timeout_seconds=5.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_list_documents_accepts_wrapped_payload() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(f"{request.method} {request.url.path}")
        return httpx.Response(200, json={"documents": [{"id": "class_1", "title": "Hatha"}, "junk"]})

    store = _store(handler)
    documents = await store.list_documents("classes")
    await store.close()

    assert seen == ["GET /api/classes"]
    assert documents == [{"id": "class_1", "title": "Hatha"}]


@pytest.mark.asyncio
async def test_add_document_returns_remote_id() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert json.loads(request.content) == {"title": "Flow"}
        return httpx.Response(201, json={"id": "abc123"})

    store = _store(handler)

    assert await store.add_document("classes", {"title": "Flow"}) == "abc123"


@pytest.mark.asyncio
async def test_put_and_patch_target_document_path() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(f"{request.method} {request.url.path}")
        return httpx.Response(204)

    store = _store(handler)
    await store.put_document("classes", "class_1", {"title": "Hatha"})
    await store.update_document("classes", "class_1", {"max_students": 10})
    await store.delete_document("classes", "class_1")

    assert seen == [
        "PUT /api/classes/class_1",
        "PATCH /api/classes/class_1",
        "DELETE /api/classes/class_1",
    ]


@pytest.mark.asyncio
async def test_timeout_becomes_upstream_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(UpstreamUnavailableException) as exc:
        await _store(handler).list_documents("classes")
    assert "timed out" in exc.value.message


@pytest.mark.asyncio
async def test_error_status_becomes_upstream_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"detail": "boom"})

    with pytest.raises(UpstreamUnavailableException) as exc:
        await _store(handler).update_document("classes", "class_1", {})
    assert "HTTP 500" in exc.value.message


@pytest.mark.asyncio
async def test_unexpected_payload_becomes_upstream_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json="nope")

    with pytest.raises(UpstreamUnavailableException):
        await _store(handler).list_documents("classes")


@pytest.mark.asyncio
async def test_in_memory_store_merges_updates() -> None:
    store = InMemoryDocumentStore()
    document_id = await store.add_document("classes", {"id": "ignored", "title": "Hatha", "price": "15"})

    await store.update_document("classes", document_id, {"price": "18"})

    assert await store.list_documents("classes") == [{"title": "Hatha", "price": "18", "id": document_id}]
    with pytest.raises(UpstreamUnavailableException):
        await store.update_document("classes", "missing", {"price": "1"})


@pytest.mark.asyncio
async def test_non_json_body_becomes_upstream_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>proxy</html>")

    with pytest.raises(UpstreamUnavailableException) as exc:
        await _store(handler).list_documents("classes")
    assert "non-JSON" in exc.value.message


@pytest.mark.asyncio
async def test_add_document_rejects_body_without_id_object() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json=["abc123"])

    with pytest.raises(UpstreamUnavailableException):
        await _store(handler).add_document("classes", {"title": "Flow"})
