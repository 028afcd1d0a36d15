"""Remote document store clients (one document per entity, keyed by id)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol
from uuid import uuid4

import httpx

from app.core.config import Settings, get_settings
from app.shared.exceptions import UpstreamUnavailableException

logger = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Contract for the shared document store used by the catalog."""

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        """Return every document of collection, each with its ``id``."""

    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        """Store new document and return the id assigned by the store."""

    async def put_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Create or replace document under a caller-chosen id."""

    async def update_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Merge fields into an existing document."""

    async def delete_document(self, collection: str, document_id: str) -> None:
        """Remove document."""


class InMemoryDocumentStore:
    """Document store kept in process memory."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        async with self._lock:
            documents = self._collections.get(collection, {})
            return [{**data, "id": document_id} for document_id, data in documents.items()]

    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        document_id = uuid4().hex[:20]
        async with self._lock:
            payload = {key: value for key, value in data.items() if key != "id"}
            self._collections.setdefault(collection, {})[document_id] = payload
        return document_id

    async def put_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        async with self._lock:
            payload = {key: value for key, value in data.items() if key != "id"}
            self._collections.setdefault(collection, {})[document_id] = payload

    async def update_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        async with self._lock:
            documents = self._collections.setdefault(collection, {})
            if document_id not in documents:
                raise UpstreamUnavailableException(f"Document {collection}/{document_id} does not exist")
            documents[document_id].update({key: value for key, value in data.items() if key != "id"})

    async def delete_document(self, collection: str, document_id: str) -> None:
        async with self._lock:
            self._collections.get(collection, {}).pop(document_id, None)


class HttpDocumentStore:
    """REST document store client with bounded request time."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailableException(f"{method} {path} timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailableException(
                f"{method} {path} -> HTTP {exc.response.status_code}",
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableException(f"{method} {path} failed: {exc}") from exc
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            request = response.request
            raise UpstreamUnavailableException(
                f"{request.method} {request.url.path} returned a non-JSON body",
            ) from exc

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        response = await self._request("GET", f"/{collection}")
        body = self._json(response)
        if isinstance(body, dict):
            body = body.get("documents", [])
        if not isinstance(body, list):
            raise UpstreamUnavailableException(f"Unexpected payload for collection {collection}")
        return [document for document in body if isinstance(document, dict)]

    async def add_document(self, collection: str, data: dict[str, Any]) -> str:
        response = await self._request("POST", f"/{collection}", json=data)
        body = self._json(response)
        document_id = body.get("id") if isinstance(body, dict) else None
        if not document_id:
            raise UpstreamUnavailableException("Document store did not return an id")
        return str(document_id)

    async def put_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        await self._request("PUT", f"/{collection}/{document_id}", json=data)

    async def update_document(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        await self._request("PATCH", f"/{collection}/{document_id}", json=data)

    async def delete_document(self, collection: str, document_id: str) -> None:
        await self._request("DELETE", f"/{collection}/{document_id}")

    async def close(self) -> None:
        await self._client.aclose()


_document_store: HttpDocumentStore | None = None
_document_store_signature: tuple[str | None, float] | None = None


def _build_document_store(settings: Settings) -> HttpDocumentStore | None:
    if not settings.remote_store_url:
        return None
    return HttpDocumentStore(
        settings.remote_store_url,
        timeout_seconds=settings.remote_store_timeout_seconds,
    )


def get_document_store() -> DocumentStore | None:
    """Return shared remote store client, or None when running cache-only."""
    global _document_store, _document_store_signature
    settings = get_settings()
    signature = (settings.remote_store_url, settings.remote_store_timeout_seconds)
    if _document_store_signature != signature:
        _document_store = _build_document_store(settings)
        _document_store_signature = signature
        if _document_store is None:
            logger.info("Remote document store not configured; catalog runs cache-only")
    return _document_store


async def close_document_store() -> None:
    """Close shared remote client if one was built."""
    global _document_store, _document_store_signature
    if _document_store is not None:
        await _document_store.close()
    _document_store = None
    _document_store_signature = None
