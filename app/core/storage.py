"""Key-value backends holding the persisted ledger collections."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, TypeAdapter
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class KeyValueStore(Protocol):
    """Common contract for local collection storage."""

    async def get(self, key: str) -> str | None:
        """Return stored JSON text for key."""

    async def set(self, key: str, value: str) -> None:
        """Replace stored JSON text for key."""

    async def delete(self, key: str) -> None:
        """Remove key."""

    async def ping(self) -> bool:
        """Return True if backend accepts reads."""

    async def close(self) -> None:
        """Release backend connections."""


class MemoryKeyValueStore:
    """Process-local store, the equivalent of one browser tab's storage."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            self._values[key] = value

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._values.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class RedisKeyValueStore:
    """Redis-backed store shared across app instances."""

    def __init__(self, *, redis_url: str, namespace: str) -> None:
        self._redis_url = redis_url
        self._namespace = namespace
        self._init_lock = asyncio.Lock()
        self._client: Any | None = None

    def _build_storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def _ensure_initialized(self) -> None:
        if self._client is not None:
            return

        async with self._init_lock:
            if self._client is None:
                from redis.asyncio import from_url

                self._client = from_url(
                    self._redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )

    async def get(self, key: str) -> str | None:
        await self._ensure_initialized()
        return await self._client.get(self._build_storage_key(key))

    async def set(self, key: str, value: str) -> None:
        await self._ensure_initialized()
        await self._client.set(self._build_storage_key(key), value)

    async def delete(self, key: str) -> None:
        await self._ensure_initialized()
        await self._client.delete(self._build_storage_key(key))

    async def ping(self) -> bool:
        await self._ensure_initialized()
        return bool(await self._client.ping())

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class DatabaseKeyValueStore:
    """SQL store keeping one ``stored_collections`` row per key."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        *,
        namespace: str,
    ) -> None:
        self._session_factory = session_factory
        self._namespace = namespace

    def _build_storage_key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> str | None:
        from app.core.database import StoredCollection

        async with self._session_factory() as session:
            row = await session.scalar(
                select(StoredCollection).where(
                    StoredCollection.key == self._build_storage_key(key),
                ),
            )
            if row is None:
                return None
            return json.dumps(row.payload)

    async def set(self, key: str, value: str) -> None:
        from app.core.database import StoredCollection

        storage_key = self._build_storage_key(key)
        async with self._session_factory() as session:
            row = await session.get(StoredCollection, storage_key)
            if row is None:
                session.add(StoredCollection(key=storage_key, payload=json.loads(value)))
            else:
                row.payload = json.loads(value)
            await session.commit()

    async def delete(self, key: str) -> None:
        from app.core.database import StoredCollection

        async with self._session_factory() as session:
            row = await session.get(StoredCollection, self._build_storage_key(key))
            if row is not None:
                await session.delete(row)
                await session.commit()

    async def ping(self) -> bool:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True

    async def close(self) -> None:
        from app.core.database import close_engine

        await close_engine()


class CollectionRepository(Generic[T]):
    """Read-whole/write-whole JSON collection stored under one key."""

    storage_key: str = ""

    def __init__(self, store: KeyValueStore, record_type: type[T]) -> None:
        self.store = store
        self._adapter = TypeAdapter(list[record_type])

    async def load(self) -> list[T] | None:
        """Return stored records, or None if key was never written."""
        raw = await self.store.get(self.storage_key)
        if raw is None:
            return None
        return self._adapter.validate_json(raw)

    async def save(self, records: list[T]) -> None:
        await self.store.set(self.storage_key, self._adapter.dump_json(records).decode("utf-8"))


_store: KeyValueStore | None = None
_store_signature: tuple[str, str | None, str] | None = None


def _build_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "redis":
        return RedisKeyValueStore(
            redis_url=settings.redis_url or "",
            namespace=settings.storage_namespace,
        )
    if settings.storage_backend == "database":
        from app.core.database import SessionLocal

        return DatabaseKeyValueStore(SessionLocal, namespace=settings.storage_namespace)
    return MemoryKeyValueStore()


def get_key_value_store() -> KeyValueStore:
    """Return shared store instance for configured backend."""
    global _store, _store_signature
    settings = get_settings()
    signature = (settings.storage_backend, settings.redis_url, settings.storage_namespace)
    if _store is None or _store_signature != signature:
        _store = _build_store(settings)
        _store_signature = signature
        logger.info("Using %s storage backend", settings.storage_backend)
    return _store


async def close_key_value_store() -> None:
    """Release shared store connections."""
    global _store, _store_signature
    if _store is not None:
        await _store.close()
    _store = None
    _store_signature = None
