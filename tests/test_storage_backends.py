from __future__ import annotations

import pytest

import app.core.storage as storage_module
from app.core.config import get_settings
from app.core.storage import (
    CollectionRepository,
    DatabaseKeyValueStore,
    MemoryKeyValueStore,
    RedisKeyValueStore,
)
from app.modules.enrollment.models import Enrollment
from app.modules.enrollment.repository import EnrollmentRepository


@pytest.mark.asyncio
async def test_memory_store_get_set_delete() -> None:
    store = MemoryKeyValueStore()

    assert await store.get("classes") is None
    await store.set("classes", "[]")
    assert await store.get("classes") == "[]"
    await store.delete("classes")
    assert await store.get("classes") is None
    assert await store.ping() is True


@pytest.mark.asyncio
async def test_collection_repository_distinguishes_missing_and_empty() -> None:
    store = MemoryKeyValueStore()
    repository = EnrollmentRepository(store)

    assert await repository.load() is None
    await repository.save([])
    assert await repository.load() == []


@pytest.mark.asyncio
async def test_collection_repository_writes_whole_collection_under_one_key() -> None:
    store = MemoryKeyValueStore()
    repository = EnrollmentRepository(store)
    records = [
        Enrollment(id="enrollment_1", student_id="student_1", class_id="class_1"),
        Enrollment(id="enrollment_2", student_id="student_2", class_id="class_1", attended=True),
    ]

    await repository.save(records)

    raw = await store.get("enrollments")
    assert raw is not None and raw.startswith("[")
    assert await repository.load() == records


@pytest.mark.asyncio
async def test_collection_repository_rejects_malformed_payload() -> None:
    store = MemoryKeyValueStore()
    await store.set("enrollments", '[{"id": 1}]')

    with pytest.raises(ValueError):
        await EnrollmentRepository(store).load()


def test_collection_repository_subclasses_set_their_key() -> None:
    assert EnrollmentRepository.storage_key == "enrollments"
    assert CollectionRepository.storage_key == ""


def test_redis_store_namespaces_keys() -> None:
    store = RedisKeyValueStore(redis_url="redis://localhost:6379/0", namespace="studio")

    assert store._build_storage_key("classes") == "studio:classes"


@pytest.mark.asyncio
async def test_shared_store_is_reused_until_closed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(storage_module, "_store", None)
    monkeypatch.setattr(storage_module, "_store_signature", None)
    assert get_settings().storage_backend == "memory"

    first = storage_module.get_key_value_store()
    assert isinstance(first, MemoryKeyValueStore)
    assert storage_module.get_key_value_store() is first

    await storage_module.close_key_value_store()
    assert storage_module.get_key_value_store() is not first


class FakeRedis:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.closed = False

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value

    async def delete(self, key: str) -> None:
        self.values.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_redis_store_round_trips_through_client() -> None:
    client = FakeRedis()
    store = RedisKeyValueStore(redis_url="redis://localhost:6379/0", namespace="studio")
    store._client = client

    await store.set("payments", "[]")

    assert client.values == {"studio:payments": "[]"}
    assert await store.get("payments") == "[]"
    assert await store.ping() is True
    await store.close()
    assert client.closed is True


class FakeSession:
    def __init__(self, rows: dict) -> None:
        self.rows = rows
        self.commits = 0
        self.executed: list[str] = []

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *_: object) -> None:
        return None

    async def get(self, _model, key: str):
        return self.rows.get(key)

    async def scalar(self, statement):
        return self.rows.get(statement.whereclause.right.value)

    def add(self, row) -> None:
        self.rows[row.key] = row

    async def delete(self, row) -> None:
        self.rows.pop(row.key, None)

    async def execute(self, statement) -> None:
        self.executed.append(str(statement))

    async def commit(self) -> None:
        self.commits += 1


@pytest.mark.asyncio
async def test_database_store_keeps_one_row_per_namespaced_key() -> None:
    rows: dict = {}
    sessions: list[FakeSession] = []

    def session_factory() -> FakeSession:
        session = FakeSession(rows)
        sessions.append(session)
        return session

    store = DatabaseKeyValueStore(session_factory, namespace="studio")

    assert await store.get("classes") is None
    await store.set("classes", '[{"id": "class_1"}]')
    await store.set("classes", '[{"id": "class_2"}]')

    assert list(rows) == ["studio:classes"]
    assert rows["studio:classes"].payload == [{"id": "class_2"}]
    assert await store.get("classes") == '[{"id": "class_2"}]'

    await store.delete("classes")
    assert rows == {}
    assert await store.ping() is True
    assert sessions[-1].executed == ["SELECT 1"]
