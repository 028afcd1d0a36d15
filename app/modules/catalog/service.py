"""Class catalog business logic layer."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import Depends
from pydantic import ValidationError

from app.core.authorization import Action, authorize
from app.core.config import get_settings
from app.core.documents import DocumentStore, get_document_store
from app.core.enums import CatalogSourceEnum
from app.core.metrics import record_upstream_failure
from app.core.storage import KeyValueStore, get_key_value_store
from app.modules.catalog.models import ClassOffering, starter_classes
from app.modules.catalog.normalization import normalize_class_data
from app.modules.catalog.repository import ClassRepository
from app.modules.catalog.schemas import CatalogSyncStatus, ClassFilters
from app.modules.identity.service import IdentityProvider, get_identity_provider
from app.shared.exceptions import (
    NotFoundException,
    UpstreamUnavailableException,
    ValidationException,
)
from app.shared.utils import new_record_id, utc_now

logger = logging.getLogger(__name__)


class ClassCatalogService:
    """Class catalog backed by the local cache and an optional remote store.

    The local cache is the fallback for every remote failure: reads degrade to
    it and writes always land in it. Remote problems are recorded in
    ``sync_status``, logged and counted, never raised to the caller.
    """

    def __init__(
        self,
        repository: ClassRepository,
        identity: IdentityProvider,
        document_store: DocumentStore | None = None,
        *,
        collection: str = "classes",
        seed_defaults: bool = True,
    ) -> None:
        self.repository = repository
        self.identity = identity
        self.document_store = document_store
        self.collection = collection
        self.seed_defaults = seed_defaults
        self.classes: list[ClassOffering] = []
        self.sync_status = CatalogSyncStatus()
        self._loaded = False

    async def load(self) -> list[ClassOffering]:
        """Read the local cache into memory, seeding it on first use."""
        stored = await self.repository.load()
        if stored is None:
            stored = starter_classes() if self.seed_defaults else []
        self.classes = stored
        self._loaded = True
        return self.classes

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            await self.load()

    async def _persist(self) -> None:
        await self.repository.save(self.classes)

    def _record_upstream_failure(self, operation: str, exc: Exception) -> None:
        message = exc.message if isinstance(exc, UpstreamUnavailableException) else str(exc)
        logger.warning("Catalog %s fell back to local cache: %s", operation, message)
        record_upstream_failure(operation)
        self.sync_status = CatalogSyncStatus(
            source=CatalogSourceEnum.CACHE,
            upstream_error=message,
            checked_at=utc_now(),
        )

    def _from_document(self, document: Mapping[str, Any]) -> ClassOffering:
        document_id = document.get("id")
        if not document_id:
            raise ValidationException("Remote class document has no id")
        data = dict(document)
        if not data.get("created_at"):
            # Remote copy has no creation stamp; keep the one from first sight.
            known = self.find(str(document_id))
            if known is not None:
                data["created_at"] = known.created_at
        return ClassOffering(id=str(document_id), **normalize_class_data(data))

    @staticmethod
    def _to_document(offering: ClassOffering, fields: set[str] | None = None) -> dict[str, Any]:
        return offering.model_dump(mode="json", include=fields, exclude={"id"})

    async def get_all(self) -> list[ClassOffering]:
        """Return all classes, preferring a non-empty remote result."""
        if self.document_store is None:
            await self.load()
            self.sync_status = CatalogSyncStatus(checked_at=utc_now())
            return list(self.classes)

        try:
            documents = await self.document_store.list_documents(self.collection)
            remote_classes = [self._from_document(document) for document in documents]
        except (UpstreamUnavailableException, ValidationException, ValidationError) as exc:
            self._record_upstream_failure("list", exc)
            await self.load()
            return list(self.classes)

        if not remote_classes:
            await self.load()
            self.sync_status = CatalogSyncStatus(checked_at=utc_now())
            return list(self.classes)

        self.classes = remote_classes
        self._loaded = True
        await self._persist()
        self.sync_status = CatalogSyncStatus(source=CatalogSourceEnum.REMOTE, checked_at=utc_now())
        return list(self.classes)

    def find(self, class_id: str) -> ClassOffering | None:
        """Return cached class by id without any I/O."""
        return next((offering for offering in self.classes if offering.id == class_id), None)

    async def get_by_id(self, class_id: str) -> ClassOffering | None:
        """Return class by id, or None when it does not exist."""
        if not self.classes:
            await self.get_all()
        return self.find(class_id)

    async def create(self, data: Mapping[str, Any]) -> ClassOffering:
        """Create a class (admin only)."""
        authorize(self.identity, Action.MANAGE_CATALOG)
        offering = ClassOffering(id=new_record_id("class"), **normalize_class_data(data))
        await self._ensure_loaded()

        if self.document_store is not None:
            try:
                remote_id = await self.document_store.add_document(
                    self.collection,
                    self._to_document(offering),
                )
                offering = offering.model_copy(update={"id": remote_id})
            except UpstreamUnavailableException as exc:
                self._record_upstream_failure("create", exc)

        self.classes.append(offering)
        await self._persist()
        logger.info("Class %s created", offering.id)
        return offering

    async def update(self, class_id: str, data: Mapping[str, Any]) -> ClassOffering:
        """Merge supplied fields into a class (admin only)."""
        authorize(self.identity, Action.MANAGE_CATALOG)
        await self._ensure_loaded()
        existing = self.find(class_id)
        if existing is None:
            raise NotFoundException("Class not found")

        data = dict(data)
        if isinstance(data.get("schedule"), Mapping):
            schedule = existing.schedule.model_dump(mode="json")
            schedule.update({key: value for key, value in data["schedule"].items() if value is not None})
            data["schedule"] = schedule
        changes = normalize_class_data(data, partial=True)
        updated = ClassOffering.model_validate({**existing.model_dump(), **changes})

        if self.document_store is not None and changes:
            try:
                await self.document_store.update_document(
                    self.collection,
                    class_id,
                    self._to_document(updated, set(changes)),
                )
            except UpstreamUnavailableException as exc:
                self._record_upstream_failure("update", exc)

        self.classes[self.classes.index(existing)] = updated
        await self._persist()
        return updated

    async def delete(self, class_id: str) -> ClassOffering:
        """Delete a class (admin only); enrollments referencing it are kept."""
        authorize(self.identity, Action.MANAGE_CATALOG)
        await self._ensure_loaded()
        existing = self.find(class_id)
        if existing is None:
            raise NotFoundException("Class not found")

        if self.document_store is not None:
            try:
                await self.document_store.delete_document(self.collection, class_id)
            except UpstreamUnavailableException as exc:
                self._record_upstream_failure("delete", exc)

        self.classes = [offering for offering in self.classes if offering.id != class_id]
        await self._persist()
        logger.info("Class %s deleted", class_id)
        return existing

    async def save_members(self, offering: ClassOffering) -> None:
        """Persist a membership change made by the enrollment ledger."""
        await self._persist()
        if self.document_store is None:
            return
        try:
            await self.document_store.update_document(
                self.collection,
                offering.id,
                {"enrolled_student_ids": list(offering.enrolled_student_ids)},
            )
        except UpstreamUnavailableException as exc:
            self._record_upstream_failure("members", exc)

    async def migrate_local_to_remote(self) -> int:
        """Copy cached classes to an empty remote store, keeping their ids."""
        authorize(self.identity, Action.MANAGE_CATALOG)
        if self.document_store is None:
            logger.warning("Class migration requested but no remote store is configured")
            return 0

        documents = await self.document_store.list_documents(self.collection)
        if documents:
            return 0

        local_classes = await self.load()
        for offering in local_classes:
            await self.document_store.put_document(
                self.collection,
                offering.id,
                self._to_document(offering),
            )
        await self.get_all()
        logger.info("Migrated %s classes to remote store", len(local_classes))
        return len(local_classes)

    def search(self, filters: ClassFilters | None = None) -> list[ClassOffering]:
        """Filter cached classes; order is preserved."""
        filters = filters or ClassFilters()
        results = list(self.classes)

        if filters.search:
            needle = filters.search.lower()
            results = [
                offering
                for offering in results
                if needle in offering.title.lower() or needle in offering.instructor_name.lower()
            ]
        if filters.difficulty:
            difficulty = filters.difficulty.lower()
            results = [offering for offering in results if offering.difficulty == difficulty]
        if filters.day:
            day = filters.day.lower()
            results = [offering for offering in results if offering.schedule.day == day]
        if filters.min_price is not None:
            results = [offering for offering in results if offering.price >= filters.min_price]
        if filters.max_price is not None:
            results = [offering for offering in results if offering.price <= filters.max_price]
        if filters.available_only:
            results = [
                offering
                for offering in results
                if offering.max_students > len(offering.enrolled_student_ids)
            ]
        return results

    def available_spots(self, class_id: str) -> int:
        """Remaining capacity; may go negative after a capacity cut."""
        offering = self.find(class_id)
        if offering is None:
            return 0
        return offering.max_students - len(offering.enrolled_student_ids)

    def is_full(self, class_id: str) -> bool:
        return self.available_spots(class_id) <= 0

    def by_instructor(self, instructor_id: str) -> list[ClassOffering]:
        return [offering for offering in self.classes if offering.instructor_id == instructor_id]


async def get_class_catalog(
    store: KeyValueStore = Depends(get_key_value_store),
    document_store: DocumentStore | None = Depends(get_document_store),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> ClassCatalogService:
    """Dependency provider for the class catalog."""
    settings = get_settings()
    catalog = ClassCatalogService(
        repository=ClassRepository(store),
        identity=identity,
        document_store=document_store,
        collection=settings.remote_classes_collection,
        seed_defaults=settings.seed_default_classes,
    )
    await catalog.load()
    return catalog
