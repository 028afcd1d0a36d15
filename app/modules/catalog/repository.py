"""Catalog repository layer."""

from __future__ import annotations

from app.core.storage import CollectionRepository, KeyValueStore
from app.modules.catalog.models import ClassOffering


class ClassRepository(CollectionRepository[ClassOffering]):
    """Local cache of the class catalog."""

    storage_key = "classes"

    def __init__(self, store: KeyValueStore) -> None:
        super().__init__(store, ClassOffering)
