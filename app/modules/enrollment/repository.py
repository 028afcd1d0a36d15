"""Enrollment repository layer."""

from __future__ import annotations

from app.core.storage import CollectionRepository, KeyValueStore
from app.modules.enrollment.models import Enrollment


class EnrollmentRepository(CollectionRepository[Enrollment]):
    """Persisted enrollment ledger."""

    storage_key = "enrollments"

    def __init__(self, store: KeyValueStore) -> None:
        super().__init__(store, Enrollment)
