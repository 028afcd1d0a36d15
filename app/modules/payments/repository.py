"""Payment repository layer."""

from __future__ import annotations

from app.core.storage import CollectionRepository, KeyValueStore
from app.modules.payments.models import Payment


class PaymentRepository(CollectionRepository[Payment]):
    """Persisted payment ledger."""

    storage_key = "payments"

    def __init__(self, store: KeyValueStore) -> None:
        super().__init__(store, Payment)
