"""Payment records."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.core.enums import PaymentStatusEnum
from app.shared.utils import utc_now


class Payment(BaseModel):
    """Payment for one enrollment; amount is the class price at payment time."""

    id: str
    enrollment_id: str
    student_id: str
    class_id: str
    amount: Decimal = Field(ge=0)
    currency: str = "USD"
    payment_method: str = "bank_transfer"
    status: PaymentStatusEnum = PaymentStatusEnum.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    transaction_id: str
    confirmed_at: datetime | None = None
    confirmed_by: str | None = None
    failed_at: datetime | None = None
