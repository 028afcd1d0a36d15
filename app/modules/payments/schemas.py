"""Payment schemas."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    """Pay for an enrollment."""

    enrollment_id: str = Field(min_length=1)
    payment_method: str | None = Field(default=None, min_length=1, max_length=64)


class PaymentStats(BaseModel):
    """Payment counts by status and revenue figures."""

    total_payments: int
    confirmed: int
    pending: int
    failed: int
    total_revenue: Decimal
    average_payment: Decimal


class RevenueRead(BaseModel):
    """Revenue figure for a scope."""

    scope: str
    amount: Decimal
