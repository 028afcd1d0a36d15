"""Enrollment records."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.core.enums import EnrollmentPaymentStatusEnum, EnrollmentStatusEnum
from app.shared.utils import utc_now


class Enrollment(BaseModel):
    """Link between one student and one class."""

    id: str
    student_id: str
    class_id: str
    enrollment_date: datetime = Field(default_factory=utc_now)
    status: EnrollmentStatusEnum = EnrollmentStatusEnum.ACTIVE
    attended: bool = False
    payment_status: EnrollmentPaymentStatusEnum = EnrollmentPaymentStatusEnum.PENDING
