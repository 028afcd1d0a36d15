"""Enrollment schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.core.enums import EnrollmentPaymentStatusEnum, EnrollmentStatusEnum
from app.modules.catalog.models import ClassOffering
from app.modules.enrollment.models import Enrollment


class EnrollRequest(BaseModel):
    """Enroll current student into a class."""

    class_id: str = Field(min_length=1)


class AttendanceUpdate(BaseModel):
    """Attendance mark request."""

    attended: bool


class EnrollmentStatusUpdate(BaseModel):
    """Enrollment status change request."""

    status: EnrollmentStatusEnum


class EnrollmentPaymentStatusUpdate(BaseModel):
    """Enrollment payment status change request."""

    payment_status: EnrollmentPaymentStatusEnum


class EnrollmentDetails(BaseModel):
    """Enrollment joined with its class; class is None when it was deleted."""

    enrollment: Enrollment
    class_details: ClassOffering | None = None
