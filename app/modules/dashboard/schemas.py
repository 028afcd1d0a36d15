"""Dashboard schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.modules.catalog.models import ClassOffering
from app.modules.enrollment.models import Enrollment
from app.modules.identity.schemas import CurrentUser
from app.modules.payments.models import Payment


class ClassAttendanceRead(BaseModel):
    """Attendance breakdown for one class."""

    class_id: str
    class_title: str
    enrolled: int
    attended: int
    attendance_rate: int


class TopClassRead(BaseModel):
    """Class ranked by member count."""

    class_id: str
    title: str
    enrollments: int
    capacity: int
    occupancy: int


class ClassRevenueRead(BaseModel):
    """Confirmed revenue of one class."""

    class_id: str
    class_name: str
    revenue: Decimal


class StudentDashboardStats(BaseModel):
    enrolled_classes: int
    total_spent: Decimal
    pending_payments: int
    attendance_rate: int
    upcoming_classes: list[Enrollment] = Field(default_factory=list)
    recent_payments: list[Payment] = Field(default_factory=list)


class InstructorDashboardStats(BaseModel):
    total_classes: int
    total_students: int
    revenue: Decimal
    average_class_size: Decimal
    upcoming_classes: list[ClassOffering] = Field(default_factory=list)
    attendance_by_class: list[ClassAttendanceRead] = Field(default_factory=list)


class AdminDashboardStats(BaseModel):
    total_classes: int
    total_enrollments: int
    total_students: int
    total_instructors: int
    total_revenue: Decimal
    pending_revenue: Decimal
    confirmed_payments: int
    pending_payments: int
    class_occupancy: int
    top_classes: list[TopClassRead] = Field(default_factory=list)
    revenue_by_class: list[ClassRevenueRead] = Field(default_factory=list)
    pending_payments_list: list[Payment] = Field(default_factory=list)


class StudentDashboardRead(BaseModel):
    """Dashboard of the current student."""

    role: Literal["student"] = "student"
    user: CurrentUser
    generated_at: datetime
    stats: StudentDashboardStats
    enrollments: list[Enrollment] = Field(default_factory=list)


class InstructorDashboardRead(BaseModel):
    """Dashboard of the current instructor."""

    role: Literal["instructor"] = "instructor"
    user: CurrentUser
    generated_at: datetime
    stats: InstructorDashboardStats
    classes: list[ClassOffering] = Field(default_factory=list)


class AdminDashboardRead(BaseModel):
    """Studio-wide dashboard."""

    role: Literal["admin"] = "admin"
    user: CurrentUser
    generated_at: datetime
    stats: AdminDashboardStats
    classes: list[ClassOffering] = Field(default_factory=list)
    enrollments: list[Enrollment] = Field(default_factory=list)


DashboardRead = StudentDashboardRead | InstructorDashboardRead | AdminDashboardRead
