"""Catalog schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import CatalogSourceEnum, DifficultyEnum
from app.modules.catalog.models import ClassOffering


class ClassScheduleInput(BaseModel):
    """Schedule as submitted by a client."""

    day: str | None = None
    time: str | None = None


class ClassCreate(BaseModel):
    """Create class request; values are coerced by catalog normalization."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    instructor_name: str | None = None
    instructor_id: str | None = None
    description: str | None = None
    difficulty: str | None = None
    price: Decimal | float | str | None = None
    duration_minutes: int | float | str | None = None
    schedule: ClassScheduleInput | None = None
    max_students: int | float | str | None = None


class ClassUpdate(ClassCreate):
    """Partial class update; only supplied fields are normalized."""

    enrolled_student_ids: list[str] | None = None


class ClassFilters(BaseModel):
    """In-memory catalog search filters."""

    search: str | None = None
    difficulty: str | None = None
    day: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    available_only: bool = False


class CatalogSyncStatus(BaseModel):
    """Outcome of the last remote catalog read."""

    source: CatalogSourceEnum = CatalogSourceEnum.CACHE
    upstream_error: str | None = None
    checked_at: datetime | None = None


class ClassRead(ClassOffering):
    """Class response schema with derived capacity."""

    available_spots: int = Field(default=0)
    is_full: bool = False


class CatalogListRead(BaseModel):
    """Class list with where it came from."""

    items: list[ClassRead]
    total: int
    sync: CatalogSyncStatus


class MigrationResult(BaseModel):
    """Result of pushing cached classes to the remote store."""

    migrated: int
