"""Catalog API router."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status

from app.modules.catalog.models import ClassOffering
from app.modules.catalog.schemas import (
    CatalogListRead,
    ClassCreate,
    ClassFilters,
    ClassRead,
    ClassUpdate,
    MigrationResult,
)
from app.modules.catalog.service import ClassCatalogService, get_class_catalog
from app.shared.exceptions import NotFoundException

router = APIRouter(prefix="/classes", tags=["classes"])


def _to_read(catalog: ClassCatalogService, offering: ClassOffering) -> ClassRead:
    return ClassRead(
        **offering.model_dump(),
        available_spots=catalog.available_spots(offering.id),
        is_full=catalog.is_full(offering.id),
    )


@router.get("", response_model=CatalogListRead)
async def list_classes(
    search: str | None = Query(default=None, max_length=128),
    difficulty: str | None = None,
    day: str | None = None,
    min_price: Decimal | None = Query(default=None, ge=0),
    max_price: Decimal | None = Query(default=None, ge=0),
    available_only: bool = False,
    catalog: ClassCatalogService = Depends(get_class_catalog),
) -> CatalogListRead:
    """List classes, refreshed from the remote store when it is reachable."""
    await catalog.get_all()
    filters = ClassFilters(
        search=search,
        difficulty=difficulty,
        day=day,
        min_price=min_price,
        max_price=max_price,
        available_only=available_only,
    )
    items = [_to_read(catalog, offering) for offering in catalog.search(filters)]
    return CatalogListRead(items=items, total=len(items), sync=catalog.sync_status)


@router.get("/instructors/{instructor_id}", response_model=list[ClassRead])
async def list_instructor_classes(
    instructor_id: str,
    catalog: ClassCatalogService = Depends(get_class_catalog),
) -> list[ClassRead]:
    """List classes taught by an instructor."""
    return [_to_read(catalog, offering) for offering in catalog.by_instructor(instructor_id)]


@router.get("/{class_id}", response_model=ClassRead)
async def get_class(
    class_id: str,
    catalog: ClassCatalogService = Depends(get_class_catalog),
) -> ClassRead:
    """Return one class."""
    offering = await catalog.get_by_id(class_id)
    if offering is None:
        raise NotFoundException("Class not found")
    return _to_read(catalog, offering)


@router.post("", response_model=ClassRead, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ClassCreate,
    catalog: ClassCatalogService = Depends(get_class_catalog),
) -> ClassRead:
    """Create a class (admin only)."""
    offering = await catalog.create(payload.model_dump(exclude_unset=True))
    return _to_read(catalog, offering)


@router.patch("/{class_id}", response_model=ClassRead)
async def update_class(
    class_id: str,
    payload: ClassUpdate,
    catalog: ClassCatalogService = Depends(get_class_catalog),
) -> ClassRead:
    """Update supplied class fields (admin only)."""
    offering = await catalog.update(class_id, payload.model_dump(exclude_unset=True))
    return _to_read(catalog, offering)


@router.delete("/{class_id}", response_model=ClassOffering)
async def delete_class(
    class_id: str,
    catalog: ClassCatalogService = Depends(get_class_catalog),
) -> ClassOffering:
    """Delete a class (admin only)."""
    return await catalog.delete(class_id)


@router.post("/migrate", response_model=MigrationResult)
async def migrate_classes(
    catalog: ClassCatalogService = Depends(get_class_catalog),
) -> MigrationResult:
    """Push cached classes to an empty remote store (admin only)."""
    return MigrationResult(migrated=await catalog.migrate_local_to_remote())
