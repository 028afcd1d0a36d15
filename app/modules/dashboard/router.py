"""Dashboard API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.modules.dashboard.schemas import (
    AdminDashboardRead,
    DashboardRead,
    InstructorDashboardRead,
    StudentDashboardRead,
)
from app.modules.dashboard.service import DashboardService, get_dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardRead)
async def current_dashboard(
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardRead:
    """Return dashboard for the caller's role."""
    return service.for_current_user()


@router.get("/student", response_model=StudentDashboardRead)
async def student_dashboard(
    service: DashboardService = Depends(get_dashboard_service),
) -> StudentDashboardRead:
    """Return current student's dashboard."""
    return service.student_view()


@router.get("/instructor", response_model=InstructorDashboardRead)
async def instructor_dashboard(
    service: DashboardService = Depends(get_dashboard_service),
) -> InstructorDashboardRead:
    """Return current instructor's dashboard."""
    return service.instructor_view()


@router.get("/admin", response_model=AdminDashboardRead)
async def admin_dashboard(
    service: DashboardService = Depends(get_dashboard_service),
) -> AdminDashboardRead:
    """Return studio-wide admin dashboard."""
    return service.admin_view()
