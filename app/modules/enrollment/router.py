"""Enrollment API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.core.authorization import Action, authorize
from app.modules.enrollment.models import Enrollment
from app.modules.enrollment.schemas import (
    AttendanceUpdate,
    EnrollmentDetails,
    EnrollmentPaymentStatusUpdate,
    EnrollmentStatusUpdate,
    EnrollRequest,
)
from app.modules.enrollment.service import EnrollmentLedgerService, get_enrollment_ledger

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


@router.post("", response_model=Enrollment, status_code=status.HTTP_201_CREATED)
async def enroll(
    payload: EnrollRequest,
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> Enrollment:
    """Enroll current student into a class."""
    return await ledger.enroll(payload.class_id)


@router.delete("/classes/{class_id}", response_model=Enrollment)
async def drop_class(
    class_id: str,
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> Enrollment:
    """Drop current actor's enrollment in a class."""
    return await ledger.drop(class_id)


@router.get("/me", response_model=list[EnrollmentDetails])
async def list_my_enrollments(
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> list[EnrollmentDetails]:
    """List current actor's enrollments with class details."""
    return await ledger.my_enrollments_with_details()


@router.get("/classes/{class_id}", response_model=list[Enrollment])
async def list_class_enrollments(
    class_id: str,
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> list[Enrollment]:
    """List enrollments of a class (admin or its instructor)."""
    offering = await ledger.catalog.get_by_id(class_id)
    authorize(
        ledger.identity,
        Action.VIEW_CLASS_ENROLLMENTS,
        owner_id=offering.instructor_id if offering is not None else None,
    )
    return ledger.for_class(class_id)


@router.get("/students/{student_id}", response_model=list[Enrollment])
async def list_student_enrollments(
    student_id: str,
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> list[Enrollment]:
    """List enrollments of a student (admin or that student)."""
    actor = ledger.identity.get_current_user()
    if actor is None or actor.id != student_id:
        authorize(ledger.identity, Action.MANAGE_ENROLLMENTS)
    return ledger.for_student(student_id)


@router.get("/{enrollment_id}", response_model=EnrollmentDetails)
async def get_enrollment(
    enrollment_id: str,
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> EnrollmentDetails:
    """Return enrollment joined with its class (its student, class instructor or admin)."""
    details = await ledger.details_with_class(enrollment_id)
    actor = ledger.identity.get_current_user()
    if actor is None or actor.id != details.enrollment.student_id:
        offering = details.class_details
        authorize(
            ledger.identity,
            Action.VIEW_CLASS_ENROLLMENTS,
            owner_id=offering.instructor_id if offering is not None else None,
        )
    return details


@router.patch("/{enrollment_id}/attendance", response_model=Enrollment)
async def update_attendance(
    enrollment_id: str,
    payload: AttendanceUpdate,
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> Enrollment:
    """Mark attendance (admin or class instructor)."""
    return await ledger.update_attendance(enrollment_id, payload.attended)


@router.patch("/{enrollment_id}/status", response_model=Enrollment)
async def update_status(
    enrollment_id: str,
    payload: EnrollmentStatusUpdate,
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> Enrollment:
    """Set enrollment status (admin)."""
    authorize(ledger.identity, Action.MANAGE_ENROLLMENTS)
    return await ledger.update_status(enrollment_id, payload.status)


@router.patch("/{enrollment_id}/payment-status", response_model=Enrollment)
async def update_payment_status(
    enrollment_id: str,
    payload: EnrollmentPaymentStatusUpdate,
    ledger: EnrollmentLedgerService = Depends(get_enrollment_ledger),
) -> Enrollment:
    """Set enrollment payment status (admin)."""
    authorize(ledger.identity, Action.MANAGE_ENROLLMENTS)
    return await ledger.update_payment_status(enrollment_id, payload.payment_status)
