"""Payments API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.core.authorization import Action, authorize
from app.modules.payments.models import Payment
from app.modules.payments.schemas import PaymentCreate, PaymentStats, RevenueRead
from app.modules.payments.service import PaymentLedgerService, get_payment_ledger
from app.shared.exceptions import NotFoundException

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=Payment, status_code=status.HTTP_201_CREATED)
async def process_payment(
    payload: PaymentCreate,
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> Payment:
    """Record a pending payment for an enrollment."""
    return await ledger.process_payment(payload.enrollment_id, payload.payment_method)


@router.post("/{payment_id}/confirm", response_model=Payment)
async def confirm_payment(
    payment_id: str,
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> Payment:
    """Confirm payment received (admin only)."""
    return await ledger.confirm_payment(payment_id)


@router.post("/{payment_id}/fail", response_model=Payment)
async def fail_payment(
    payment_id: str,
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> Payment:
    """Mark payment as failed (admin only)."""
    return await ledger.fail_payment(payment_id)


@router.get("/me", response_model=list[Payment])
async def list_my_payments(
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> list[Payment]:
    """List current student's payment history."""
    return ledger.my_history()


@router.get("/pending", response_model=list[Payment])
async def list_pending_payments(
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> list[Payment]:
    """List pending payments (empty for non-admins)."""
    return ledger.pending()


@router.get("/stats", response_model=PaymentStats)
async def payment_stats(
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> PaymentStats:
    """Payment counts and revenue (admin only)."""
    authorize(ledger.identity, Action.REVIEW_PAYMENT)
    return ledger.stats()


@router.get("/revenue", response_model=RevenueRead)
async def total_revenue(
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> RevenueRead:
    """Confirmed revenue across all classes (admin only)."""
    authorize(ledger.identity, Action.REVIEW_PAYMENT)
    return RevenueRead(scope="total", amount=ledger.total_revenue())


@router.get("/revenue/instructors/{instructor_id}", response_model=RevenueRead)
async def instructor_revenue(
    instructor_id: str,
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> RevenueRead:
    """Instructor share of confirmed revenue (admin or that instructor)."""
    actor = ledger.identity.get_current_user()
    if actor is None or actor.id != instructor_id:
        authorize(ledger.identity, Action.REVIEW_PAYMENT)
    return RevenueRead(
        scope=f"instructor:{instructor_id}",
        amount=ledger.instructor_revenue(instructor_id),
    )


@router.get("/students/{student_id}", response_model=list[Payment])
async def list_student_payments(
    student_id: str,
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> list[Payment]:
    """List payments of a student (admin or that student)."""
    actor = ledger.identity.get_current_user()
    if actor is None or actor.id != student_id:
        authorize(ledger.identity, Action.REVIEW_PAYMENT)
    return ledger.for_student(student_id)


@router.get("/{payment_id}", response_model=Payment)
async def get_payment(
    payment_id: str,
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
) -> Payment:
    """Return one payment (admin or its student)."""
    payment = ledger.get_by_id(payment_id)
    if payment is None:
        raise NotFoundException("Payment not found")
    actor = ledger.identity.get_current_user()
    if actor is None or actor.id != payment.student_id:
        authorize(ledger.identity, Action.REVIEW_PAYMENT)
    return payment
