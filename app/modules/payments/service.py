"""Payment business logic layer."""

from __future__ import annotations

import logging
from decimal import Decimal

from fastapi import Depends

from app.core.authorization import Action, authorize, is_allowed
from app.core.config import get_settings
from app.core.enums import EnrollmentPaymentStatusEnum, PaymentStatusEnum
from app.core.storage import KeyValueStore, get_key_value_store
from app.modules.catalog.service import ClassCatalogService, get_class_catalog
from app.modules.enrollment.service import EnrollmentLedgerService, get_enrollment_ledger
from app.modules.identity.service import IdentityProvider, get_identity_provider
from app.modules.payments.models import Payment
from app.modules.payments.repository import PaymentRepository
from app.modules.payments.schemas import PaymentStats
from app.shared.exceptions import (
    InvalidTransitionException,
    NotAuthenticatedException,
    NotFoundException,
)
from app.shared.utils import generate_transaction_id, new_record_id, utc_now

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class PaymentLedgerService:
    """Payment ledger with admin review and revenue figures."""

    def __init__(
        self,
        repository: PaymentRepository,
        catalog: ClassCatalogService,
        enrollments: EnrollmentLedgerService,
        identity: IdentityProvider,
        *,
        currency: str = "USD",
        revenue_share: Decimal = Decimal("0.70"),
        default_payment_method: str = "bank_transfer",
    ) -> None:
        self.repository = repository
        self.catalog = catalog
        self.enrollments = enrollments
        self.identity = identity
        self.currency = currency
        self.revenue_share = revenue_share
        self.default_payment_method = default_payment_method
        self.payments: list[Payment] = []

    async def load(self) -> list[Payment]:
        self.payments = await self.repository.load() or []
        return self.payments

    async def _persist(self) -> None:
        await self.repository.save(self.payments)

    def _require(self, payment_id: str) -> Payment:
        payment = self.get_by_id(payment_id)
        if payment is None:
            raise NotFoundException("Payment not found")
        return payment

    async def _sync_enrollment(self, payment: Payment, status: EnrollmentPaymentStatusEnum) -> None:
        if self.enrollments.get_by_id(payment.enrollment_id) is None:
            logger.warning(
                "Payment %s references missing enrollment %s",
                payment.id,
                payment.enrollment_id,
            )
            return
        await self.enrollments.update_payment_status(payment.enrollment_id, status)

    async def process_payment(self, enrollment_id: str, payment_method: str | None = None) -> Payment:
        """Record a pending payment for an enrollment at the current class price."""
        if not self.identity.is_authenticated():
            raise NotAuthenticatedException("Authentication required")

        enrollment = self.enrollments.get_by_id(enrollment_id)
        if enrollment is None:
            raise NotFoundException("Enrollment not found")
        authorize(self.identity, Action.PROCESS_PAYMENT, owner_id=enrollment.student_id)

        offering = await self.catalog.get_by_id(enrollment.class_id)
        if offering is None:
            raise NotFoundException("Class not found")

        payment = Payment(
            id=new_record_id("payment"),
            enrollment_id=enrollment.id,
            student_id=enrollment.student_id,
            class_id=enrollment.class_id,
            amount=offering.price,
            currency=self.currency,
            payment_method=payment_method or self.default_payment_method,
            status=PaymentStatusEnum.PENDING,
            transaction_id=generate_transaction_id(),
        )
        self.payments.append(payment)
        await self._persist()
        await self.enrollments.update_payment_status(enrollment.id, EnrollmentPaymentStatusEnum.PENDING)

        logger.info("Payment %s created for enrollment %s", payment.id, enrollment.id)
        return payment

    async def confirm_payment(self, payment_id: str) -> Payment:
        """Confirm payment received (admin only)."""
        actor = authorize(self.identity, Action.REVIEW_PAYMENT)
        payment = self._require(payment_id)

        if payment.status == PaymentStatusEnum.FAILED:
            raise InvalidTransitionException(
                f"Invalid payment status transition: {payment.status} -> {PaymentStatusEnum.CONFIRMED}",
            )

        payment.status = PaymentStatusEnum.CONFIRMED
        payment.confirmed_at = utc_now()
        payment.confirmed_by = actor.id
        await self._persist()
        await self._sync_enrollment(payment, EnrollmentPaymentStatusEnum.COMPLETED)

        logger.info("Payment %s confirmed by %s", payment.id, actor.id)
        return payment

    async def fail_payment(self, payment_id: str) -> Payment:
        """Mark a pending payment as failed (admin only)."""
        authorize(self.identity, Action.REVIEW_PAYMENT)
        payment = self._require(payment_id)

        if payment.status == PaymentStatusEnum.FAILED:
            return payment
        if payment.status == PaymentStatusEnum.CONFIRMED:
            raise InvalidTransitionException(
                f"Invalid payment status transition: {payment.status} -> {PaymentStatusEnum.FAILED}",
            )

        payment.status = PaymentStatusEnum.FAILED
        payment.failed_at = utc_now()
        await self._persist()
        return payment

    def my_history(self) -> list[Payment]:
        user = self.identity.get_current_user()
        if user is None:
            return []
        return self.for_student(user.id)

    def pending(self) -> list[Payment]:
        """Pending payments; empty for anyone but admins."""
        if not is_allowed(self.identity, Action.VIEW_PENDING_PAYMENTS):
            return []
        return [payment for payment in self.payments if payment.status == PaymentStatusEnum.PENDING]

    def get_by_id(self, payment_id: str) -> Payment | None:
        return next((payment for payment in self.payments if payment.id == payment_id), None)

    def for_student(self, student_id: str) -> list[Payment]:
        return [payment for payment in self.payments if payment.student_id == student_id]

    def confirmed(self) -> list[Payment]:
        return [payment for payment in self.payments if payment.status == PaymentStatusEnum.CONFIRMED]

    def total_revenue(self) -> Decimal:
        return sum((payment.amount for payment in self.confirmed()), Decimal("0"))

    def instructor_revenue(self, instructor_id: str) -> Decimal:
        """Instructor share of confirmed payments for their classes."""
        class_ids = {offering.id for offering in self.catalog.by_instructor(instructor_id)}
        gross = sum(
            (payment.amount for payment in self.confirmed() if payment.class_id in class_ids),
            Decimal("0"),
        )
        return (gross * self.revenue_share).quantize(CENTS)

    def stats(self) -> PaymentStats:
        total_revenue = self.total_revenue()
        average = total_revenue / len(self.payments) if self.payments else Decimal("0")
        return PaymentStats(
            total_payments=len(self.payments),
            confirmed=len(self.confirmed()),
            pending=sum(1 for payment in self.payments if payment.status == PaymentStatusEnum.PENDING),
            failed=sum(1 for payment in self.payments if payment.status == PaymentStatusEnum.FAILED),
            total_revenue=total_revenue,
            average_payment=average.quantize(CENTS),
        )


async def get_payment_ledger(
    store: KeyValueStore = Depends(get_key_value_store),
    catalog: ClassCatalogService = Depends(get_class_catalog),
    enrollments: EnrollmentLedgerService = Depends(get_enrollment_ledger),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> PaymentLedgerService:
    """Dependency provider for the payment ledger."""
    settings = get_settings()
    ledger = PaymentLedgerService(
        repository=PaymentRepository(store),
        catalog=catalog,
        enrollments=enrollments,
        identity=identity,
        currency=settings.currency,
        revenue_share=settings.instructor_revenue_share,
        default_payment_method=settings.default_payment_method,
    )
    await ledger.load()
    return ledger
