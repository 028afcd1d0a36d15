from __future__ import annotations

from decimal import Decimal

import pytest

from app.core.enums import EnrollmentPaymentStatusEnum, PaymentStatusEnum, RoleEnum
from app.core.storage import MemoryKeyValueStore
from app.modules.catalog.models import ClassOffering
from app.modules.catalog.repository import ClassRepository
from app.modules.catalog.service import ClassCatalogService
from app.modules.enrollment.repository import EnrollmentRepository
from app.modules.enrollment.service import EnrollmentLedgerService
from app.modules.identity.schemas import CurrentUser
from app.modules.payments.repository import PaymentRepository
from app.modules.payments.service import PaymentLedgerService
from app.shared.exceptions import (
    InvalidTransitionException,
    NotAuthenticatedException,
    NotFoundException,
    PermissionDeniedException,
)

ADMIN = CurrentUser(id="admin_1", role=RoleEnum.ADMIN)
STUDENT = CurrentUser(id="student_1", role=RoleEnum.STUDENT)
OTHER_STUDENT = CurrentUser(id="student_2", role=RoleEnum.STUDENT)


class ActingIdentity:
    def __init__(self, user: CurrentUser | None = None) -> None:
        self.user = user

    def get_current_user(self) -> CurrentUser | None:
        return self.user

    def is_authenticated(self) -> bool:
        return self.user is not None

    def has_role(self, role: RoleEnum) -> bool:
        return self.user is not None and self.user.role == role


async def _payments(identity: ActingIdentity, store: MemoryKeyValueStore) -> PaymentLedgerService:
    catalog = ClassCatalogService(repository=ClassRepository(store), identity=identity)
    await catalog.load()
    enrollments = EnrollmentLedgerService(
        repository=EnrollmentRepository(store),
        catalog=catalog,
        identity=identity,
    )
    await enrollments.load()
    ledger = PaymentLedgerService(
        repository=PaymentRepository(store),
        catalog=catalog,
        enrollments=enrollments,
        identity=identity,
    )
    await ledger.load()
    return ledger


async def _two_instructor_store() -> MemoryKeyValueStore:
    store = MemoryKeyValueStore()
    await ClassRepository(store).save(
        [
            ClassOffering(
                id="own",
                title="Own Flow",
                instructor_id="instructor_1",
                price=Decimal("20"),
                max_students=5,
            ),
            ClassOffering(
                id="other",
                title="Other Flow",
                instructor_id="instructor_2",
                price=Decimal("50"),
                max_students=5,
            ),
        ],
    )
    return store


@pytest.mark.asyncio
async def test_process_payment_snapshots_class_price() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, MemoryKeyValueStore())
    enrollment = await ledger.enrollments.enroll("class_2")

    payment = await ledger.process_payment(enrollment.id)

    assert payment.amount == Decimal("20")
    assert payment.status == PaymentStatusEnum.PENDING
    assert payment.student_id == "student_1"
    assert payment.class_id == "class_2"
    assert payment.currency == "USD"
    assert payment.payment_method == "bank_transfer"
    assert payment.transaction_id.startswith("TXN")
    assert payment.transaction_id == payment.transaction_id.upper()
    assert ledger.enrollments.get_by_id(enrollment.id).payment_status == EnrollmentPaymentStatusEnum.PENDING
    assert ledger.my_history() == [payment]


@pytest.mark.asyncio
async def test_transaction_ids_are_unique() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, MemoryKeyValueStore())
    enrollment = await ledger.enrollments.enroll("class_1")

    first = await ledger.process_payment(enrollment.id, "card")
    second = await ledger.process_payment(enrollment.id, "card")

    assert first.transaction_id != second.transaction_id
    assert first.payment_method == "card"


@pytest.mark.asyncio
async def test_process_payment_guards() -> None:
    store = MemoryKeyValueStore()
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, store)
    enrollment = await ledger.enrollments.enroll("class_1")

    with pytest.raises(NotFoundException):
        await ledger.process_payment("missing")

    identity.user = OTHER_STUDENT
    with pytest.raises(PermissionDeniedException):
        await ledger.process_payment(enrollment.id)

    identity.user = None
    with pytest.raises(NotAuthenticatedException):
        await ledger.process_payment(enrollment.id)

    identity.user = ADMIN
    payment = await ledger.process_payment(enrollment.id)
    assert payment.student_id == "student_1"


@pytest.mark.asyncio
async def test_confirm_payment_completes_enrollment() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, MemoryKeyValueStore())
    enrollment = await ledger.enrollments.enroll("class_1")
    payment = await ledger.process_payment(enrollment.id)

    identity.user = ADMIN
    confirmed = await ledger.confirm_payment(payment.id)

    assert confirmed.status == PaymentStatusEnum.CONFIRMED
    assert confirmed.confirmed_by == "admin_1"
    assert confirmed.confirmed_at is not None
    assert ledger.enrollments.get_by_id(enrollment.id).payment_status == EnrollmentPaymentStatusEnum.COMPLETED


@pytest.mark.asyncio
async def test_confirm_is_admin_only() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, MemoryKeyValueStore())
    enrollment = await ledger.enrollments.enroll("class_1")
    payment = await ledger.process_payment(enrollment.id)

    with pytest.raises(PermissionDeniedException):
        await ledger.confirm_payment(payment.id)
    assert ledger.get_by_id(payment.id).status == PaymentStatusEnum.PENDING

    identity.user = ADMIN
    with pytest.raises(NotFoundException):
        await ledger.confirm_payment("missing")


@pytest.mark.asyncio
async def test_confirm_is_monotone() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, MemoryKeyValueStore())
    enrollment = await ledger.enrollments.enroll("class_1")
    payment = await ledger.process_payment(enrollment.id)

    identity.user = ADMIN
    first = await ledger.confirm_payment(payment.id)
    first_stamp = first.confirmed_at
    again = await ledger.confirm_payment(payment.id)
    assert again.status == PaymentStatusEnum.CONFIRMED
    assert again.confirmed_at >= first_stamp

    with pytest.raises(InvalidTransitionException):
        await ledger.fail_payment(payment.id)
    assert ledger.get_by_id(payment.id).status == PaymentStatusEnum.CONFIRMED


@pytest.mark.asyncio
async def test_failed_payment_is_terminal() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, MemoryKeyValueStore())
    enrollment = await ledger.enrollments.enroll("class_1")
    payment = await ledger.process_payment(enrollment.id)

    identity.user = ADMIN
    failed = await ledger.fail_payment(payment.id)
    assert failed.status == PaymentStatusEnum.FAILED
    assert failed.failed_at is not None

    with pytest.raises(InvalidTransitionException):
        await ledger.confirm_payment(payment.id)
    assert ledger.enrollments.get_by_id(enrollment.id).payment_status == EnrollmentPaymentStatusEnum.PENDING


@pytest.mark.asyncio
async def test_pending_is_empty_for_non_admins() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, MemoryKeyValueStore())
    enrollment = await ledger.enrollments.enroll("class_1")
    payment = await ledger.process_payment(enrollment.id)

    assert ledger.pending() == []

    identity.user = ADMIN
    assert ledger.pending() == [payment]


@pytest.mark.asyncio
async def test_instructor_revenue_uses_revenue_share_of_confirmed_payments() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, await _two_instructor_store())
    own = await ledger.enrollments.enroll("own")
    other = await ledger.enrollments.enroll("other")
    own_payment = await ledger.process_payment(own.id)
    other_payment = await ledger.process_payment(other.id)

    identity.user = ADMIN
    assert ledger.instructor_revenue("instructor_1") == Decimal("0")

    await ledger.confirm_payment(own_payment.id)
    await ledger.confirm_payment(other_payment.id)

    assert ledger.instructor_revenue("instructor_1") == Decimal("14.0")
    assert ledger.instructor_revenue("instructor_2") == Decimal("35.0")
    assert ledger.total_revenue() == Decimal("70")


@pytest.mark.asyncio
async def test_revenue_share_is_configurable() -> None:
    store = await _two_instructor_store()
    identity = ActingIdentity(STUDENT)
    base = await _payments(identity, store)
    enrollment = await base.enrollments.enroll("own")
    payment = await base.process_payment(enrollment.id)
    identity.user = ADMIN
    await base.confirm_payment(payment.id)

    ledger = PaymentLedgerService(
        repository=PaymentRepository(store),
        catalog=base.catalog,
        enrollments=base.enrollments,
        identity=identity,
        revenue_share=Decimal("0.5"),
    )
    await ledger.load()

    assert ledger.instructor_revenue("instructor_1") == Decimal("10.00")


@pytest.mark.asyncio
async def test_stats_counts_by_status() -> None:
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, await _two_instructor_store())
    own = await ledger.enrollments.enroll("own")
    other = await ledger.enrollments.enroll("other")
    confirmed = await ledger.process_payment(own.id)
    failed = await ledger.process_payment(other.id)
    await ledger.process_payment(other.id)

    identity.user = ADMIN
    await ledger.confirm_payment(confirmed.id)
    await ledger.fail_payment(failed.id)

    stats = ledger.stats()
    assert stats.total_payments == 3
    assert stats.confirmed == 1
    assert stats.pending == 1
    assert stats.failed == 1
    assert stats.total_revenue == Decimal("20")
    assert stats.average_payment == Decimal("6.67")


@pytest.mark.asyncio
async def test_stats_on_empty_ledger() -> None:
    ledger = await _payments(ActingIdentity(ADMIN), MemoryKeyValueStore())

    stats = ledger.stats()

    assert stats.total_payments == 0
    assert stats.total_revenue == Decimal("0")
    assert stats.average_payment == Decimal("0")


@pytest.mark.asyncio
async def test_payments_persist_across_ledgers() -> None:
    store = MemoryKeyValueStore()
    identity = ActingIdentity(STUDENT)
    ledger = await _payments(identity, store)
    enrollment = await ledger.enrollments.enroll("class_3")
    payment = await ledger.process_payment(enrollment.id)

    reloaded = await _payments(ActingIdentity(ADMIN), store)

    assert reloaded.get_by_id(payment.id) == payment
    assert reloaded.for_student("student_1") == [payment]
    assert reloaded.for_student("student_2") == []
