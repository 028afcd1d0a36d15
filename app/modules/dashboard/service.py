"""Per-role dashboards derived from the catalog and both ledgers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from fastapi import Depends

from app.core.authorization import Action, authorize
from app.core.config import get_settings
from app.core.enums import PaymentStatusEnum, RoleEnum
from app.modules.catalog.models import ClassOffering
from app.modules.catalog.service import ClassCatalogService, get_class_catalog
from app.modules.dashboard.schemas import (
    AdminDashboardRead,
    AdminDashboardStats,
    ClassAttendanceRead,
    ClassRevenueRead,
    DashboardRead,
    InstructorDashboardRead,
    InstructorDashboardStats,
    StudentDashboardRead,
    StudentDashboardStats,
    TopClassRead,
)
from app.modules.enrollment.models import Enrollment
from app.modules.enrollment.service import EnrollmentLedgerService, get_enrollment_ledger
from app.modules.identity.service import IdentityProvider, get_identity_provider
from app.modules.payments.models import Payment
from app.modules.payments.service import PaymentLedgerService, get_payment_ledger
from app.shared.exceptions import NotAuthenticatedException
from app.shared.utils import round_percent, utc_now

CENTS = Decimal("0.01")


def attendance_rate(enrollments: Sequence[Enrollment]) -> int:
    """Attended share of enrollments as a whole percent; 0 when empty."""
    if not enrollments:
        return 0
    attended = sum(1 for enrollment in enrollments if enrollment.attended)
    return round_percent(Decimal(attended) / Decimal(len(enrollments)))


def occupancy_ratio(offering: ClassOffering) -> Decimal:
    if offering.max_students <= 0:
        return Decimal("0")
    return Decimal(len(offering.enrolled_student_ids)) / Decimal(offering.max_students)


def average_occupancy(classes: Sequence[ClassOffering]) -> int:
    """Mean of enrolled/max_students across classes as a whole percent."""
    if not classes:
        return 0
    total = sum((occupancy_ratio(offering) for offering in classes), Decimal("0"))
    return round_percent(total / Decimal(len(classes)))


def top_classes(classes: Iterable[ClassOffering], limit: int) -> list[TopClassRead]:
    """Classes with the most members first; ties keep catalog order."""
    ranked = sorted(classes, key=lambda offering: len(offering.enrolled_student_ids), reverse=True)
    return [
        TopClassRead(
            class_id=offering.id,
            title=offering.title,
            enrollments=len(offering.enrolled_student_ids),
            capacity=offering.max_students,
            occupancy=round_percent(occupancy_ratio(offering)),
        )
        for offering in ranked[:limit]
    ]


def revenue_by_class(
    payments: Iterable[Payment],
    classes: Iterable[ClassOffering],
) -> list[ClassRevenueRead]:
    """Confirmed revenue per class, highest first."""
    totals: dict[str, Decimal] = {}
    for payment in payments:
        if payment.status != PaymentStatusEnum.CONFIRMED:
            continue
        totals[payment.class_id] = totals.get(payment.class_id, Decimal("0")) + payment.amount

    titles = {offering.id: offering.title for offering in classes}
    breakdown = [
        ClassRevenueRead(class_id=class_id, class_name=titles.get(class_id, "Unknown"), revenue=amount)
        for class_id, amount in totals.items()
    ]
    return sorted(breakdown, key=lambda item: item.revenue, reverse=True)


class DashboardService:
    """Read-only aggregation; every view is recomputed on demand."""

    def __init__(
        self,
        catalog: ClassCatalogService,
        enrollments: EnrollmentLedgerService,
        payments: PaymentLedgerService,
        identity: IdentityProvider,
        *,
        upcoming_limit: int = 3,
        recent_payments_limit: int = 5,
        top_classes_limit: int = 5,
        instructor_upcoming_limit: int = 5,
    ) -> None:
        self.catalog = catalog
        self.enrollments = enrollments
        self.payments = payments
        self.identity = identity
        self.upcoming_limit = upcoming_limit
        self.recent_payments_limit = recent_payments_limit
        self.top_classes_limit = top_classes_limit
        self.instructor_upcoming_limit = instructor_upcoming_limit

    def for_current_user(self) -> DashboardRead:
        """Dispatch to the view matching the caller's role."""
        user = self.identity.get_current_user()
        if user is None:
            raise NotAuthenticatedException("Authentication required")
        if user.role == RoleEnum.ADMIN:
            return self.admin_view()
        if user.role == RoleEnum.INSTRUCTOR:
            return self.instructor_view()
        return self.student_view()

    def student_view(self) -> StudentDashboardRead:
        """Enrollments, spend and attendance of the current student.

        Upcoming classes are the first enrollments in insertion order, not
        sorted by schedule.
        """
        user = authorize(self.identity, Action.VIEW_STUDENT_DASHBOARD)
        my_enrollments = self.enrollments.for_student(user.id)
        my_payments = self.payments.for_student(user.id)

        stats = StudentDashboardStats(
            enrolled_classes=len(my_enrollments),
            total_spent=sum(
                (payment.amount for payment in my_payments if payment.status == PaymentStatusEnum.CONFIRMED),
                Decimal("0"),
            ),
            pending_payments=sum(
                1 for payment in my_payments if payment.status == PaymentStatusEnum.PENDING
            ),
            attendance_rate=attendance_rate(my_enrollments),
            upcoming_classes=my_enrollments[: self.upcoming_limit],
            recent_payments=my_payments[-self.recent_payments_limit :] if self.recent_payments_limit else [],
        )
        return StudentDashboardRead(
            user=user,
            generated_at=utc_now(),
            stats=stats,
            enrollments=my_enrollments,
        )

    def instructor_view(self) -> InstructorDashboardRead:
        """Owned classes with members, revenue share and attendance."""
        user = authorize(self.identity, Action.VIEW_INSTRUCTOR_DASHBOARD)
        my_classes = self.catalog.by_instructor(user.id)
        total_students = sum(len(offering.enrolled_student_ids) for offering in my_classes)
        average_size = (
            (Decimal(total_students) / Decimal(len(my_classes))).quantize(CENTS)
            if my_classes
            else Decimal("0")
        )

        attendance = []
        for offering in my_classes:
            class_enrollments = self.enrollments.for_class(offering.id)
            attendance.append(
                ClassAttendanceRead(
                    class_id=offering.id,
                    class_title=offering.title,
                    enrolled=len(class_enrollments),
                    attended=sum(1 for enrollment in class_enrollments if enrollment.attended),
                    attendance_rate=attendance_rate(class_enrollments),
                )
            )

        stats = InstructorDashboardStats(
            total_classes=len(my_classes),
            total_students=total_students,
            revenue=self.payments.instructor_revenue(user.id),
            average_class_size=average_size,
            upcoming_classes=my_classes[: self.instructor_upcoming_limit],
            attendance_by_class=attendance,
        )
        return InstructorDashboardRead(
            user=user,
            generated_at=utc_now(),
            stats=stats,
            classes=my_classes,
        )

    def admin_view(self) -> AdminDashboardRead:
        """Studio-wide totals, occupancy and revenue breakdown."""
        user = authorize(self.identity, Action.VIEW_ADMIN_DASHBOARD)
        classes = list(self.catalog.classes)
        enrollments = list(self.enrollments.enrollments)
        payments = list(self.payments.payments)
        pending = self.payments.pending()

        stats = AdminDashboardStats(
            total_classes=len(classes),
            total_enrollments=len(enrollments),
            total_students=len({enrollment.student_id for enrollment in enrollments}),
            total_instructors=len({offering.instructor_id for offering in classes}),
            total_revenue=self.payments.total_revenue(),
            pending_revenue=sum((payment.amount for payment in pending), Decimal("0")),
            confirmed_payments=len(self.payments.confirmed()),
            pending_payments=len(pending),
            class_occupancy=average_occupancy(classes),
            top_classes=top_classes(classes, self.top_classes_limit),
            revenue_by_class=revenue_by_class(payments, classes),
            pending_payments_list=pending,
        )
        return AdminDashboardRead(
            user=user,
            generated_at=utc_now(),
            stats=stats,
            classes=classes,
            enrollments=enrollments,
        )


async def get_dashboard_service(
    catalog: ClassCatalogService = Depends(get_class_catalog),
    enrollments: EnrollmentLedgerService = Depends(get_enrollment_ledger),
    payments: PaymentLedgerService = Depends(get_payment_ledger),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> DashboardService:
    """Dependency provider for dashboards."""
    settings = get_settings()
    return DashboardService(
        catalog=catalog,
        enrollments=enrollments,
        payments=payments,
        identity=identity,
        upcoming_limit=settings.dashboard_upcoming_limit,
        recent_payments_limit=settings.dashboard_recent_payments_limit,
        top_classes_limit=settings.dashboard_top_classes_limit,
        instructor_upcoming_limit=settings.instructor_upcoming_limit,
    )
