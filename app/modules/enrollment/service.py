"""Enrollment business logic layer."""

from __future__ import annotations

import logging

from fastapi import Depends

from app.core.authorization import Action, authorize
from app.core.enums import EnrollmentPaymentStatusEnum, EnrollmentStatusEnum
from app.core.storage import KeyValueStore, get_key_value_store
from app.modules.catalog.service import ClassCatalogService, get_class_catalog
from app.modules.enrollment.models import Enrollment
from app.modules.enrollment.repository import EnrollmentRepository
from app.modules.enrollment.schemas import EnrollmentDetails
from app.modules.identity.service import IdentityProvider, get_identity_provider
from app.shared.exceptions import (
    CapacityExceededException,
    DuplicateEnrollmentException,
    NotAuthenticatedException,
    NotFoundException,
    ValidationException,
)
from app.shared.utils import new_record_id

logger = logging.getLogger(__name__)


class EnrollmentLedgerService:
    """Enrollment ledger enforcing capacity and one enrollment per pair.

    Enroll and drop touch two collections. The class membership is written
    first; when the enrollment write that follows fails, the membership change
    is reverted and persisted again before the error is re-raised.

    A student holds at most one record per class. Dropping, whether by the
    student or through a ``dropped`` status update, deletes that record.
    """

    def __init__(
        self,
        repository: EnrollmentRepository,
        catalog: ClassCatalogService,
        identity: IdentityProvider,
    ) -> None:
        self.repository = repository
        self.catalog = catalog
        self.identity = identity
        self.enrollments: list[Enrollment] = []

    async def load(self) -> list[Enrollment]:
        self.enrollments = await self.repository.load() or []
        return self.enrollments

    async def _persist(self) -> None:
        await self.repository.save(self.enrollments)

    def _find_for_pair(self, student_id: str, class_id: str) -> Enrollment | None:
        return next(
            (
                enrollment
                for enrollment in self.enrollments
                if enrollment.student_id == student_id and enrollment.class_id == class_id
            ),
            None,
        )

    def _require(self, enrollment_id: str) -> Enrollment:
        enrollment = self.get_by_id(enrollment_id)
        if enrollment is None:
            raise NotFoundException("Enrollment not found")
        return enrollment

    async def enroll(self, class_id: str) -> Enrollment:
        """Enroll current student into class."""
        actor = authorize(self.identity, Action.ENROLL)

        offering = await self.catalog.get_by_id(class_id)
        if offering is None:
            raise NotFoundException("Class not found")
        if self.catalog.is_full(class_id):
            raise CapacityExceededException("Class is full")
        if self.is_enrolled(actor.id, class_id):
            raise DuplicateEnrollmentException("You are already enrolled in this class")

        enrollment = Enrollment(
            id=new_record_id("enrollment"),
            student_id=actor.id,
            class_id=class_id,
        )

        previous_members = list(offering.enrolled_student_ids)
        if actor.id not in previous_members:
            offering.enrolled_student_ids.append(actor.id)
        try:
            await self.catalog.save_members(offering)
        except Exception:
            offering.enrolled_student_ids = previous_members
            raise

        self.enrollments.append(enrollment)
        try:
            await self._persist()
        except Exception:
            logger.exception("Enrollment write failed, reverting membership of class %s", class_id)
            self.enrollments.remove(enrollment)
            offering.enrolled_student_ids = previous_members
            await self.catalog.save_members(offering)
            raise

        logger.info("Student %s enrolled in class %s", actor.id, class_id)
        return enrollment

    async def drop(self, class_id: str) -> Enrollment:
        """Remove current actor's enrollment from class."""
        actor = authorize(self.identity, Action.DROP)

        enrollment = self._find_for_pair(actor.id, class_id)
        if enrollment is None:
            raise NotFoundException("Enrollment not found")

        await self._release(enrollment)
        logger.info("Student %s dropped class %s", actor.id, class_id)
        return enrollment

    async def _release(self, enrollment: Enrollment) -> None:
        """Free the seat and delete the record as one logical unit."""
        class_id = enrollment.class_id
        offering = await self.catalog.get_by_id(class_id)
        previous_members: list[str] = []
        if offering is not None:
            previous_members = list(offering.enrolled_student_ids)
            offering.enrolled_student_ids = [
                student_id for student_id in previous_members if student_id != enrollment.student_id
            ]
            try:
                await self.catalog.save_members(offering)
            except Exception:
                offering.enrolled_student_ids = previous_members
                raise

        position = self.enrollments.index(enrollment)
        self.enrollments.pop(position)
        try:
            await self._persist()
        except Exception:
            logger.exception("Enrollment removal failed, restoring membership of class %s", class_id)
            self.enrollments.insert(position, enrollment)
            if offering is not None:
                offering.enrolled_student_ids = previous_members
                await self.catalog.save_members(offering)
            raise

    async def update_attendance(self, enrollment_id: str, attended: bool) -> Enrollment:
        """Mark attendance (admin, or instructor of the class)."""
        if not self.identity.is_authenticated():
            raise NotAuthenticatedException("Authentication required")

        enrollment = self._require(enrollment_id)
        offering = await self.catalog.get_by_id(enrollment.class_id)
        authorize(
            self.identity,
            Action.RECORD_ATTENDANCE,
            owner_id=offering.instructor_id if offering is not None else None,
        )

        enrollment.attended = bool(attended)
        await self._persist()
        return enrollment

    async def update_status(
        self,
        enrollment_id: str,
        status: EnrollmentStatusEnum | str,
    ) -> Enrollment:
        """Set enrollment status; callers are trusted collaborators."""
        try:
            new_status = EnrollmentStatusEnum(status)
        except ValueError as exc:
            raise ValidationException(f"Unknown enrollment status: {status}") from exc

        enrollment = self._require(enrollment_id)
        if new_status == EnrollmentStatusEnum.DROPPED:
            await self._release(enrollment)
            enrollment.status = new_status
            logger.info("Enrollment %s dropped by status update", enrollment.id)
            return enrollment

        enrollment.status = new_status
        await self._persist()
        return enrollment

    async def update_payment_status(
        self,
        enrollment_id: str,
        status: EnrollmentPaymentStatusEnum | str,
    ) -> Enrollment:
        """Set enrollment payment status; used by the payment ledger."""
        try:
            new_status = EnrollmentPaymentStatusEnum(status)
        except ValueError as exc:
            raise ValidationException(f"Unknown payment status: {status}") from exc

        enrollment = self._require(enrollment_id)
        enrollment.payment_status = new_status
        await self._persist()
        return enrollment

    def get_by_id(self, enrollment_id: str) -> Enrollment | None:
        return next(
            (enrollment for enrollment in self.enrollments if enrollment.id == enrollment_id),
            None,
        )

    def my_enrollments(self) -> list[Enrollment]:
        user = self.identity.get_current_user()
        if user is None:
            return []
        return self.for_student(user.id)

    def for_class(self, class_id: str) -> list[Enrollment]:
        return [enrollment for enrollment in self.enrollments if enrollment.class_id == class_id]

    def for_student(self, student_id: str) -> list[Enrollment]:
        return [enrollment for enrollment in self.enrollments if enrollment.student_id == student_id]

    def is_enrolled(self, student_id: str, class_id: str) -> bool:
        return self._find_for_pair(student_id, class_id) is not None

    async def details_with_class(self, enrollment_id: str) -> EnrollmentDetails:
        """Join enrollment with its class."""
        enrollment = self._require(enrollment_id)
        offering = await self.catalog.get_by_id(enrollment.class_id)
        return EnrollmentDetails(enrollment=enrollment, class_details=offering)

    async def my_enrollments_with_details(self) -> list[EnrollmentDetails]:
        details: list[EnrollmentDetails] = []
        for enrollment in self.my_enrollments():
            offering = await self.catalog.get_by_id(enrollment.class_id)
            details.append(EnrollmentDetails(enrollment=enrollment, class_details=offering))
        return details


async def get_enrollment_ledger(
    store: KeyValueStore = Depends(get_key_value_store),
    catalog: ClassCatalogService = Depends(get_class_catalog),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> EnrollmentLedgerService:
    """Dependency provider for the enrollment ledger."""
    ledger = EnrollmentLedgerService(
        repository=EnrollmentRepository(store),
        catalog=catalog,
        identity=identity,
    )
    await ledger.load()
    return ledger
