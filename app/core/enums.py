"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class DifficultyEnum(StrEnum):
    """Class difficulty level."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class WeekdayEnum(StrEnum):
    """Weekday a class is held on."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class EnrollmentStatusEnum(StrEnum):
    """Enrollment lifecycle status."""

    ACTIVE = "active"
    DROPPED = "dropped"


class EnrollmentPaymentStatusEnum(StrEnum):
    """Payment progress as seen from an enrollment."""

    PENDING = "pending"
    COMPLETED = "completed"


class PaymentStatusEnum(StrEnum):
    """Payment processing status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class CatalogSourceEnum(StrEnum):
    """Where the last catalog read was served from."""

    REMOTE = "remote"
    CACHE = "cache"
