"""Coercion of raw class input into the stored class shape."""

from __future__ import annotations

import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from app.core.enums import DifficultyEnum, WeekdayEnum
from app.shared.exceptions import ValidationException
from app.shared.utils import utc_now

TEXT_FIELDS = ("title", "instructor_name", "instructor_id", "description")
DEFAULT_DAY = WeekdayEnum.MONDAY
DEFAULT_TIME = "09:00"
DEFAULT_DURATION_MINUTES = 60

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_decimal(field: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationException(f"{field} must be a number")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationException(f"{field} must be a number") from exc
    if not number.is_finite():
        raise ValidationException(f"{field} must be a finite number")
    return number


def _as_whole(field: str, value: Any) -> int:
    number = _as_decimal(field, value)
    if number != number.to_integral_value():
        raise ValidationException(f"{field} must be a whole number")
    return int(number)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def normalize_price(value: Any) -> Decimal:
    if _is_blank(value):
        return Decimal("0")
    price = _as_decimal("price", value)
    if price < 0:
        raise ValidationException("price must not be negative")
    return price


def normalize_duration(value: Any) -> int:
    if _is_blank(value):
        return DEFAULT_DURATION_MINUTES
    duration = _as_whole("duration_minutes", value)
    if duration == 0:
        return DEFAULT_DURATION_MINUTES
    if duration < 0:
        raise ValidationException("duration_minutes must be positive")
    return duration


def normalize_max_students(value: Any) -> int:
    if _is_blank(value):
        return 0
    max_students = _as_whole("max_students", value)
    if max_students < 0:
        raise ValidationException("max_students must not be negative")
    return max_students


def normalize_difficulty(value: Any) -> DifficultyEnum:
    token = _as_text(value).lower() or DifficultyEnum.BEGINNER
    try:
        return DifficultyEnum(token)
    except ValueError as exc:
        raise ValidationException(f"Unknown difficulty: {token}") from exc


def normalize_schedule(value: Any) -> dict[str, str]:
    if value is None:
        value = {}
    if not isinstance(value, Mapping):
        raise ValidationException("schedule must be an object with day and time")

    day = _as_text(value.get("day")).lower() or DEFAULT_DAY
    try:
        day = WeekdayEnum(day)
    except ValueError as exc:
        raise ValidationException(f"Unknown schedule day: {day}") from exc

    time_text = _as_text(value.get("time")) or DEFAULT_TIME
    match = _TIME_PATTERN.match(time_text)
    if match is None:
        raise ValidationException("schedule time must use HH:MM format")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValidationException("schedule time is out of range")
    return {"day": day, "time": f"{hours:02d}:{minutes:02d}"}


def normalize_members(value: Any) -> list[str]:
    if not isinstance(value, list | tuple):
        return []
    return [str(student_id) for student_id in value]


def normalize_class_data(data: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Return canonical class fields.

    Full normalization fills every field with its default and stamps
    ``created_at``. Partial normalization only coerces fields present in
    ``data`` and never touches ``id`` or ``created_at``.
    """

    def present(field: str) -> bool:
        return not partial or field in data

    normalized: dict[str, Any] = {}
    for field in TEXT_FIELDS:
        if present(field):
            normalized[field] = _as_text(data.get(field))
    if present("difficulty"):
        normalized["difficulty"] = normalize_difficulty(data.get("difficulty"))
    if present("price"):
        normalized["price"] = normalize_price(data.get("price"))
    if present("duration_minutes"):
        normalized["duration_minutes"] = normalize_duration(data.get("duration_minutes"))
    if present("max_students"):
        normalized["max_students"] = normalize_max_students(data.get("max_students"))
    if present("schedule"):
        normalized["schedule"] = normalize_schedule(data.get("schedule"))
    if present("enrolled_student_ids"):
        normalized["enrolled_student_ids"] = normalize_members(data.get("enrolled_student_ids"))

    if not partial:
        normalized["created_at"] = data.get("created_at") or utc_now()
    return normalized
