"""Catalog records persisted in the local cache and the remote store."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.core.enums import DifficultyEnum, WeekdayEnum
from app.shared.utils import utc_now


class ClassSchedule(BaseModel):
    """Weekly slot of a class."""

    day: WeekdayEnum = WeekdayEnum.MONDAY
    time: str = "09:00"


class ClassOffering(BaseModel):
    """Class offering with capacity and membership."""

    id: str
    title: str = ""
    instructor_name: str = ""
    instructor_id: str = ""
    description: str = ""
    difficulty: DifficultyEnum = DifficultyEnum.BEGINNER
    price: Decimal = Field(default=Decimal("0"), ge=0)
    duration_minutes: int = Field(default=60, gt=0)
    schedule: ClassSchedule = Field(default_factory=ClassSchedule)
    max_students: int = Field(default=0, ge=0)
    enrolled_student_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)


def starter_classes() -> list[ClassOffering]:
    """Classes a fresh studio catalog starts with."""
    return [
        ClassOffering(
            id="class_1",
            title="Beginner Hatha Yoga",
            instructor_name="Sarah Johnson",
            instructor_id="instructor_1",
            difficulty=DifficultyEnum.BEGINNER,
            description="A gentle introduction to yoga focusing on basic poses and breathing.",
            price=Decimal("15"),
            duration_minutes=60,
            schedule=ClassSchedule(day=WeekdayEnum.MONDAY, time="09:00"),
            max_students=20,
        ),
        ClassOffering(
            id="class_2",
            title="Intermediate Vinyasa",
            instructor_name="Mike Chen",
            instructor_id="instructor_2",
            difficulty=DifficultyEnum.INTERMEDIATE,
            description="Dynamic flow connecting breath with movement.",
            price=Decimal("20"),
            duration_minutes=75,
            schedule=ClassSchedule(day=WeekdayEnum.WEDNESDAY, time="18:00"),
            max_students=25,
        ),
        ClassOffering(
            id="class_3",
            title="Advanced Power Yoga",
            instructor_name="Emma Davis",
            instructor_id="instructor_3",
            difficulty=DifficultyEnum.ADVANCED,
            description="Challenging asanas and intense breathing practices.",
            price=Decimal("25"),
            duration_minutes=90,
            schedule=ClassSchedule(day=WeekdayEnum.FRIDAY, time="17:00"),
            max_students=15,
        ),
    ]
