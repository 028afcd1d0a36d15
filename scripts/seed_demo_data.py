"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass, field

from app.core.config import get_settings
from app.core.enums import RoleEnum
from app.core.security import create_access_token
from app.core.storage import close_key_value_store, get_key_value_store
from app.modules.catalog.models import starter_classes
from app.modules.catalog.repository import ClassRepository

DEMO_ADMIN_ID = "admin_1"
DEMO_INSTRUCTOR_ID = "instructor_1"
DEMO_STUDENT_ID = "student_1"


@dataclass(slots=True)
class SeedStats:
    classes_created: int = 0
    classes_existing: int = 0
    tokens: dict[str, str] = field(default_factory=dict)


async def _ensure_catalog() -> tuple[int, int]:
    """Add starter classes whose ids are not stored yet."""
    repository = ClassRepository(get_key_value_store())
    stored = await repository.load() or []
    known_ids = {offering.id for offering in stored}

    created = 0
    for offering in starter_classes():
        if offering.id in known_ids:
            continue
        stored.append(offering)
        created += 1

    if created:
        await repository.save(stored)
    return created, len(stored) - created


def _demo_tokens() -> dict[str, str]:
    return {
        "admin": create_access_token(DEMO_ADMIN_ID, role=RoleEnum.ADMIN.value, name="Demo Admin"),
        "instructor": create_access_token(
            DEMO_INSTRUCTOR_ID,
            role=RoleEnum.INSTRUCTOR.value,
            name="Sarah Johnson",
        ),
        "student": create_access_token(DEMO_STUDENT_ID, role=RoleEnum.STUDENT.value, name="Demo Student"),
    }


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    env_name = settings.app_env.strip().lower()
    if env_name in {"production", "prod"} and not allow_production:
        raise RuntimeError("Refusing to seed demo data in production without --allow-production")

    stats = SeedStats()
    try:
        stats.classes_created, stats.classes_existing = await _ensure_catalog()
    finally:
        await close_key_value_store()
    stats.tokens = _demo_tokens()
    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Seed idempotent demo data for YogaStudio (starter classes, demo bearer tokens).",
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Classes created: {stats.classes_created}")
    print(f"- Classes already present: {stats.classes_existing}")
    print("")
    print("Demo bearer tokens (non-production only):")
    for role, token in stats.tokens.items():
        print(f"- {role}: {token}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
