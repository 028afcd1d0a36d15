"""Single place describing which actor may perform which operation."""

from __future__ import annotations

from enum import StrEnum

from app.core.enums import RoleEnum
from app.modules.identity.schemas import CurrentUser
from app.modules.identity.service import IdentityProvider
from app.shared.exceptions import NotAuthenticatedException, PermissionDeniedException


class Action(StrEnum):
    """Guarded operations."""

    MANAGE_CATALOG = "catalog.manage"
    ENROLL = "enrollment.enroll"
    DROP = "enrollment.drop"
    RECORD_ATTENDANCE = "enrollment.attendance"
    VIEW_CLASS_ENROLLMENTS = "enrollment.class.view"
    MANAGE_ENROLLMENTS = "enrollment.manage"
    PROCESS_PAYMENT = "payment.process"
    REVIEW_PAYMENT = "payment.review"
    VIEW_PENDING_PAYMENTS = "payment.pending.view"
    VIEW_STUDENT_DASHBOARD = "dashboard.student"
    VIEW_INSTRUCTOR_DASHBOARD = "dashboard.instructor"
    VIEW_ADMIN_DASHBOARD = "dashboard.admin"


_ALL_ROLES = frozenset(RoleEnum)

# Roles allowed to attempt each action.
ROLE_GRANTS: dict[Action, frozenset[RoleEnum]] = {
    Action.MANAGE_CATALOG: frozenset({RoleEnum.ADMIN}),
    Action.ENROLL: frozenset({RoleEnum.STUDENT}),
    Action.DROP: _ALL_ROLES,
    Action.RECORD_ATTENDANCE: frozenset({RoleEnum.ADMIN, RoleEnum.INSTRUCTOR}),
    Action.VIEW_CLASS_ENROLLMENTS: frozenset({RoleEnum.ADMIN, RoleEnum.INSTRUCTOR}),
    Action.MANAGE_ENROLLMENTS: frozenset({RoleEnum.ADMIN}),
    Action.PROCESS_PAYMENT: frozenset({RoleEnum.ADMIN, RoleEnum.STUDENT}),
    Action.REVIEW_PAYMENT: frozenset({RoleEnum.ADMIN}),
    Action.VIEW_PENDING_PAYMENTS: frozenset({RoleEnum.ADMIN}),
    Action.VIEW_STUDENT_DASHBOARD: frozenset({RoleEnum.STUDENT}),
    Action.VIEW_INSTRUCTOR_DASHBOARD: frozenset({RoleEnum.INSTRUCTOR}),
    Action.VIEW_ADMIN_DASHBOARD: frozenset({RoleEnum.ADMIN}),
}

# Roles that additionally must own the target resource.
OWNERSHIP_REQUIRED: dict[Action, frozenset[RoleEnum]] = {
    Action.RECORD_ATTENDANCE: frozenset({RoleEnum.INSTRUCTOR}),
    Action.VIEW_CLASS_ENROLLMENTS: frozenset({RoleEnum.INSTRUCTOR}),
    Action.PROCESS_PAYMENT: frozenset({RoleEnum.STUDENT}),
}

_DENIAL_MESSAGES: dict[Action, str] = {
    Action.MANAGE_CATALOG: "Only administrators can manage classes",
    Action.ENROLL: "Only students can enroll in classes",
    Action.RECORD_ATTENDANCE: "Only admins or the class instructor can update attendance",
    Action.VIEW_CLASS_ENROLLMENTS: "Only admins or the class instructor can list its enrollments",
    Action.MANAGE_ENROLLMENTS: "Only administrators can manage enrollments",
    Action.PROCESS_PAYMENT: "Students can pay only for their own enrollments",
    Action.REVIEW_PAYMENT: "Only administrators can review payments",
    Action.VIEW_PENDING_PAYMENTS: "Only administrators can list pending payments",
}


def _check(user: CurrentUser, action: Action, owner_id: str | None) -> str | None:
    if user.role not in ROLE_GRANTS[action]:
        return _DENIAL_MESSAGES.get(action, "Operation not permitted for your role")
    if user.role in OWNERSHIP_REQUIRED.get(action, frozenset()) and owner_id != user.id:
        return _DENIAL_MESSAGES.get(action, "You do not own this resource")
    return None


def authorize(
    identity: IdentityProvider,
    action: Action,
    *,
    owner_id: str | None = None,
) -> CurrentUser:
    """Return current actor or raise the typed failure for action."""
    user = identity.get_current_user()
    if user is None:
        raise NotAuthenticatedException("Authentication required")

    denial = _check(user, action, owner_id)
    if denial is not None:
        raise PermissionDeniedException(denial)
    return user


def is_allowed(
    identity: IdentityProvider,
    action: Action,
    *,
    owner_id: str | None = None,
) -> bool:
    """Boolean form of ``authorize`` for read paths."""
    user = identity.get_current_user()
    return user is not None and _check(user, action, owner_id) is None
