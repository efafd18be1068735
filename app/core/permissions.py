"""
Permission Checks

The role/permission matrix is administered elsewhere; the permission codes a
caller holds travel in the access token. Services receive the caller as an
explicit `CurrentUser` argument instead of reading a global session.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable
from uuid import UUID

from app.core.exceptions import PermissionDeniedError


# =====================================================
# Permission Codes
# =====================================================
QUIZ_VIEW = "quiz.view"
QUIZ_CREATE = "quiz.create"
QUIZ_EDIT = "quiz.edit"
QUIZ_DELETE = "quiz.delete"
QUIZ_MANAGE = "quiz.manage"


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller, as described by its access token."""

    id: UUID
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    is_system_role: bool = False

    @classmethod
    def from_claims(cls, sub: str, permissions: Iterable[str], system_role: bool = False) -> "CurrentUser":
        return cls(
            id=UUID(str(sub)),
            permissions=frozenset(permissions),
            is_system_role=system_role,
        )

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


def require_permission(user: CurrentUser, permission: str) -> None:
    """Raise PermissionDeniedError unless the caller holds `permission`."""
    if not user.has_permission(permission):
        raise PermissionDeniedError(permission)
