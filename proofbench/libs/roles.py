from typing import Iterable, Optional

from proofbench.core.enum import Capability, UserRole

_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    UserRole.STUDENT: frozenset(),
    UserRole.ADMIN: frozenset(
        {Capability.MANAGE_COURSES, Capability.MANAGE_USERS, Capability.USE_ADMIN_MODE}
    ),
    UserRole.SUPERADMIN: frozenset(
        {
            Capability.MANAGE_COURSES,
            Capability.MANAGE_USERS,
            Capability.USE_ADMIN_MODE,
            Capability.CHANGE_ROLES,
        }
    ),
}


def has_role(role: Optional[UserRole], allowed_roles: Iterable[UserRole]) -> bool:
    if role is None:
        return False
    return UserRole(role) in {UserRole(r) for r in allowed_roles}


def is_superadmin(role: Optional[UserRole]) -> bool:
    return has_role(role, [UserRole.SUPERADMIN])


def is_admin(role: Optional[UserRole]) -> bool:
    """Admin or superadmin."""
    return has_role(role, [UserRole.ADMIN, UserRole.SUPERADMIN])


def is_student(role: Optional[UserRole]) -> bool:
    return has_role(role, [UserRole.STUDENT])


def capabilities_for(role: Optional[UserRole]) -> frozenset[Capability]:
    if role is None:
        return frozenset()
    return _CAPABILITIES[UserRole(role)]


def can_use_admin_mode(role: Optional[UserRole]) -> bool:
    return Capability.USE_ADMIN_MODE in capabilities_for(role)
