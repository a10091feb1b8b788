"""
Role-based permission table for admin actions on user accounts.

Each entry maps (actor role, target role) to the set of actions the actor may
take on that target. Actions on one's own account and role promotions are
checked separately in ``check_user_action`` and ``check_role_change``.
"""

from typing import Dict, FrozenSet, Tuple

from fieldlines.database.models import UserRole

MODIFY_ROLE = "modify_role"
SUSPEND = "suspend"
RESET_PASSWORD = "reset_password"
DELETE = "delete"

ALL_ACTIONS: FrozenSet[str] = frozenset({MODIFY_ROLE, SUSPEND, RESET_PASSWORD, DELETE})

USER = UserRole.USER.value
ADMIN = UserRole.ADMIN.value
SUPER_ADMIN = UserRole.SUPER_ADMIN.value

# (actor, target) -> allowed actions; missing pairs allow nothing
USER_ACTIONS: Dict[Tuple[str, str], FrozenSet[str]] = {
    (ADMIN, USER): ALL_ACTIONS,
    (SUPER_ADMIN, USER): ALL_ACTIONS,
    (SUPER_ADMIN, ADMIN): ALL_ACTIONS,
}

# actor -> roles it may hand out
ASSIGNABLE_ROLES: Dict[str, FrozenSet[str]] = {
    ADMIN: frozenset({USER}),
    SUPER_ADMIN: frozenset({USER, ADMIN, SUPER_ADMIN}),
}

# self-protection: nobody acts on their own account through the admin panel
SELF_FORBIDDEN: FrozenSet[str] = frozenset({MODIFY_ROLE, SUSPEND, DELETE})

DENIAL_MESSAGES = {
    MODIFY_ROLE: "You can only modify regular users",
    SUSPEND: "You can only suspend regular users",
    RESET_PASSWORD: "You can only reset passwords for regular users",
    DELETE: "You can only delete regular users",
}

SELF_MESSAGES = {
    MODIFY_ROLE: "Cannot change your own role",
    SUSPEND: "Cannot suspend your own account",
    DELETE: "Cannot delete your own account",
}

SUPER_ADMIN_TARGET_MESSAGES = {
    MODIFY_ROLE: "Cannot modify other super admin accounts",
    SUSPEND: "Cannot suspend super admin accounts",
    RESET_PASSWORD: "Cannot reset passwords for super admin accounts",
    DELETE: "Cannot delete super admin accounts",
}


class SelfActionError(ValueError):
    """Raised when an admin tries a protected action on their own account."""


def allowed_actions(actor_role: str, target_role: str) -> FrozenSet[str]:
    return USER_ACTIONS.get((actor_role, target_role), frozenset())


def check_user_action(actor: Dict, target: Dict, action: str) -> None:
    """
    Verify that ``actor`` may perform ``action`` on ``target``.

    Args:
        actor: Acting user dict (id, role)
        target: Target user dict (id, role)
        action: One of the action constants

    Raises:
        SelfActionError: Protected action on own account
        PermissionError: Action not allowed for this actor/target pair
    """
    if action not in ALL_ACTIONS:
        raise ValueError(f"Unknown action: {action}")
    if actor["id"] == target["id"] and action in SELF_FORBIDDEN:
        raise SelfActionError(SELF_MESSAGES[action])
    if action in allowed_actions(actor["role"], target["role"]):
        return
    if actor["role"] == SUPER_ADMIN and target["role"] == SUPER_ADMIN:
        raise PermissionError(SUPER_ADMIN_TARGET_MESSAGES[action])
    raise PermissionError(DENIAL_MESSAGES[action])


def check_role_change(actor: Dict, target: Dict, new_role: str) -> None:
    """
    Verify that ``actor`` may set ``target``'s role to ``new_role``.

    Raises:
        ValueError: Unknown role
        SelfActionError: Changing own role
        PermissionError: Not allowed
    """
    if new_role not in (USER, ADMIN, SUPER_ADMIN):
        raise ValueError("Invalid role")
    check_user_action(actor, target, MODIFY_ROLE)
    if new_role not in ASSIGNABLE_ROLES.get(actor["role"], frozenset()):
        raise PermissionError("You cannot promote users to admin roles")
