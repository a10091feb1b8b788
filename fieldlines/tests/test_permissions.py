"""
Tests for the admin permission table.
"""
import pytest
from fieldlines.services import permissions
from fieldlines.services.permissions import (
    DELETE,
    MODIFY_ROLE,
    RESET_PASSWORD,
    SUSPEND,
    SelfActionError,
    check_role_change,
    check_user_action,
)

USER = {"id": 1, "role": "user"}
ADMIN = {"id": 2, "role": "admin"}
OTHER_ADMIN = {"id": 3, "role": "admin"}
SUPER = {"id": 4, "role": "super_admin"}
OTHER_SUPER = {"id": 5, "role": "super_admin"}


class TestUserActions:
    @pytest.mark.parametrize("action", [MODIFY_ROLE, SUSPEND, RESET_PASSWORD, DELETE])
    def test_admin_may_act_on_users(self, action):
        check_user_action(ADMIN, USER, action)

    @pytest.mark.parametrize("action", [MODIFY_ROLE, SUSPEND, RESET_PASSWORD, DELETE])
    def test_super_admin_may_act_on_admins(self, action):
        check_user_action(SUPER, ADMIN, action)

    @pytest.mark.parametrize(
        "action,message",
        [
            (MODIFY_ROLE, "only modify regular users"),
            (SUSPEND, "only suspend regular users"),
            (RESET_PASSWORD, "only reset passwords for regular users"),
            (DELETE, "only delete regular users"),
        ],
    )
    def test_admin_may_not_act_on_other_admins(self, action, message):
        with pytest.raises(PermissionError, match=message):
            check_user_action(ADMIN, OTHER_ADMIN, action)

    def test_admin_may_not_act_on_super_admin(self):
        with pytest.raises(PermissionError):
            check_user_action(ADMIN, SUPER, SUSPEND)

    def test_super_admin_may_not_act_on_other_super_admins(self):
        with pytest.raises(PermissionError, match="Cannot suspend super admin"):
            check_user_action(SUPER, OTHER_SUPER, SUSPEND)

    def test_regular_user_may_do_nothing(self):
        for action in permissions.ALL_ACTIONS:
            with pytest.raises(PermissionError):
                check_user_action(USER, {"id": 9, "role": "user"}, action)

    @pytest.mark.parametrize(
        "action,message",
        [
            (MODIFY_ROLE, "Cannot change your own role"),
            (SUSPEND, "Cannot suspend your own account"),
            (DELETE, "Cannot delete your own account"),
        ],
    )
    def test_self_actions_forbidden(self, action, message):
        with pytest.raises(SelfActionError, match=message):
            check_user_action(SUPER, SUPER, action)

    def test_self_action_error_is_a_value_error(self):
        # maps to 400 rather than 403 at the route layer
        assert issubclass(SelfActionError, ValueError)

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            check_user_action(SUPER, USER, "impersonate")


class TestRoleChanges:
    def test_admin_may_not_promote(self):
        with pytest.raises(PermissionError, match="promote"):
            check_role_change(ADMIN, USER, "admin")

    def test_admin_may_keep_user_role(self):
        check_role_change(ADMIN, USER, "user")

    @pytest.mark.parametrize("role", ["user", "admin", "super_admin"])
    def test_super_admin_may_assign_any_role_to_users(self, role):
        check_role_change(SUPER, USER, role)

    def test_super_admin_may_demote_admin(self):
        check_role_change(SUPER, ADMIN, "user")

    def test_invalid_role(self):
        with pytest.raises(ValueError, match="Invalid role"):
            check_role_change(SUPER, USER, "owner")
