"""
Tests for the role-permission matrix.
"""
import pytest

from linxiq.core.auth import Caller
from linxiq.core.permissions import (
    ROLE_PERMISSIONS,
    Permission,
    Role,
    has_any_permission,
    has_permission,
)


class TestRolePermissions:
    def test_every_role_has_an_entry(self):
        assert set(ROLE_PERMISSIONS) == set(Role)

    def test_super_admin_has_everything(self):
        for permission in Permission:
            assert has_permission(Role.SUPER_ADMIN, permission)

    @pytest.mark.parametrize("role", [Role.EMPLOYEE, Role.CANDIDATE])
    def test_test_takers_can_take_tests(self, role):
        assert has_permission(role, Permission.TAKE_TESTS)
        assert has_permission(role, Permission.VIEW_OWN_RESULTS)

    @pytest.mark.parametrize("role", [Role.EMPLOYEE, Role.CANDIDATE])
    def test_test_takers_cannot_manage(self, role):
        assert not has_permission(role, Permission.VIEW_ALL_RESULTS)
        assert not has_permission(role, Permission.ASSIGN_TEST)
        assert not has_permission(role, Permission.MANAGE_RESULTS)

    def test_admin_manages_results_and_assignments(self):
        assert has_permission(Role.ADMIN, Permission.ASSIGN_TEST)
        assert has_permission(Role.ADMIN, Permission.MANAGE_ASSIGNMENTS)
        assert has_permission(Role.ADMIN, Permission.MANAGE_RESULTS)
        assert has_permission(Role.ADMIN, Permission.VIEW_ALL_ANALYTICS)

    def test_candidate_has_no_analytics(self):
        assert not has_permission(Role.CANDIDATE, Permission.VIEW_OWN_ANALYTICS)
        assert has_permission(Role.EMPLOYEE, Permission.VIEW_OWN_ANALYTICS)

    def test_has_any_permission(self):
        assert has_any_permission(
            Role.EMPLOYEE, [Permission.VIEW_ALL_RESULTS, Permission.TAKE_TESTS]
        )
        assert not has_any_permission(
            Role.CANDIDATE, [Permission.VIEW_ALL_RESULTS, Permission.ASSIGN_TEST]
        )
        assert not has_any_permission(Role.ADMIN, [])


class TestCaller:
    def test_can_delegates_to_matrix(self):
        caller = Caller(person_id=1, role=Role.HR_MANAGER)

        assert caller.can(Permission.VIEW_ALL_RESULTS) == has_permission(
            Role.HR_MANAGER, Permission.VIEW_ALL_RESULTS
        )

    def test_caller_is_immutable(self):
        caller = Caller(person_id=1, role=Role.EMPLOYEE)

        with pytest.raises(AttributeError):
            caller.role = Role.SUPER_ADMIN
