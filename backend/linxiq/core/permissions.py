"""
Roles, capabilities, and the role-permission matrix.

Every authorization decision in the API goes through ROLE_PERMISSIONS via
require_permission() in linxiq.core.auth; call sites never compare role
strings directly.
"""
from enum import Enum
from typing import Dict, FrozenSet, Iterable


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    HR_MANAGER = "hr_manager"
    REVIEWER = "reviewer"
    TEAM_LEAD = "team_lead"
    EMPLOYEE = "employee"
    CANDIDATE = "candidate"


class Permission(str, Enum):
    # User management
    VIEW_ALL_USERS = "view_all_users"
    CREATE_USER = "create_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    CHANGE_USER_ROLE = "change_user_role"

    # Test management
    CREATE_TEST = "create_test"
    UPDATE_TEST = "update_test"
    DELETE_TEST = "delete_test"
    PUBLISH_TEST = "publish_test"
    VIEW_ALL_TESTS = "view_all_tests"
    MANAGE_TESTS = "manage_tests"

    # Question management
    CREATE_QUESTION = "create_question"
    UPDATE_QUESTION = "update_question"
    DELETE_QUESTION = "delete_question"
    APPROVE_QUESTION = "approve_question"
    REJECT_QUESTION = "reject_question"
    VIEW_ALL_QUESTIONS = "view_all_questions"

    # Assignments
    ASSIGN_TEST = "assign_test"
    MANAGE_ASSIGNMENTS = "manage_assignments"
    VIEW_ALL_ASSIGNMENTS = "view_all_assignments"
    VIEW_TEAM_ASSIGNMENTS = "view_team_assignments"
    VIEW_OWN_ASSIGNMENTS = "view_own_assignments"

    # Results and reports
    VIEW_ALL_RESULTS = "view_all_results"
    VIEW_TEAM_RESULTS = "view_team_results"
    VIEW_OWN_RESULTS = "view_own_results"
    GENERATE_REPORTS = "generate_reports"
    EXPORT_DATA = "export_data"

    # HR integration
    MANAGE_HR_INTEGRATION = "manage_hr_integration"
    SYNC_EMPLOYEE_DATA = "sync_employee_data"
    VIEW_PERFORMANCE_REVIEWS = "view_performance_reviews"
    CREATE_LEARNING_PATHS = "create_learning_paths"

    # System
    MANAGE_SYSTEM_SETTINGS = "manage_system_settings"
    VIEW_AUDIT_LOGS = "view_audit_logs"
    MANAGE_INTEGRATIONS = "manage_integrations"
    MANAGE_COMPANY_STRUCTURE = "manage_company_structure"

    # Analytics
    VIEW_ALL_ANALYTICS = "view_all_analytics"
    VIEW_TEAM_ANALYTICS = "view_team_analytics"
    VIEW_OWN_ANALYTICS = "view_own_analytics"

    # Test workflow
    MANAGE_RESULTS = "manage_results"
    REVIEW_QUESTIONS = "review_questions"
    VIEW_AI_INSIGHTS = "view_ai_insights"
    TAKE_TESTS = "take_tests"
    EDIT_OWN_PROFILE = "edit_own_profile"


P = Permission

ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.SUPER_ADMIN: frozenset(Permission),
    Role.ADMIN: frozenset(
        {
            P.VIEW_ALL_USERS,
            P.CREATE_USER,
            P.UPDATE_USER,
            P.DELETE_USER,
            P.CHANGE_USER_ROLE,
            P.CREATE_TEST,
            P.UPDATE_TEST,
            P.DELETE_TEST,
            P.PUBLISH_TEST,
            P.VIEW_ALL_TESTS,
            P.MANAGE_TESTS,
            P.CREATE_QUESTION,
            P.UPDATE_QUESTION,
            P.DELETE_QUESTION,
            P.APPROVE_QUESTION,
            P.REJECT_QUESTION,
            P.VIEW_ALL_QUESTIONS,
            P.ASSIGN_TEST,
            P.MANAGE_ASSIGNMENTS,
            P.VIEW_ALL_ASSIGNMENTS,
            P.VIEW_ALL_RESULTS,
            P.GENERATE_REPORTS,
            P.EXPORT_DATA,
            P.VIEW_ALL_ANALYTICS,
            P.MANAGE_SYSTEM_SETTINGS,
            P.VIEW_AUDIT_LOGS,
            P.MANAGE_COMPANY_STRUCTURE,
            P.MANAGE_RESULTS,
            P.REVIEW_QUESTIONS,
            P.VIEW_AI_INSIGHTS,
        }
    ),
    Role.HR_MANAGER: frozenset(
        {
            P.VIEW_ALL_USERS,
            P.CREATE_USER,
            P.UPDATE_USER,
            P.VIEW_ALL_TESTS,
            P.ASSIGN_TEST,
            P.VIEW_ALL_ASSIGNMENTS,
            P.VIEW_ALL_RESULTS,
            P.GENERATE_REPORTS,
            P.EXPORT_DATA,
            P.MANAGE_HR_INTEGRATION,
            P.SYNC_EMPLOYEE_DATA,
            P.VIEW_PERFORMANCE_REVIEWS,
            P.CREATE_LEARNING_PATHS,
            P.VIEW_ALL_ANALYTICS,
        }
    ),
    Role.REVIEWER: frozenset(
        {
            P.CREATE_QUESTION,
            P.UPDATE_QUESTION,
            P.APPROVE_QUESTION,
            P.REJECT_QUESTION,
            P.VIEW_ALL_QUESTIONS,
            P.CREATE_TEST,
            P.UPDATE_TEST,
            P.VIEW_ALL_TESTS,
            P.VIEW_ALL_RESULTS,
            P.GENERATE_REPORTS,
            P.VIEW_ALL_ANALYTICS,
        }
    ),
    Role.TEAM_LEAD: frozenset(
        {
            P.VIEW_ALL_USERS,
            P.VIEW_ALL_TESTS,
            P.ASSIGN_TEST,
            P.VIEW_TEAM_ASSIGNMENTS,
            P.VIEW_TEAM_RESULTS,
            P.GENERATE_REPORTS,
            P.VIEW_TEAM_ANALYTICS,
        }
    ),
    Role.EMPLOYEE: frozenset(
        {
            P.VIEW_OWN_ASSIGNMENTS,
            P.VIEW_OWN_RESULTS,
            P.VIEW_OWN_ANALYTICS,
            P.TAKE_TESTS,
            P.EDIT_OWN_PROFILE,
        }
    ),
    # Candidates sit assigned tests, so they carry TAKE_TESTS as well
    Role.CANDIDATE: frozenset(
        {
            P.VIEW_OWN_ASSIGNMENTS,
            P.VIEW_OWN_RESULTS,
            P.TAKE_TESTS,
        }
    ),
}


def has_permission(role: Role, permission: Permission) -> bool:
    """Return True if the role grants the permission."""
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def has_any_permission(role: Role, permissions: Iterable[Permission]) -> bool:
    """Return True if the role grants at least one of the permissions."""
    granted = ROLE_PERMISSIONS.get(role, frozenset())
    return any(permission in granted for permission in permissions)
