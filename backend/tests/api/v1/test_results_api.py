"""
Tests for result and skill-gap analysis endpoints.
"""
from unittest.mock import patch

import pytest

from linxiq.api.v1.results import get_insight_providers
from linxiq.core.error_responses import ErrorMessages
from linxiq.core.permissions import Role
from linxiq.core.providers import InsightProvider, TemplateInsightProvider
from linxiq.main import app
from linxiq.models import TestResult
from linxiq.services.sessions import SessionManager
from tests.conftest import auth_headers_for, caller_for, correct_answers

PREFIX = "/v1/results"


@pytest.fixture
def submit(db_session, make_assignment):
    """Assign, start and submit a test directly through the service layer."""

    def _submit(user, test, correct=None, results_visible=False):
        make_assignment(user, test, results_visible=results_visible)
        manager = SessionManager(db_session)
        caller = caller_for(user)
        session, _ = manager.start_or_resume(caller, test.id)
        result, _ = manager.submit(caller, session.id, correct_answers(test, correct))
        return result

    return _submit


class BrokenProvider(InsightProvider):
    name = "remote"

    def generate_insight(self, request):
        raise RuntimeError("remote provider timed out")


class TestGetResult:
    def test_admin_reads_any_result(self, client, admin, employee, python_test, submit):
        result = submit(employee, python_test)

        response = client.get(f"{PREFIX}/{result.id}", headers=auth_headers_for(admin))

        assert response.status_code == 200
        data = response.json()
        assert data["percentage"] == 100
        assert data["passed"] is True
        assert data["skill_gap_analysis"]["skill_level"] == "expert"

    def test_owner_blocked_until_released(self, client, employee, python_test, submit):
        result = submit(employee, python_test)

        response = client.get(f"{PREFIX}/{result.id}", headers=auth_headers_for(employee))

        assert response.status_code == 403
        assert response.json()["detail"] == ErrorMessages.RESULTS_HIDDEN

    def test_owner_reads_released_result(self, client, employee, python_test, submit):
        result = submit(employee, python_test, results_visible=True)

        response = client.get(f"{PREFIX}/{result.id}", headers=auth_headers_for(employee))

        assert response.status_code == 200

    def test_other_employee_forbidden(self, client, employee, make_user, python_test, submit):
        result = submit(employee, python_test, results_visible=True)

        response = client.get(
            f"{PREFIX}/{result.id}", headers=auth_headers_for(make_user())
        )

        assert response.status_code == 403

    def test_unknown_result(self, client, admin):
        response = client.get(f"{PREFIX}/404", headers=auth_headers_for(admin))

        assert response.status_code == 404
        assert response.json()["detail"] == ErrorMessages.RESULT_NOT_FOUND


class TestListResults:
    def test_mine_only_lists_released(
        self, client, employee, python_test, make_test, submit
    ):
        submit(employee, python_test, results_visible=False)
        released = submit(employee, make_test(domain="sql"), results_visible=True)

        response = client.get(f"{PREFIX}/mine", headers=auth_headers_for(employee))

        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [released.id]

    def test_list_all_requires_view_all_results(self, client, employee):
        response = client.get(PREFIX, headers=auth_headers_for(employee))

        assert response.status_code == 403

    def test_list_all_paginates(self, client, admin, make_user, python_test, submit):
        for _ in range(3):
            submit(make_user(), python_test)

        response = client.get(
            PREFIX, params={"limit": 2, "offset": 0}, headers=auth_headers_for(admin)
        )

        assert response.status_code == 200
        assert len(response.json()) == 2


class TestSkillGapEndpoints:
    def test_admin_reads_persons_report(self, client, admin, employee, python_test, submit):
        result = submit(employee, python_test, correct=2)

        response = client.get(
            f"{PREFIX}/skill-gap/{employee.id}", headers=auth_headers_for(admin)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["result_id"] == result.id
        assert data["person_id"] == employee.id
        assert data["skill_gap_analysis"]["skill_level"] == "beginner"
        assert data["skill_gap_analysis"]["skill_gaps"] == ["python"]

    def test_report_generated_when_missing(
        self, client, db_session, admin, employee, python_test, submit
    ):
        with patch(
            "linxiq.services.results.analyze", side_effect=RuntimeError("down")
        ):
            result = submit(employee, python_test)
        assert result.skill_gap_analysis is None

        response = client.get(
            f"{PREFIX}/skill-gap/{employee.id}", headers=auth_headers_for(admin)
        )

        assert response.status_code == 200
        assert response.json()["skill_gap_analysis"]["skill_level"] == "expert"

    def test_employee_cannot_read_someone_else(
        self, client, employee, make_user, python_test, submit
    ):
        other = make_user()
        submit(other, python_test, results_visible=True)

        response = client.get(
            f"{PREFIX}/skill-gap/{other.id}", headers=auth_headers_for(employee)
        )

        assert response.status_code == 403

    def test_employee_reads_own_once_released(
        self, client, employee, python_test, submit
    ):
        submit(employee, python_test, results_visible=True)

        response = client.get(
            f"{PREFIX}/skill-gap/{employee.id}", headers=auth_headers_for(employee)
        )

        assert response.status_code == 200

    def test_no_results_for_person(self, client, admin, employee):
        response = client.get(
            f"{PREFIX}/skill-gap/{employee.id}", headers=auth_headers_for(admin)
        )

        assert response.status_code == 404

    def test_generate_missing(self, client, db_session, admin, employee, python_test, submit):
        with patch(
            "linxiq.services.results.analyze", side_effect=RuntimeError("down")
        ):
            result = submit(employee, python_test)

        response = client.post(
            f"{PREFIX}/skill-gap/generate-missing", headers=auth_headers_for(admin)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["succeeded"] == 1
        assert data["items"] == [
            {"result_id": result.id, "status": "succeeded", "error": None}
        ]

    def test_force_regenerate_selected(
        self, client, admin, employee, python_test, submit
    ):
        result = submit(employee, python_test)

        response = client.post(
            f"{PREFIX}/skill-gap/force-regenerate",
            json={"result_ids": [result.id]},
            headers=auth_headers_for(admin),
        )

        assert response.status_code == 200
        assert response.json()["succeeded"] == 1

    def test_force_regenerate_without_body(
        self, client, db_session, admin, employee, python_test, submit
    ):
        submit(employee, python_test)

        response = client.post(
            f"{PREFIX}/skill-gap/force-regenerate", headers=auth_headers_for(admin)
        )

        assert response.status_code == 200
        assert response.json()["total"] == db_session.query(TestResult).count()

    def test_batch_requires_manage_results(self, client, make_user):
        hr = make_user(Role.HR_MANAGER)

        response = client.post(
            f"{PREFIX}/skill-gap/generate-missing", headers=auth_headers_for(hr)
        )

        assert response.status_code == 403


class TestInsights:
    def test_template_insight(self, client, admin, employee, python_test, submit):
        result = submit(employee, python_test, correct=4)

        response = client.get(
            f"{PREFIX}/{result.id}/insights", headers=auth_headers_for(admin)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["result_id"] == result.id
        assert data["provider"] == "template"
        assert data["insight"]["growth_potential"] == 8

    def test_falls_back_past_broken_provider(
        self, client, admin, employee, python_test, submit
    ):
        result = submit(employee, python_test)
        app.dependency_overrides[get_insight_providers] = lambda: [
            BrokenProvider(),
            TemplateInsightProvider(),
        ]

        response = client.get(
            f"{PREFIX}/{result.id}/insights", headers=auth_headers_for(admin)
        )

        assert response.status_code == 200
        assert response.json()["provider"] == "template"

    def test_all_providers_failing_is_503(
        self, client, admin, employee, python_test, submit
    ):
        result = submit(employee, python_test)
        app.dependency_overrides[get_insight_providers] = lambda: [BrokenProvider()]

        response = client.get(
            f"{PREFIX}/{result.id}/insights", headers=auth_headers_for(admin)
        )

        assert response.status_code == 503
        assert response.json()["detail"] == ErrorMessages.INSIGHTS_UNAVAILABLE
