"""
Tests for domain-exception mapping and the generic exception handler.
"""
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from linxiq.core.error_responses import ErrorMessages, status_for
from linxiq.core.exceptions import (
    AlreadyCompleted,
    AnalyticsGenerationFailedError,
    AssignmentNotFoundError,
    AttemptsExhaustedError,
    CatalogUnavailableError,
    DuplicateAssignmentError,
    ForbiddenError,
    InvalidTransitionError,
    NotAssignedError,
    ResultNotFoundError,
    ResultsHiddenError,
    SessionNotFoundError,
    SessionNotInProgressError,
)
from linxiq.main import app
from tests.conftest import auth_headers_for


class TestStatusFor:
    @pytest.mark.parametrize(
        "exc,expected_status",
        [
            (SessionNotFoundError(1), 404),
            (AssignmentNotFoundError(1), 404),
            (ResultNotFoundError(result_id=1), 404),
            (NotAssignedError(1, 2), 404),
            (ForbiddenError("nope"), 403),
            (ResultsHiddenError(1), 403),
            (AttemptsExhaustedError(1, 2, 1), 409),
            (DuplicateAssignmentError(1, 2), 409),
            (SessionNotInProgressError(1, "completed"), 409),
            (InvalidTransitionError(1, "completed", "started"), 409),
            (CatalogUnavailableError(1, "down"), 503),
            (AnalyticsGenerationFailedError(1, "down"), 503),
        ],
    )
    def test_mapping(self, exc, expected_status):
        status_code, detail = status_for(exc)

        assert status_code == expected_status
        assert detail

    def test_unmapped_error_is_500(self):
        status_code, detail = status_for(AlreadyCompleted(1, 2))

        assert status_code == 500
        assert detail == "Session 1 already has result 2"

    def test_invalid_transition_names_both_states(self):
        _, detail = status_for(InvalidTransitionError(1, "completed", "started"))

        assert detail == ErrorMessages.invalid_transition("completed", "started")

    def test_person_not_found_message(self):
        exc = ResultNotFoundError(person_id=9)

        assert exc.message == "No results found for person 9"
        assert status_for(exc) == (404, ErrorMessages.RESULT_NOT_FOUND)


class TestGenericExceptionHandler:
    def test_unexpected_error_returns_error_id(self, client, admin):
        unsafe_client = TestClient(app, raise_server_exceptions=False)

        with patch(
            "linxiq.services.results.ResultStore.get_all",
            side_effect=RuntimeError("database exploded"),
        ):
            response = unsafe_client.get("/v1/results", headers=auth_headers_for(admin))

        assert response.status_code == 500
        data = response.json()
        assert data["detail"] == "Internal server error"
        assert data["error_id"]
        assert "exploded" not in response.text
