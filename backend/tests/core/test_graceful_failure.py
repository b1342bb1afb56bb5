"""
Tests for the graceful_failure context manager.

Analysis attachment and notifications run inside it, so a failure there
must be logged and swallowed without affecting the caller.
"""

import logging
from unittest.mock import MagicMock

import pytest

from linxiq.core.graceful_failure import graceful_failure


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


class TestGracefulFailure:
    """Tests for the graceful_failure context manager."""

    def test_success_case_no_exception(self, mock_logger):
        """Test that code executes normally when no exception occurs."""
        attached = []

        with graceful_failure("attach skill-gap analysis", mock_logger):
            attached.append(1)

        assert attached == [1]
        mock_logger.log.assert_not_called()

    def test_exception_is_swallowed_and_logged_at_warning(self, mock_logger):
        """Test that exceptions are swallowed and logged at WARNING by default."""
        with graceful_failure("send result notification", mock_logger):
            raise RuntimeError("smtp down")

        mock_logger.log.assert_called_once()
        call_args = mock_logger.log.call_args
        assert call_args[0][0] == logging.WARNING
        assert "Failed to send result notification" in call_args[0][1]
        assert "smtp down" in call_args[0][1]
        assert call_args[1]["exc_info"] is False

    def test_custom_log_level_and_exc_info(self, mock_logger):
        with graceful_failure(
            "attach skill-gap analysis",
            mock_logger,
            log_level=logging.ERROR,
            exc_info=True,
        ):
            raise ValueError("catalog gone")

        call_args = mock_logger.log.call_args
        assert call_args[0][0] == logging.ERROR
        assert call_args[1]["exc_info"] is True

    def test_context_in_log_message(self, mock_logger):
        """Test that context is included in log message."""
        with graceful_failure(
            "attach skill-gap analysis",
            mock_logger,
            context={"result_id": 12, "session_id": 34},
        ):
            raise ValueError("boom")

        log_message = mock_logger.log.call_args[0][1]
        assert "result_id=12" in log_message
        assert "session_id=34" in log_message

    def test_state_set_before_failure_persists(self, mock_logger):
        result = None

        with graceful_failure("set and fail", mock_logger):
            result = "partial"
            raise ValueError("after set")

        assert result == "partial"

    def test_nested_inner_failure_does_not_stop_outer(self, mock_logger):
        steps = []

        with graceful_failure("outer", mock_logger):
            steps.append("outer start")
            with graceful_failure("inner", mock_logger):
                raise ValueError("inner error")
            steps.append("after inner")

        assert steps == ["outer start", "after inner"]
        assert mock_logger.log.call_count == 1

    def test_base_exceptions_propagate(self, mock_logger):
        """KeyboardInterrupt and friends are not Exceptions and must escape."""
        with pytest.raises(KeyboardInterrupt):
            with graceful_failure("interruptible", mock_logger):
                raise KeyboardInterrupt()

        mock_logger.log.assert_not_called()
