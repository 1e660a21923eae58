"""Tests for retry utilities."""

from unittest.mock import MagicMock

import pytest

from sim_location.core.exceptions import (
    NetworkError,
    SinkError,
    TransientError,
    ValidationError,
)
from sim_location.core.retry import RetryConfig, with_retry_sync


@pytest.mark.unit
@pytest.mark.critical
class TestRetryConfig:
    """Test RetryConfig defaults and customization."""

    def test_default_config(self):
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.base_delay == 0.5
        assert config.multiplier == 2.0
        assert config.max_delay == 30.0
        assert config.retryable_exceptions == (TransientError,)

    def test_custom_config(self):
        config = RetryConfig(max_attempts=5, retryable_exceptions=(NetworkError, ValueError))
        assert config.max_attempts == 5
        assert config.retryable_exceptions == (NetworkError, ValueError)


@pytest.mark.unit
@pytest.mark.critical
class TestWithRetrySync:
    """Test sync retry functionality."""

    def test_succeeds_on_first_attempt(self):
        operation = MagicMock(return_value="success")
        sleep = MagicMock()

        result = with_retry_sync(operation, sleep=sleep)

        assert result == "success"
        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_retries_transient_error_then_succeeds(self):
        operation = MagicMock(side_effect=[NetworkError("timeout"), "success"])
        sleep = MagicMock()

        result = with_retry_sync(operation, sleep=sleep)

        assert result == "success"
        assert operation.call_count == 2
        sleep.assert_called_once_with(0.5)

    def test_exponential_backoff_delays(self):
        operation = MagicMock(side_effect=SinkError("busy"))
        sleep = MagicMock()
        config = RetryConfig(max_attempts=4, base_delay=1.0, multiplier=2.0, max_delay=3.0)

        with pytest.raises(SinkError):
            with_retry_sync(operation, config=config, sleep=sleep)

        assert operation.call_count == 4
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0, 3.0]

    def test_permanent_error_not_retried(self):
        operation = MagicMock(side_effect=ValidationError("bad input"))
        sleep = MagicMock()

        with pytest.raises(ValidationError):
            with_retry_sync(operation, sleep=sleep)

        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_logs_each_retry(self, caplog):
        operation = MagicMock(side_effect=[NetworkError("timeout"), "ok"])

        with caplog.at_level("WARNING", logger="sim_location.core.retry"):
            with_retry_sync(operation, operation_name="OSRM route request", sleep=MagicMock())

        assert "OSRM route request failed (attempt 1/3)" in caplog.text
