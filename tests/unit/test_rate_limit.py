"""Tests for rate limiting utilities."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from kubernetes.client.exceptions import ApiException
from prometheus_client import REGISTRY

import yc_storage_operator.utils.rate_limit as rl
from yc_storage_operator.utils.rate_limit import handle_rate_limit_error, rate_limit_k8s, rate_limit_s3


def _hits(api_type: str) -> float:
    value = REGISTRY.get_sample_value("yc_storage_operator_rate_limit_hits_total", {"api_type": api_type})
    return value or 0.0


class TestRateLimitDecorators:
    """Test cases for the rate limiting decorators."""

    @pytest.mark.parametrize("decorator", [rate_limit_k8s, rate_limit_s3])
    def test_passes_arguments_and_result(self, decorator):
        """Test that decorated functions keep their arguments and return value."""
        @decorator
        def join(a, b, c=None):
            return f"{a}-{b}-{c}"

        assert join("x", "y", c="z") == "x-y-z"

    def test_preserves_function_name(self):
        """Test that the wrapper keeps the wrapped function's name."""
        @rate_limit_s3
        def put_bucket_website():
            return None

        assert put_bucket_website.__name__ == "put_bucket_website"

    @patch("yc_storage_operator.utils.rate_limit.time.sleep")
    def test_k8s_sleeps_when_calls_are_too_fast(self, mock_sleep):
        """Test that the Kubernetes limiter sleeps between close calls."""
        with patch("yc_storage_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1.0):
            rl._last_call_times["k8s"] = 0.0

            @rate_limit_k8s
            def get_provider():
                return "ok"

            with patch("yc_storage_operator.utils.rate_limit.time.time", return_value=10.0):
                get_provider()
            mock_sleep.assert_not_called()

            with patch("yc_storage_operator.utils.rate_limit.time.time", return_value=10.25):
                get_provider()

            mock_sleep.assert_called_once()
            assert mock_sleep.call_args[0][0] == pytest.approx(0.75)

    @patch("yc_storage_operator.utils.rate_limit.time.sleep")
    def test_s3_limit_counts_hits(self, mock_sleep):
        """Test that throttled storage calls are counted."""
        with patch("yc_storage_operator.utils.rate_limit._S3_RATE_LIMIT_PER_SECOND", 2.0):
            rl._last_call_times["s3"] = 0.0
            before = _hits("s3")

            @rate_limit_s3
            def list_buckets():
                return []

            with patch("yc_storage_operator.utils.rate_limit.time.time", return_value=100.0):
                list_buckets()
                list_buckets()

            assert mock_sleep.call_count == 1
            assert _hits("s3") == before + 1

    @patch("yc_storage_operator.utils.rate_limit.time.sleep")
    def test_limits_are_tracked_per_api(self, mock_sleep):
        """Test that Kubernetes calls do not throttle storage calls."""
        with patch("yc_storage_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1.0), \
                patch("yc_storage_operator.utils.rate_limit._S3_RATE_LIMIT_PER_SECOND", 1.0):
            rl._last_call_times["k8s"] = 0.0
            rl._last_call_times["s3"] = 0.0

            with patch("yc_storage_operator.utils.rate_limit.time.time", return_value=50.0):
                rate_limit_k8s(lambda: None)()
                rate_limit_s3(lambda: None)()

            mock_sleep.assert_not_called()


class TestHandleRateLimitError:
    """Test cases for handling rate limit errors."""

    def test_handle_429_error(self):
        """Test handling 429 rate limit error."""
        error = ApiException(status=429, reason="Too Many Requests")

        with patch("yc_storage_operator.utils.rate_limit.time.sleep") as mock_sleep:
            result = handle_rate_limit_error(error, attempt=0)

        assert result is True
        mock_sleep.assert_called_once_with(1)

    def test_handle_503_with_rate_limit(self):
        """Test handling 503 error with rate limit message."""
        error = ApiException(status=503, reason="Service Unavailable: rate limit exceeded")

        with patch("yc_storage_operator.utils.rate_limit.time.sleep") as mock_sleep:
            result = handle_rate_limit_error(error, attempt=0)

        assert result is True
        mock_sleep.assert_called_once()

    def test_handle_503_without_rate_limit(self):
        """Test handling 503 error without rate limit message."""
        error = ApiException(status=503, reason="Service Unavailable")

        with patch("yc_storage_operator.utils.rate_limit.time.sleep") as mock_sleep:
            result = handle_rate_limit_error(error, attempt=0)

        assert result is False
        mock_sleep.assert_not_called()

    def test_handle_non_api_exception(self):
        """Test that other exceptions are never retried."""
        with patch("yc_storage_operator.utils.rate_limit.time.sleep") as mock_sleep:
            result = handle_rate_limit_error(ValueError("boom"), attempt=0)

        assert result is False
        mock_sleep.assert_not_called()

    def test_exponential_backoff(self):
        """Test exponential backoff on retries."""
        error = ApiException(status=429, reason="Too Many Requests")

        with patch("yc_storage_operator.utils.rate_limit.time.sleep") as mock_sleep:
            for attempt in range(3):
                assert handle_rate_limit_error(error, attempt) is True

        assert [c[0][0] for c in mock_sleep.call_args_list] == [1, 2, 4]

    def test_max_retries_exceeded(self):
        """Test that max retries limit is enforced."""
        error = ApiException(status=429, reason="Too Many Requests")

        with patch("yc_storage_operator.utils.rate_limit.time.sleep") as mock_sleep:
            assert handle_rate_limit_error(error, attempt=1, max_retries=2) is True
            assert handle_rate_limit_error(error, attempt=2, max_retries=2) is False

        mock_sleep.assert_called_once_with(2)

    def test_callers_do_not_share_retries(self):
        """Test that one caller giving up leaves another caller's budget intact."""
        error = ApiException(status=429, reason="Too Many Requests")

        with patch("yc_storage_operator.utils.rate_limit.time.sleep") as mock_sleep:
            assert handle_rate_limit_error(error, attempt=3) is False
            assert handle_rate_limit_error(error, attempt=0) is True
            assert handle_rate_limit_error(error, attempt=0) is True

        assert [c[0][0] for c in mock_sleep.call_args_list] == [1, 1]
