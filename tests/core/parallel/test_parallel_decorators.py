"""
tests/test_parallel_decorators.py - core/parallel/decorators.py 테스트
"""

import pytest
from botocore.exceptions import ClientError

from core.parallel.decorators import (
    DEFAULT_RETRY_CONFIG,
    RETRYABLE_ERROR_CODES,
    RetryConfig,
    call_with_retry,
    get_error_code,
    is_retryable,
)


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "error"}}, "StartQuery")


class TestRetryConfig:
    """RetryConfig 테스트"""

    def test_default_values(self):
        """기본값 확인"""
        config = RetryConfig()

        assert config.max_retries == 3
        assert config.base_delay == 1.0
        assert config.max_delay == 30.0
        assert config.exponential_base == 2.0
        assert config.jitter is True

    def test_get_delay_exponential_no_jitter(self):
        """지수 백오프 (jitter 없음)"""
        config = RetryConfig(base_delay=1.0, exponential_base=2.0, max_delay=100.0, jitter=False)

        assert config.get_delay(0) == 1.0  # 1 * 2^0 = 1
        assert config.get_delay(1) == 2.0  # 1 * 2^1 = 2
        assert config.get_delay(3) == 8.0  # 1 * 2^3 = 8

    def test_get_delay_max_cap(self):
        """최대 지연 시간 제한"""
        config = RetryConfig(base_delay=1.0, max_delay=5.0, jitter=False)

        assert config.get_delay(10) == 5.0

    def test_get_delay_with_jitter(self):
        """Jitter 범위"""
        config = RetryConfig(base_delay=1.0, max_delay=100.0, jitter=True)

        for _ in range(20):
            assert 0 <= config.get_delay(2) <= 4.0


class TestErrorClassification:
    """오류 코드 / 재시도 판단 테스트"""

    def test_get_error_code_client_error(self):
        assert get_error_code(_client_error("LimitExceededException")) == "LimitExceededException"

    def test_get_error_code_other(self):
        assert get_error_code(ValueError("x")) == "ValueError"

    def test_limit_exceeded_is_retryable(self):
        assert "LimitExceededException" in RETRYABLE_ERROR_CODES
        assert is_retryable(_client_error("LimitExceededException")) is True

    def test_access_denied_not_retryable(self):
        assert is_retryable(_client_error("AccessDeniedException")) is False

    def test_network_errors_retryable(self):
        assert is_retryable(ConnectionError()) is True
        assert is_retryable(TimeoutError()) is True
        assert is_retryable(ValueError()) is False


class TestCallWithRetry:
    """call_with_retry 테스트"""

    def test_success_first_try(self):
        sleeps = []
        assert call_with_retry(lambda: "ok", sleep=sleeps.append) == "ok"
        assert sleeps == []

    def test_retries_then_succeeds(self):
        attempts = {"count": 0}
        sleeps = []

        def flaky():
            attempts["count"] += 1
            if attempts["count"] < 3:
                raise _client_error("ThrottlingException")
            return "done"

        config = RetryConfig(max_retries=3, base_delay=1.0, jitter=False)
        assert call_with_retry(flaky, config, sleep=sleeps.append) == "done"
        assert attempts["count"] == 3
        assert sleeps == [1.0, 2.0]

    def test_gives_up_after_max_retries(self):
        sleeps = []

        def always_fail():
            raise _client_error("LimitExceededException")

        config = RetryConfig(max_retries=2, base_delay=0.5, jitter=False)
        with pytest.raises(ClientError):
            call_with_retry(always_fail, config, sleep=sleeps.append)
        assert len(sleeps) == 2

    def test_non_retryable_raises_immediately(self):
        sleeps = []

        def denied():
            raise _client_error("AccessDeniedException")

        with pytest.raises(ClientError):
            call_with_retry(denied, DEFAULT_RETRY_CONFIG, sleep=sleeps.append)
        assert sleeps == []
