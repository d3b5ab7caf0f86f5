"""
tests/test_parallel_cancel.py - core/parallel/cancel.py 테스트
"""

import signal
import threading

import pytest

from core.exceptions import ScanCancelledError
from core.parallel.cancel import CancellationToken, cancel_on_signals


class TestCancellationToken:
    """CancellationToken 테스트"""

    def test_initial_state(self):
        token = CancellationToken()
        assert token.cancelled is False
        assert token.reason == ""

    def test_cancel_keeps_first_reason(self):
        token = CancellationToken()
        token.cancel("SIGINT")
        token.cancel("SIGTERM")

        assert token.cancelled is True
        assert token.reason == "SIGINT"

    def test_wait_returns_immediately_when_cancelled(self):
        token = CancellationToken()
        token.cancel()
        assert token.wait(30) is True

    def test_wait_zero(self):
        token = CancellationToken()
        assert token.wait(0) is False

    def test_wait_wakes_on_cancel_from_other_thread(self):
        token = CancellationToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()
        try:
            assert token.wait(5) is True
        finally:
            timer.cancel()

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled("COLLECT")

        token.cancel()
        with pytest.raises(ScanCancelledError) as exc_info:
            token.raise_if_cancelled("COLLECT")
        assert exc_info.value.phase == "COLLECT"

    def test_sleep_raises_when_cancelled(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ScanCancelledError):
            token.sleep(10, "AWAIT_ACTIVATION")


class TestCancelOnSignals:
    """cancel_on_signals 테스트"""

    def test_installs_and_restores_handlers(self):
        before = signal.getsignal(signal.SIGTERM)
        token = CancellationToken()

        with cancel_on_signals(token):
            assert signal.getsignal(signal.SIGTERM) is not before

        assert signal.getsignal(signal.SIGTERM) is before

    def test_sigterm_cancels_token(self):
        token = CancellationToken()
        with cancel_on_signals(token):
            handler = signal.getsignal(signal.SIGTERM)
            handler(signal.SIGTERM, None)

        assert token.cancelled is True
        assert token.reason == "SIGTERM"

    def test_second_sigint_raises_keyboard_interrupt(self):
        token = CancellationToken()
        with cancel_on_signals(token):
            handler = signal.getsignal(signal.SIGINT)
            handler(signal.SIGINT, None)
            assert token.cancelled is True

            with pytest.raises(KeyboardInterrupt):
                handler(signal.SIGINT, None)
