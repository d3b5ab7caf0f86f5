"""
core/parallel/cancel.py - 협조적 취소 토큰

진단 실행의 모든 대기 지점(활성화 폴링, 수집 윈도우, 쿼리 폴링)은
CancellationToken.wait()를 사용하므로 신호가 들어오면 즉시 깨어납니다.

Example:
    token = CancellationToken()
    with cancel_on_signals(token):
        orchestrator.run(token=token)
"""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from core.exceptions import ScanCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    """threading.Event 기반 취소 토큰"""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """최대 seconds 동안 대기. 취소되었으면 True."""
        if seconds <= 0:
            return self._event.is_set()
        return self._event.wait(seconds)

    def raise_if_cancelled(self, phase: str = "") -> None:
        if self._event.is_set():
            raise ScanCancelledError(phase=phase)

    def sleep(self, seconds: float, phase: str = "") -> None:
        """wait 후 취소되었으면 ScanCancelledError"""
        if self.wait(seconds):
            raise ScanCancelledError(phase=phase)


@contextmanager
def cancel_on_signals(token: CancellationToken) -> Iterator[CancellationToken]:
    """SIGINT/SIGTERM 수신 시 토큰을 취소

    첫 번째 SIGINT는 토큰만 취소하고, 두 번째 SIGINT는 KeyboardInterrupt를 발생시킵니다.
    메인 스레드가 아니면 핸들러를 설치하지 않습니다.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    previous: dict[int, object] = {}

    def _handler(signum, frame):
        if token.cancelled and signum == signal.SIGINT:
            raise KeyboardInterrupt
        logger.warning("신호 %s 수신 - 진단을 취소하고 리소스를 정리합니다", signal.Signals(signum).name)
        token.cancel(reason=signal.Signals(signum).name)

    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    try:
        yield token
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)  # type: ignore[arg-type]
