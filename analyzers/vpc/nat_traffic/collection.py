"""
수집 윈도우 제어

Flow Log가 활성화된 뒤 지정된 시간 동안 대기하면서 일정 간격으로 진행 이벤트를
발생시킨다. 취소 토큰이 설정되면 즉시 ScanCancelledError로 중단한다.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from core.config import settings
from core.parallel.cancel import CancellationToken

from .models import ProgressEvent, ScanPhase

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


class CollectionWindow:
    """고정 길이 수집 구간

    Args:
        interval: 진행 이벤트 간격 (초)
        clock: 단조 시계 (테스트용)
    """

    def __init__(
        self,
        interval: float = settings.PROGRESS_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.interval = interval
        self._clock = clock
        self.started_at: datetime | None = None
        self.ended_at: datetime | None = None

    def collect(
        self,
        duration_seconds: float,
        token: CancellationToken,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """duration_seconds 동안 대기한다.

        Raises:
            ScanCancelledError: 수집 중 취소
        """
        self.started_at = datetime.now(timezone.utc)
        started = self._clock()
        logger.info("트래픽 수집 시작 (%d초)", int(duration_seconds))

        while True:
            elapsed = self._clock() - started
            remaining = max(duration_seconds - elapsed, 0.0)
            if remaining <= 0:
                break

            if on_progress:
                on_progress(
                    ProgressEvent(
                        phase=ScanPhase.COLLECT,
                        message="트래픽 수집 중",
                        elapsed_seconds=elapsed,
                        remaining_seconds=remaining,
                    )
                )
            token.sleep(min(self.interval, remaining), ScanPhase.COLLECT.value)

        self.ended_at = datetime.now(timezone.utc)
        if on_progress:
            on_progress(
                ProgressEvent(
                    phase=ScanPhase.COLLECT,
                    message="트래픽 수집 완료",
                    elapsed_seconds=duration_seconds,
                    remaining_seconds=0.0,
                )
            )
        logger.info("트래픽 수집 완료")
