"""
CloudWatch Logs Insights 쿼리 실행기

쿼리 제출, 완료까지 폴링, 결과 행 변환, 데이터 수집 여부 확인을 담당한다.
모든 대기는 취소 토큰을 통해 이루어진다.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.config import settings
from core.exceptions import APICallError, QueryError
from core.parallel.cancel import CancellationToken
from core.parallel.decorators import RetryConfig, call_with_retry

logger = logging.getLogger(__name__)

# Flow Log가 트래픽 없이 내보내는 상태 레코드
NO_TRAFFIC_STATUSES = ("NODATA", "SKIPDATA")

QUERY_DONE_STATUSES = ("Complete",)
QUERY_FAILED_STATUSES = ("Failed", "Cancelled", "Timeout", "Unknown")

# Logs Insights 동시 쿼리 한도 재시도
START_QUERY_RETRY = RetryConfig(max_retries=5, base_delay=2.0, max_delay=20.0)

# 데이터 수집 확인 시 읽을 filter_log_events 최대 페이지 수
TRAFFIC_CHECK_MAX_PAGES = 20

Row = dict[str, str]


def _epoch_seconds(value: datetime) -> int:
    return int(value.timestamp())


class LogsInsightsClient:
    """Logs Insights 쿼리 래퍼

    Args:
        logs: boto3 CloudWatch Logs client
        clock: 단조 시계 (테스트용)
    """

    def __init__(self, logs, clock: Callable[[], float] = time.monotonic):
        self.logs = logs
        self._clock = clock

    def run_query(
        self,
        log_group: str,
        query: str,
        start: datetime,
        end: datetime,
        token: CancellationToken,
        timeout: float = settings.QUERY_TIMEOUT_SECONDS,
        interval: float = settings.QUERY_POLL_SECONDS,
    ) -> list[Row]:
        """쿼리를 제출하고 완료될 때까지 기다려 결과 행을 반환한다."""
        query_id = self.start_query(log_group, query, start, end, token)
        return self.wait_for_results(query_id, token, timeout=timeout, interval=interval)

    def start_query(
        self,
        log_group: str,
        query: str,
        start: datetime,
        end: datetime,
        token: CancellationToken,
    ) -> str:
        def _start() -> str:
            response = self.logs.start_query(
                logGroupName=log_group,
                startTime=_epoch_seconds(start),
                endTime=_epoch_seconds(end),
                queryString=query,
            )
            return response["queryId"]

        try:
            query_id = call_with_retry(
                _start,
                START_QUERY_RETRY,
                sleep=lambda seconds: token.sleep(seconds, "ANALYZE"),
            )
        except (ClientError, BotoCoreError) as e:
            raise APICallError.from_client_error("logs", "start_query", e) from e

        logger.debug("Logs Insights 쿼리 시작: %s", query_id)
        return query_id

    def wait_for_results(
        self,
        query_id: str,
        token: CancellationToken,
        timeout: float = settings.QUERY_TIMEOUT_SECONDS,
        interval: float = settings.QUERY_POLL_SECONDS,
    ) -> list[Row]:
        """쿼리 완료까지 폴링

        Raises:
            QueryError: Failed/Cancelled/Timeout 상태 또는 대기 시간 초과
            ScanCancelledError: 취소
        """
        started = self._clock()
        while True:
            token.raise_if_cancelled("ANALYZE")
            try:
                response = self.logs.get_query_results(queryId=query_id)
            except (ClientError, BotoCoreError) as e:
                raise APICallError.from_client_error("logs", "get_query_results", e) from e

            status = response.get("status", "Unknown")
            if status in QUERY_DONE_STATUSES:
                rows = [self._to_row(fields) for fields in response.get("results", [])]
                logger.debug("쿼리 완료 %s: %d행", query_id, len(rows))
                return rows
            if status in QUERY_FAILED_STATUSES:
                raise QueryError(query_id, status)

            remaining = timeout - (self._clock() - started)
            if remaining <= 0:
                self._stop_query(query_id)
                raise QueryError(query_id, "polling timeout")
            token.sleep(min(interval, remaining), "ANALYZE")

    def has_traffic_events(self, log_group: str, start: datetime, end: datetime) -> bool:
        """NODATA/SKIPDATA가 아닌 Flow Log 이벤트가 하나라도 수집되었는지

        트래픽 이벤트를 찾거나 페이지가 끝날 때까지 nextToken을 따라간다
        (최대 ``TRAFFIC_CHECK_MAX_PAGES`` 페이지).
        """
        next_token = None
        for _ in range(TRAFFIC_CHECK_MAX_PAGES):
            params: dict[str, Any] = {
                "logGroupName": log_group,
                "startTime": _epoch_seconds(start) * 1000,
                "endTime": _epoch_seconds(end) * 1000,
                "limit": 50,
            }
            if next_token:
                params["nextToken"] = next_token

            try:
                response = self.logs.filter_log_events(**params)
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                    return False
                raise APICallError.from_client_error("logs", "filter_log_events", e) from e
            except BotoCoreError as e:
                raise APICallError.from_client_error("logs", "filter_log_events", e) from e

            for event in response.get("events", []):
                message = event.get("message", "")
                if message and not any(status in message for status in NO_TRAFFIC_STATUSES):
                    return True

            # 다음 페이지 확인
            next_token = response.get("nextToken")
            if not next_token:
                break
        return False

    def _stop_query(self, query_id: str) -> None:
        try:
            self.logs.stop_query(queryId=query_id)
        except (ClientError, BotoCoreError) as e:
            logger.debug("쿼리 중지 실패 %s: %s", query_id, e)

    @staticmethod
    def _to_row(fields: list[dict[str, str]]) -> Row:
        """[{"field": ..., "value": ...}, ...] -> {field: value}"""
        return {f["field"]: f.get("value", "") for f in fields if "field" in f}
