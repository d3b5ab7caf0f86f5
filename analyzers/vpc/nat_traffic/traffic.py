"""
NAT Gateway 트래픽 분석 엔진

Flow Log 로그 그룹에서 수집 구간의 트래픽을 조회하여 서비스별 바이트/레코드 수를
집계한다.

1. 데이터 수집 대기 (NODATA/SKIPDATA가 아닌 이벤트가 나타날 때까지, 제한 시간 있음)
2. 집계 쿼리: (pkt-dstaddr, dstaddr)별 바이트 합계 (ACCEPT만, pkt-dstaddr 우선)
3. 집계 결과가 비어 있으면 원시 레코드 쿼리로 재시도 (위치 기반 파싱)

두 경로 모두 결과가 없으면 total_records == 0인 빈 통계를 반환한다 (오류 아님).
목적지가 없거나 분류할 수 없는 레코드도 other로 계산하므로
서비스별 바이트의 합은 항상 total_bytes와 같다.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from core.config import settings
from core.parallel.cancel import CancellationToken

from .classifier import AddressClassifier
from .logs_query import LogsInsightsClient, Row
from .models import FlowRecord, TrafficService

logger = logging.getLogger(__name__)

AGGREGATED_QUERY = (
    "fields @message"
    ' | parse @message "* * * * * * * * * * * * * *" as'
    " interface_id, srcaddr, dstaddr, pkt_srcaddr, pkt_dstaddr, srcport, dstport,"
    " protocol, packets, flow_bytes, start_time, end_time, flow_action, log_status"
    ' | filter flow_action = "ACCEPT"'
    " | stats sum(flow_bytes) as total_bytes, count(*) as flow_count by pkt_dstaddr, dstaddr"
    " | sort total_bytes desc"
)

RAW_QUERY_TEMPLATE = "fields @message | filter @message not like /NODATA|SKIPDATA/ | limit {limit}"

# 집계 행에서 목적지 주소를 찾을 필드 (우선순위 순)
DESTINATION_FIELDS = ("resolved_dst", "pkt_dstaddr", "dstaddr", "f5", "f3")
BYTES_FIELDS = ("total_bytes", "bytes", "f10")
COUNT_FIELDS = ("flow_count", "count")

UNKNOWN_DESTINATION = "unknown"


def parse_number(value: str | None) -> int:
    """정수 또는 실수 텍스트를 정수로 변환. 실패 시 0."""
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        try:
            return int(float(value))
        except ValueError:
            return 0


def _first_field(row: Row, names: Iterable[str]) -> str:
    for name in names:
        value = row.get(name, "")
        if value and value != "-":
            return value
    return ""


# =============================================================================
# 통계
# =============================================================================


@dataclass(frozen=True)
class ServiceTraffic:
    """서비스별 트래픽"""

    bytes: int = 0
    records: int = 0


@dataclass(frozen=True)
class SourceTraffic:
    """출발지 IP별 트래픽 (원시 레코드 경로에서만 수집)"""

    address: str
    bytes: int
    records: int
    service_bytes: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class TrafficStats:
    """수집 구간의 트래픽 통계 (불변)

    Attributes:
        total_bytes: 전체 바이트
        total_records: 집계 행 또는 원시 레코드 수
        services: 서비스 태그 -> ServiceTraffic (s3, dynamodb, ecr, other 항상 포함)
        sources: 바이트 내림차순 출발지 목록
        source: ``aggregated``, ``raw``, ``empty``
    """

    total_bytes: int
    total_records: int
    services: Mapping[str, ServiceTraffic]
    sources: tuple[SourceTraffic, ...] = ()
    source: str = "empty"

    @property
    def is_empty(self) -> bool:
        return self.total_records == 0

    def bytes_for(self, service: TrafficService | str) -> int:
        key = service.value if isinstance(service, TrafficService) else service
        traffic = self.services.get(key)
        return traffic.bytes if traffic else 0

    def records_for(self, service: TrafficService | str) -> int:
        key = service.value if isinstance(service, TrafficService) else service
        traffic = self.services.get(key)
        return traffic.records if traffic else 0

    def percentage(self, service: TrafficService | str) -> float:
        if self.total_bytes == 0:
            return 0.0
        return self.bytes_for(service) / self.total_bytes * 100

    def top_sources(self, limit: int = settings.TOP_SOURCES_LIMIT) -> list[SourceTraffic]:
        return list(self.sources[:limit])

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_bytes": self.total_bytes,
            "total_records": self.total_records,
            "source": self.source,
            "services": {k: {"bytes": v.bytes, "records": v.records} for k, v in self.services.items()},
            "top_sources": [
                {"address": s.address, "bytes": s.bytes, "records": s.records, "services": dict(s.service_bytes)}
                for s in self.sources
            ],
        }


class TrafficStatsBuilder:
    """TrafficStats 누적기"""

    def __init__(self) -> None:
        self._bytes: dict[str, int] = {tag.value: 0 for tag in TrafficService}
        self._records: dict[str, int] = {tag.value: 0 for tag in TrafficService}
        self._sources: dict[str, dict[str, int]] = {}
        self.total_bytes = 0
        self.total_records = 0

    def add(self, service: TrafficService, nbytes: int, records: int = 1, source_ip: str = "") -> None:
        nbytes = max(nbytes, 0)
        self._bytes[service.value] += nbytes
        self._records[service.value] += records
        self.total_bytes += nbytes
        self.total_records += records

        if source_ip:
            entry = self._sources.setdefault(source_ip, {"bytes": 0, "records": 0})
            entry["bytes"] += nbytes
            entry["records"] += records
            entry[service.value] = entry.get(service.value, 0) + nbytes

    def build(self, source: str) -> TrafficStats:
        services = {
            tag.value: ServiceTraffic(bytes=self._bytes[tag.value], records=self._records[tag.value])
            for tag in TrafficService
        }
        sources = tuple(
            SourceTraffic(
                address=address,
                bytes=entry["bytes"],
                records=entry["records"],
                service_bytes=MappingProxyType({k: v for k, v in entry.items() if k not in ("bytes", "records")}),
            )
            for address, entry in sorted(self._sources.items(), key=lambda item: item[1]["bytes"], reverse=True)
        )
        return TrafficStats(
            total_bytes=self.total_bytes,
            total_records=self.total_records,
            services=MappingProxyType(services),
            sources=sources,
            source=source if self.total_records else "empty",
        )


def empty_stats() -> TrafficStats:
    return TrafficStatsBuilder().build("empty")


# =============================================================================
# 분석 엔진
# =============================================================================


class TrafficAnalyzer:
    """Flow Log 로그 그룹의 트래픽을 분석한다.

    Args:
        query_client: LogsInsightsClient
        classifier: AddressClassifier
        data_wait_timeout: 데이터 수집 대기 최대 시간 (초)
        data_wait_interval: 데이터 수집 확인 간격 (초)
        raw_limit: 원시 레코드 쿼리 최대 행 수
    """

    def __init__(
        self,
        query_client: LogsInsightsClient,
        classifier: AddressClassifier,
        data_wait_timeout: float = settings.DATA_WAIT_TIMEOUT_SECONDS,
        data_wait_interval: float = settings.DATA_WAIT_POLL_SECONDS,
        raw_limit: int = settings.RAW_QUERY_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.query_client = query_client
        self.classifier = classifier
        self.data_wait_timeout = data_wait_timeout
        self.data_wait_interval = data_wait_interval
        self.raw_limit = raw_limit
        self._clock = clock

    def analyze(
        self,
        log_group: str,
        window_start: datetime,
        window_end: datetime,
        token: CancellationToken,
    ) -> TrafficStats:
        """수집 구간의 트래픽 통계를 계산한다."""
        if not self.wait_for_data(log_group, window_start, window_end, token):
            logger.warning("제한 시간 안에 트래픽 로그가 수집되지 않았습니다: %s", log_group)

        rows = self.query_client.run_query(log_group, AGGREGATED_QUERY, window_start, window_end, token)
        stats = self.aggregate_rows(rows)
        if not stats.is_empty:
            logger.info("집계 쿼리: 목적지 %d개, %d bytes", stats.total_records, stats.total_bytes)
            return stats

        logger.info("집계 쿼리 결과 없음 - 원시 레코드 쿼리로 재시도")
        raw_query = RAW_QUERY_TEMPLATE.format(limit=self.raw_limit)
        rows = self.query_client.run_query(log_group, raw_query, window_start, window_end, token)
        stats = self.aggregate_records(row.get("@message", "") for row in rows)
        if stats.is_empty:
            logger.info("원시 레코드도 없음 - 트래픽 0으로 처리")
        else:
            logger.info("원시 레코드: %d개, %d bytes", stats.total_records, stats.total_bytes)
        return stats

    def wait_for_data(
        self,
        log_group: str,
        window_start: datetime,
        window_end: datetime,
        token: CancellationToken,
    ) -> bool:
        """트래픽 이벤트가 수집될 때까지 대기. 시간 초과 시 False."""
        started = self._clock()
        while True:
            token.raise_if_cancelled("ANALYZE")
            if self.query_client.has_traffic_events(log_group, window_start, window_end):
                return True
            remaining = self.data_wait_timeout - (self._clock() - started)
            if remaining <= 0:
                return False
            token.sleep(min(self.data_wait_interval, remaining), "ANALYZE")

    def aggregate_rows(self, rows: Iterable[Row]) -> TrafficStats:
        """집계 쿼리 결과 (목적지별 바이트 합계) -> TrafficStats"""
        builder = TrafficStatsBuilder()
        for row in rows:
            nbytes = parse_number(_first_field(row, BYTES_FIELDS))
            destination = _first_field(row, DESTINATION_FIELDS) or UNKNOWN_DESTINATION
            if nbytes == 0 and destination == UNKNOWN_DESTINATION:
                continue
            records = parse_number(_first_field(row, COUNT_FIELDS)) or 1
            builder.add(self._classify(destination), nbytes, records=records)
        return builder.build("aggregated")

    def aggregate_records(self, lines: Iterable[str]) -> TrafficStats:
        """원시 Flow Log 레코드 -> TrafficStats (ACCEPT만, 출발지별 통계 포함)"""
        builder = TrafficStatsBuilder()
        for line in lines:
            record = FlowRecord.parse(line)
            if record is None or not record.is_accepted:
                continue
            destination = record.destination or UNKNOWN_DESTINATION
            builder.add(self._classify(destination), record.bytes, source_ip=record.source)
        return builder.build("raw")

    def _classify(self, destination: str) -> TrafficService:
        if destination == UNKNOWN_DESTINATION:
            return TrafficService.OTHER
        return self.classifier.classify(destination)
