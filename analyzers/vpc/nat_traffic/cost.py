"""
NAT Gateway 데이터 처리 비용 추정

수집 구간의 트래픽을 30일로 외삽하여 월간 NAT 데이터 처리 비용과
Gateway Endpoint(S3, DynamoDB) 사용 시 절감액을 계산한다.

    monthly_gb = sample_gb * 43,200 / sample_minutes
    current    = monthly_gb * rate
    savings    = monthly_service_gb * rate   (s3, dynamodb)

GB는 ``bytes / 1024**3``. 결과는 항상 추정치이다.

사전 비용 추정(estimate_flow_logs_cost)은 승인 단계에서 Flow Logs 수집 비용을
CloudWatch NAT 메트릭으로 예측한다. 실패하면 정적 안내로 대체한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import ValidationError
from core.shared.aws.pricing import (
    BYTES_PER_GB,
    MINUTES_PER_MONTH,
    get_cloudwatch_ingestion_price,
    get_nat_data_price,
)

from .models import GATEWAY_ENDPOINT_SERVICES, TrafficService
from .traffic import TrafficStats

logger = logging.getLogger(__name__)

# Flow Log 레코드 크기 / NAT 처리 바이트 비율 근사
FLOW_LOG_SIZE_FACTOR = 0.5

# Flow Log 생성/활성화 소요 시간 보정 (분)
FLOW_LOG_STARTUP_MINUTES = 5


@dataclass(frozen=True)
class CostEstimate:
    """월간 비용 추정 (불변)

    Attributes:
        region: 리전
        price_per_gb: NAT 데이터 처리 단가 (USD/GB)
        sample_minutes: 수집 구간 (분)
        monthly_gb: 월간 외삽 전체 GB
        service_monthly_gb: 서비스별 월간 GB
        current_monthly_cost: 현재 월간 NAT 데이터 처리 비용
        service_savings: 서비스별 월간 절감액 (Gateway Endpoint 대상만)
        total_savings_monthly: 월간 총 절감액
    """

    region: str
    price_per_gb: float
    sample_minutes: float
    monthly_gb: float
    service_monthly_gb: dict[str, float] = field(default_factory=dict)
    current_monthly_cost: float = 0.0
    service_savings: dict[str, float] = field(default_factory=dict)
    total_savings_monthly: float = 0.0
    is_estimate: bool = True

    @property
    def total_savings_annual(self) -> float:
        return self.total_savings_monthly * 12

    @property
    def savings_ratio(self) -> float:
        if self.current_monthly_cost <= 0:
            return 0.0
        return self.total_savings_monthly / self.current_monthly_cost

    def savings_for(self, service: TrafficService | str) -> float:
        key = service.value if isinstance(service, TrafficService) else service
        return self.service_savings.get(key, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "region": self.region,
            "price_per_gb": self.price_per_gb,
            "sample_minutes": self.sample_minutes,
            "monthly_gb": round(self.monthly_gb, 4),
            "service_monthly_gb": {k: round(v, 4) for k, v in self.service_monthly_gb.items()},
            "current_monthly_cost": round(self.current_monthly_cost, 2),
            "service_savings": {k: round(v, 2) for k, v in self.service_savings.items()},
            "total_savings_monthly": round(self.total_savings_monthly, 2),
            "total_savings_annual": round(self.total_savings_annual, 2),
            "is_estimate": self.is_estimate,
        }


def bytes_to_gb(nbytes: float) -> float:
    return nbytes / BYTES_PER_GB


def project_costs(stats: TrafficStats, sample_minutes: float, region: str) -> CostEstimate:
    """수집 구간 트래픽을 월간 비용/절감액으로 외삽한다.

    Raises:
        ValidationError: sample_minutes <= 0
    """
    if sample_minutes <= 0:
        raise ValidationError("sample_minutes", sample_minutes, "> 0")

    rate = get_nat_data_price(region)
    multiplier = MINUTES_PER_MONTH / sample_minutes

    monthly_gb = bytes_to_gb(stats.total_bytes) * multiplier
    service_monthly_gb = {tag.value: bytes_to_gb(stats.bytes_for(tag)) * multiplier for tag in TrafficService}
    service_savings = {tag.value: service_monthly_gb[tag.value] * rate for tag in GATEWAY_ENDPOINT_SERVICES}

    return CostEstimate(
        region=region,
        price_per_gb=rate,
        sample_minutes=sample_minutes,
        monthly_gb=monthly_gb,
        service_monthly_gb=service_monthly_gb,
        current_monthly_cost=monthly_gb * rate,
        service_savings=service_savings,
        total_savings_monthly=sum(service_savings.values()),
    )


# =============================================================================
# 사전 비용 추정 (승인 단계)
# =============================================================================


@dataclass(frozen=True)
class FlowLogsCostEstimate:
    """Flow Logs 수집 비용 사전 추정

    Attributes:
        estimated_gb: 예상 로그 수집량 (GB), 메트릭 조회 실패 시 None
        estimated_cost: 예상 비용 (USD), 메트릭 조회 실패 시 None
        price_per_gb: CloudWatch Logs 수집 단가
    """

    estimated_gb: float | None
    estimated_cost: float | None
    price_per_gb: float

    @property
    def is_default(self) -> bool:
        return self.estimated_cost is None

    def describe(self) -> str:
        if self.is_default:
            return f"~${self.price_per_gb:.2f} per GB of flow logs ingested"
        return f"~${self.estimated_cost:.2f} ({self.estimated_gb:.3f} GB of flow logs)"


def estimate_flow_logs_cost(
    cloudwatch,
    nat_gateway_ids: list[str],
    duration_minutes: int,
    region: str,
    now: datetime | None = None,
) -> FlowLogsCostEstimate:
    """최근 1시간 NAT 처리량으로 Flow Logs 수집 비용을 추정한다. 실패해도 예외를 던지지 않는다."""
    price = get_cloudwatch_ingestion_price(region)
    end = now or datetime.now(timezone.utc)
    start = end - timedelta(hours=1)

    if cloudwatch is None or not nat_gateway_ids:
        return FlowLogsCostEstimate(estimated_gb=None, estimated_cost=None, price_per_gb=price)

    try:
        hourly_bytes = 0.0
        for nat_id in nat_gateway_ids:
            for metric in ("BytesOutToDestination", "BytesInFromDestination"):
                response = cloudwatch.get_metric_statistics(
                    Namespace="AWS/NATGateway",
                    MetricName=metric,
                    Dimensions=[{"Name": "NatGatewayId", "Value": nat_id}],
                    StartTime=start,
                    EndTime=end,
                    Period=3600,
                    Statistics=["Sum"],
                )
                hourly_bytes += sum(dp.get("Sum", 0.0) for dp in response.get("Datapoints", []))
    except (ClientError, BotoCoreError) as e:
        logger.warning("NAT 메트릭 조회 실패 - 기본 비용 안내 사용: %s", e)
        return FlowLogsCostEstimate(estimated_gb=None, estimated_cost=None, price_per_gb=price)

    scan_hours = (duration_minutes + FLOW_LOG_STARTUP_MINUTES) / 60
    estimated_gb = bytes_to_gb(hourly_bytes * scan_hours * FLOW_LOG_SIZE_FACTOR)
    return FlowLogsCostEstimate(
        estimated_gb=estimated_gb,
        estimated_cost=estimated_gb * price,
        price_per_gb=price,
    )
