"""
core/shared/aws/pricing/vpc_endpoint.py - VPC Endpoint 가격 조회

VPC Endpoint(Interface/Gateway)의 시간당/월간 비용을 정적 가격표에서 조회한다.

비용 구조:
    - Interface Endpoint: ~$0.01/hour/AZ (리전별 상이) + 데이터 처리 ~$0.01/GB
    - Gateway Endpoint (S3, DynamoDB): 무료 (시간당 및 데이터 처리 모두 $0.00)

사용법:
    from core.shared.aws.pricing.vpc_endpoint import get_endpoint_monthly_cost

    # Interface Endpoint 2개 AZ 월간 고정 비용
    monthly = get_endpoint_monthly_cost("ap-northeast-2", az_count=2)
"""

from __future__ import annotations

from .constants import HOURS_PER_MONTH, get_regional_prices


def get_endpoint_prices(region: str) -> dict[str, float]:
    """VPC Endpoint 가격 딕셔너리 (``interface_hourly``, ``gateway_hourly``, ``data_per_gb``)"""
    return get_regional_prices("vpc_endpoint", region)


def get_endpoint_hourly_price(region: str, endpoint_type: str = "Interface") -> float:
    """VPC Endpoint 시간당 가격 (AZ 1개 기준). Gateway 타입이면 ``0.0``."""
    prices = get_endpoint_prices(region)
    if endpoint_type.lower() == "gateway":
        return prices["gateway_hourly"]
    return prices["interface_hourly"]


def get_endpoint_data_price(region: str, endpoint_type: str = "Interface") -> float:
    """VPC Endpoint 데이터 처리 GB당 가격. Gateway 타입이면 ``0.0``."""
    if endpoint_type.lower() == "gateway":
        return 0.0
    return get_endpoint_prices(region)["data_per_gb"]


def get_endpoint_monthly_cost(
    region: str,
    endpoint_type: str = "Interface",
    az_count: int = 1,
    hours: int = HOURS_PER_MONTH,
    data_processed_gb: float = 0.0,
) -> float:
    """VPC Endpoint의 월간 총 비용을 계산한다.

    ``hourly * az_count * hours + data_per_gb * data_processed_gb``.
    Gateway Endpoint는 항상 ``0.0`` 을 반환한다.

    Args:
        region: AWS 리전 코드
        endpoint_type: ``"Interface"`` 또는 ``"Gateway"``
        az_count: Endpoint ENI가 배치된 AZ 수 (최소 1)
        hours: 월간 가동 시간 (기본: 730)
        data_processed_gb: 월간 처리 데이터량 (GB)

    Returns:
        월간 USD 비용 (소수점 2자리 반올림)
    """
    if endpoint_type.lower() == "gateway":
        return 0.0

    hourly = get_endpoint_hourly_price(region, endpoint_type)
    data_price = get_endpoint_data_price(region, endpoint_type)

    fixed_cost = hourly * max(az_count, 1) * hours
    data_cost = data_price * data_processed_gb

    return round(fixed_cost + data_cost, 2)
