"""
core/shared/aws/pricing - 정적 가격표 기반 비용 계산

모듈 구성:
    - constants: 기본 가격 및 리전별 가격표
    - nat_gateway: NAT Gateway 시간당/데이터 처리 가격
    - vpc_endpoint: VPC Endpoint (Interface/Gateway) 가격
    - cloudwatch: CloudWatch Logs 수집/저장 가격

사용법:
    from core.shared.aws.pricing import get_nat_data_price, get_endpoint_monthly_cost

    rate = get_nat_data_price("ap-northeast-2")
    monthly = get_endpoint_monthly_cost("ap-northeast-2", az_count=2)
"""

from .cloudwatch import get_cloudwatch_ingestion_price, get_cloudwatch_storage_price
from .constants import BYTES_PER_GB, HOURS_PER_MONTH, MINUTES_PER_MONTH, get_regional_prices
from .nat_gateway import get_nat_data_price
from .vpc_endpoint import (
    get_endpoint_data_price,
    get_endpoint_hourly_price,
    get_endpoint_monthly_cost,
)

__all__ = [
    "BYTES_PER_GB",
    "HOURS_PER_MONTH",
    "MINUTES_PER_MONTH",
    "get_regional_prices",
    "get_nat_data_price",
    "get_endpoint_hourly_price",
    "get_endpoint_data_price",
    "get_endpoint_monthly_cost",
    "get_cloudwatch_ingestion_price",
    "get_cloudwatch_storage_price",
]
