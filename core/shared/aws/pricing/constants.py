"""
core/shared/aws/pricing/constants.py - 가격 모듈 중앙 상수 및 기본값

NAT Gateway, VPC Endpoint, CloudWatch Logs의 정적 가격표를 관리한다.
진단 결과는 항상 추정치이며 실시간 Pricing API는 사용하지 않는다.

상수:
    - ``HOURS_PER_MONTH``: 월간 시간 (730h = 365일 * 24h / 12개월)
    - ``MINUTES_PER_MONTH``: 트래픽 외삽용 월간 분 (30일 고정 = 43,200분)
    - ``REGIONAL_PRICES``: 리전별 가격 덮어쓰기
    - ``DEFAULT_PRICES``: 리전 정보가 없을 때 사용하는 기본 가격
"""

from __future__ import annotations

# 월간 시간 상수
HOURS_PER_MONTH = 730

# 샘플 트래픽 외삽 기준 (30일)
MINUTES_PER_MONTH = 30 * 24 * 60

BYTES_PER_GB = 1024**3

# ============================================================================
# 기본 가격 (us-east-1 기준)
# ============================================================================

DEFAULT_PRICES: dict[str, dict[str, float]] = {
    # NAT Gateway
    "nat": {
        "hourly": 0.045,
        "data_per_gb": 0.045,
    },
    # VPC Endpoint
    "vpc_endpoint": {
        "interface_hourly": 0.01,
        "gateway_hourly": 0.0,
        "data_per_gb": 0.01,
    },
    # CloudWatch Logs
    "cloudwatch": {
        "storage_per_gb_monthly": 0.03,
        "ingestion_per_gb": 0.50,
    },
}

# ============================================================================
# 리전별 가격 (DEFAULT_PRICES와 다른 값만 기재)
# ============================================================================

REGIONAL_PRICES: dict[str, dict[str, dict[str, float]]] = {
    "nat": {
        "us-west-1": {"hourly": 0.048, "data_per_gb": 0.048},
        "ca-central-1": {"hourly": 0.05, "data_per_gb": 0.05},
        "eu-west-1": {"hourly": 0.048, "data_per_gb": 0.048},
        "eu-west-2": {"hourly": 0.05, "data_per_gb": 0.05},
        "eu-central-1": {"hourly": 0.052, "data_per_gb": 0.052},
        "ap-south-1": {"hourly": 0.056, "data_per_gb": 0.056},
        "ap-northeast-1": {"hourly": 0.062, "data_per_gb": 0.062},
        "ap-northeast-2": {"hourly": 0.059, "data_per_gb": 0.059},
        "ap-southeast-1": {"hourly": 0.059, "data_per_gb": 0.059},
        "ap-southeast-2": {"hourly": 0.059, "data_per_gb": 0.059},
        "sa-east-1": {"hourly": 0.093, "data_per_gb": 0.093},
    },
    "vpc_endpoint": {
        "ap-northeast-1": {"interface_hourly": 0.014},
        "ap-northeast-2": {"interface_hourly": 0.013},
        "ap-southeast-1": {"interface_hourly": 0.013},
        "ap-southeast-2": {"interface_hourly": 0.014},
        "sa-east-1": {"interface_hourly": 0.0175},
    },
    "cloudwatch": {
        "ap-northeast-1": {"ingestion_per_gb": 0.76},
        "ap-northeast-2": {"ingestion_per_gb": 0.70},
        "ap-southeast-1": {"ingestion_per_gb": 0.70},
        "eu-central-1": {"ingestion_per_gb": 0.63},
        "sa-east-1": {"ingestion_per_gb": 0.90},
    },
}


def get_default_prices(service: str) -> dict[str, float]:
    """서비스별 기본 가격 딕셔너리의 복사본을 반환한다.

    Args:
        service: ``"nat"``, ``"vpc_endpoint"``, ``"cloudwatch"``

    Returns:
        기본 가격 딕셔너리의 shallow copy. 등록되지 않은 서비스이면 빈 딕셔너리.
    """
    return DEFAULT_PRICES.get(service, {}).copy()


def get_regional_prices(service: str, region: str) -> dict[str, float]:
    """기본 가격 위에 리전별 가격을 덮어쓴 딕셔너리를 반환한다.

    알 수 없는 리전이면 기본 가격을 그대로 반환한다.
    """
    prices = get_default_prices(service)
    prices.update(REGIONAL_PRICES.get(service, {}).get(region, {}))
    return prices
