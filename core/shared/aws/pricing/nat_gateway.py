"""
core/shared/aws/pricing/nat_gateway.py - NAT Gateway 가격 조회

비용 구조:
    - 데이터 처리 비용: ~$0.045/GB (리전별 상이)

사용법:
    from core.shared.aws.pricing.nat_gateway import get_nat_data_price

    rate = get_nat_data_price("ap-northeast-2")
"""

from __future__ import annotations

from .constants import get_regional_prices


def get_nat_prices(region: str) -> dict[str, float]:
    """NAT Gateway 가격 딕셔너리 (``hourly``, ``data_per_gb``)"""
    return get_regional_prices("nat", region)


def get_nat_data_price(region: str) -> float:
    """NAT Gateway 데이터 처리 GB당 USD. 알 수 없는 리전은 기본값(0.045)."""
    return get_nat_prices(region)["data_per_gb"]
