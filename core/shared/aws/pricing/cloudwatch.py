"""
core/shared/aws/pricing/cloudwatch.py - CloudWatch Logs 가격 조회

비용 구조:
    - Ingestion: ~$0.50/GB (리전별 상이)
    - Storage: ~$0.03/GB/월

사용법:
    from core.shared.aws.pricing.cloudwatch import get_cloudwatch_ingestion_price

    per_gb = get_cloudwatch_ingestion_price("us-east-1")
"""

from __future__ import annotations

from .constants import get_regional_prices


def get_cloudwatch_prices(region: str) -> dict[str, float]:
    """CloudWatch Logs 가격 딕셔너리 (``storage_per_gb_monthly``, ``ingestion_per_gb``)"""
    return get_regional_prices("cloudwatch", region)


def get_cloudwatch_ingestion_price(region: str) -> float:
    """CloudWatch Logs 수집 GB당 USD (기본값: ``0.50``)"""
    return get_cloudwatch_prices(region)["ingestion_per_gb"]


def get_cloudwatch_storage_price(region: str) -> float:
    """CloudWatch Logs 저장 GB당 월간 USD (기본값: ``0.03``)"""
    return get_cloudwatch_prices(region)["storage_per_gb_monthly"]
