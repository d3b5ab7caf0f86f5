"""
tests/core/shared/aws/test_pricing_tables.py - 정적 가격표 테스트

Test Coverage:
    - constants.py: 기본 가격, 리전별 덮어쓰기
    - nat_gateway.py: 데이터 처리 단가
    - vpc_endpoint.py: Interface/Gateway 가격
    - cloudwatch.py: Logs 수집/저장 단가
"""

import pytest

from core.shared.aws.pricing import (
    BYTES_PER_GB,
    HOURS_PER_MONTH,
    MINUTES_PER_MONTH,
    get_cloudwatch_ingestion_price,
    get_cloudwatch_storage_price,
    get_endpoint_data_price,
    get_endpoint_hourly_price,
    get_endpoint_monthly_cost,
    get_nat_data_price,
    get_regional_prices,
)
from core.shared.aws.pricing.constants import DEFAULT_PRICES


class TestConstants:
    """상수 테스트"""

    def test_month_constants(self):
        assert HOURS_PER_MONTH == 730
        assert MINUTES_PER_MONTH == 43200
        assert BYTES_PER_GB == 1073741824

    def test_regional_override(self):
        prices = get_regional_prices("nat", "ap-northeast-2")
        assert prices["data_per_gb"] == 0.059

    def test_unknown_region_uses_default(self):
        assert get_regional_prices("nat", "mars-east-1") == DEFAULT_PRICES["nat"]

    def test_returns_copy(self):
        prices = get_regional_prices("nat", "us-east-1")
        prices["data_per_gb"] = 999
        assert DEFAULT_PRICES["nat"]["data_per_gb"] == 0.045

    def test_unknown_service(self):
        assert get_regional_prices("unknown", "us-east-1") == {}


class TestNATPricing:
    """NAT Gateway 가격 테스트"""

    def test_us_east_1(self):
        assert get_nat_data_price("us-east-1") == 0.045

    def test_unknown_region_default(self):
        assert get_nat_data_price("xx-unknown-1") == 0.045


class TestEndpointPricing:
    """VPC Endpoint 가격 테스트"""

    def test_gateway_is_free(self):
        assert get_endpoint_hourly_price("us-east-1", "Gateway") == 0.0
        assert get_endpoint_data_price("us-east-1", "Gateway") == 0.0
        assert get_endpoint_monthly_cost("us-east-1", "Gateway", az_count=3) == 0.0

    def test_interface_monthly_cost(self):
        assert get_endpoint_monthly_cost("us-east-1", "Interface", az_count=2) == pytest.approx(14.6)

    def test_interface_zero_az_counts_as_one(self):
        assert get_endpoint_monthly_cost("us-east-1", az_count=0) == pytest.approx(7.3)

    def test_interface_regional(self):
        assert get_endpoint_hourly_price("ap-northeast-2") == 0.013

    def test_interface_with_data(self):
        cost = get_endpoint_monthly_cost("us-east-1", az_count=1, data_processed_gb=100)
        assert cost == pytest.approx(7.3 + 1.0)


class TestCloudWatchPricing:
    """CloudWatch Logs 가격 테스트"""

    def test_ingestion_default(self):
        assert get_cloudwatch_ingestion_price("us-east-1") == 0.50

    def test_ingestion_regional(self):
        assert get_cloudwatch_ingestion_price("ap-northeast-2") == 0.70

    def test_storage(self):
        assert get_cloudwatch_storage_price("us-east-1") == 0.03
