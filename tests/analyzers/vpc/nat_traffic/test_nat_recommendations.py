"""
tests/analyzers/vpc/nat_traffic/test_nat_recommendations.py - 권장 사항 테스트
"""

import pytest

from analyzers.vpc.nat_traffic.cost import project_costs
from analyzers.vpc.nat_traffic.endpoints import analyze_endpoints
from analyzers.vpc.nat_traffic.models import Route, RouteTable, TrafficService
from analyzers.vpc.nat_traffic.recommendations import recommend_endpoints, recommend_nat_setup
from analyzers.vpc.nat_traffic.traffic import TrafficStatsBuilder

GIB = 1024**3


def _nat_route_table(vpc_id: str) -> RouteTable:
    return RouteTable(
        route_table_id=f"rtb-{vpc_id}",
        vpc_id=vpc_id,
        routes=(Route("0.0.0.0/0", "nat-0aaa", "nat-gateway"),),
    )


class TestRecommendNatSetup:
    """Regional NAT Gateway 권장"""

    def test_multiple_zonal(self, nat_factory):
        nats = [nat_factory("nat-a", "vpc-1"), nat_factory("nat-b", "vpc-1"), nat_factory("nat-c", "vpc-2")]

        recommendations = recommend_nat_setup(nats)

        assert len(recommendations) == 1
        rec = recommendations[0]
        assert rec.type == "regional-nat-gateway"
        assert rec.vpc_id == "vpc-1"
        assert "  --vpc-id vpc-1 \\" in rec.commands
        assert "  --availability-mode regional \\" in rec.commands

    def test_regional_already_present(self, nat_factory):
        nats = [nat_factory("nat-a"), nat_factory("nat-b"), nat_factory("nat-r", regional=True)]
        assert recommend_nat_setup(nats) == []

    def test_single_zonal(self, nat_factory):
        assert recommend_nat_setup([nat_factory()]) == []


class TestRecommendEndpoints:
    """Endpoint 권장"""

    def test_without_cost(self):
        analyses = {"vpc-1": analyze_endpoints("us-east-1", "vpc-1", [], [_nat_route_table("vpc-1")])}

        recommendations = recommend_endpoints(analyses)

        assert len(recommendations) == 1
        rec = recommendations[0]
        assert rec.type == "vpc-endpoint"
        assert rec.monthly_savings is None
        assert rec.title == "VPC vpc-1: DYNAMODB, S3 Gateway Endpoint 구성"
        assert len(rec.commands) == 2

    def test_with_cost(self):
        builder = TrafficStatsBuilder()
        builder.add(TrafficService.S3, GIB)
        builder.add(TrafficService.DYNAMODB, GIB)
        cost = project_costs(builder.build("aggregated"), sample_minutes=5, region="us-east-1")
        analyses = {"vpc-1": analyze_endpoints("us-east-1", "vpc-1", [], [_nat_route_table("vpc-1")])}

        rec = recommend_endpoints(analyses, cost)[0]

        assert rec.monthly_savings == pytest.approx(2 * 388.8)
        assert rec.savings == "월 $777.60 추정 절감 (연 $9,331.20)"

    def test_skips_healthy_vpcs(self):
        analyses = {"vpc-1": analyze_endpoints("us-east-1", "vpc-1", [], [])}
        assert recommend_endpoints(analyses) == []

    def test_to_dict(self):
        analyses = {"vpc-1": analyze_endpoints("us-east-1", "vpc-1", [], [_nat_route_table("vpc-1")])}
        data = recommend_endpoints(analyses)[0].to_dict()

        assert data["vpc_id"] == "vpc-1"
        assert isinstance(data["commands"], list)
