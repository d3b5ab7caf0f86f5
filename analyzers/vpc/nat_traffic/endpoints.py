"""
VPC Endpoint 구성 분석

NAT Gateway로 기본 라우트가 향하는 Route Table을 기준으로 S3/DynamoDB
Gateway Endpoint 누락과 Route Table 연결 누락을 찾는다. 라우팅 변경은 하지 않고
AWS CLI 명령만 제안한다.

- Gateway Endpoint 없음 -> MissingEndpoint
- Gateway Endpoint는 있으나 NAT 라우트 테이블이 연결되지 않음 -> MissingAssociation
- Interface Endpoint는 서브넷 수(AZ 수, 모르면 1)로 월 고정 비용을 계산

NAT 기본 라우트를 가진 Route Table이 없는 VPC에서는 결과가 비어 있다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from core.config import settings
from core.shared.aws.pricing import get_endpoint_hourly_price, get_endpoint_monthly_cost

from .collector import TopologyCollector
from .models import NATGateway, RouteTable, VPCEndpoint

logger = logging.getLogger(__name__)

SEVERITY_HIGH = "high"


@dataclass(frozen=True)
class MissingEndpoint:
    """Gateway Endpoint 누락"""

    service: str
    service_name: str
    route_table_ids: tuple[str, ...]


@dataclass(frozen=True)
class MissingAssociation:
    """Gateway Endpoint - NAT Route Table 연결 누락"""

    service: str
    endpoint_id: str
    route_table_id: str
    route_table_name: str = ""
    subnet_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class InterfaceEndpointCost:
    """Interface Endpoint 월간 고정 비용"""

    endpoint_id: str
    service: str
    az_count: int
    hourly_cost: float
    monthly_cost: float


@dataclass(frozen=True)
class Finding:
    """보고용 구성 문제"""

    type: str
    severity: str
    title: str
    description: str
    vpc_id: str
    service: str
    action: str
    impact: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "title": self.title,
            "description": self.description,
            "vpc_id": self.vpc_id,
            "service": self.service,
            "action": self.action,
            "impact": self.impact,
        }


def service_name_for(region: str, service: str) -> str:
    return f"com.amazonaws.{region}.{service}"


@dataclass(frozen=True)
class EndpointAnalysis:
    """VPC 하나의 Endpoint 구성 분석 결과 (불변)"""

    vpc_id: str
    region: str
    gateway_endpoints: dict[str, VPCEndpoint] = field(default_factory=dict)
    interface_endpoints: tuple[VPCEndpoint, ...] = ()
    nat_route_tables: tuple[RouteTable, ...] = ()
    missing_endpoints: tuple[MissingEndpoint, ...] = ()
    missing_associations: tuple[MissingAssociation, ...] = ()
    interface_costs: tuple[InterfaceEndpointCost, ...] = ()

    @property
    def has_issues(self) -> bool:
        return bool(self.missing_endpoints or self.missing_associations)

    @property
    def interface_monthly_cost(self) -> float:
        return sum(c.monthly_cost for c in self.interface_costs)

    def create_endpoint_commands(self) -> list[str]:
        """누락된 Gateway Endpoint 생성 명령"""
        return [
            f"aws ec2 create-vpc-endpoint --region {self.region} --vpc-id {self.vpc_id}"
            f" --vpc-endpoint-type Gateway --service-name {missing.service_name}"
            f" --route-table-ids {' '.join(missing.route_table_ids)}"
            for missing in self.missing_endpoints
        ]

    def add_route_commands(self) -> list[str]:
        """누락된 Route Table 연결 명령 (Endpoint별로 묶음)"""
        grouped: dict[str, list[str]] = {}
        for missing in self.missing_associations:
            grouped.setdefault(missing.endpoint_id, []).append(missing.route_table_id)
        return [
            f"aws ec2 modify-vpc-endpoint --region {self.region} --vpc-endpoint-id {endpoint_id}"
            f" --add-route-table-ids {' '.join(route_table_ids)}"
            for endpoint_id, route_table_ids in grouped.items()
        ]

    def to_findings(self) -> list[Finding]:
        findings = []
        for missing in self.missing_endpoints:
            label = missing.service.upper() if missing.service == "s3" else missing.service.capitalize()
            findings.append(
                Finding(
                    type="missing-endpoint",
                    severity=SEVERITY_HIGH,
                    title=f"{label} Gateway Endpoint 없음",
                    description=(
                        f"VPC {self.vpc_id}에 {label} Gateway Endpoint가 없어 "
                        f"{label} 트래픽이 NAT Gateway를 통해 처리됩니다"
                    ),
                    vpc_id=self.vpc_id,
                    service=missing.service,
                    action=f"{label} Gateway Endpoint 생성 (무료)",
                    impact=f"{label} 트래픽의 NAT 데이터 처리 비용 제거",
                )
            )
        for missing in self.missing_associations:
            label = missing.service.upper() if missing.service == "s3" else missing.service.capitalize()
            rt = missing.route_table_id
            if missing.route_table_name:
                rt = f"{rt} ({missing.route_table_name})"
            findings.append(
                Finding(
                    type="missing-association",
                    severity=SEVERITY_HIGH,
                    title=f"{label} Endpoint가 Route Table {missing.route_table_id}에 연결되지 않음",
                    description=(
                        f"Route Table {rt}의 서브넷 {len(missing.subnet_ids)}개는 "
                        f"{label} 트래픽을 NAT Gateway로 보냅니다"
                    ),
                    vpc_id=self.vpc_id,
                    service=missing.service,
                    action=f"{missing.endpoint_id}에 Route Table {missing.route_table_id} 추가",
                    impact="해당 서브넷의 NAT 데이터 처리 비용 제거",
                )
            )
        return findings

    def to_dict(self) -> dict[str, Any]:
        return {
            "vpc_id": self.vpc_id,
            "region": self.region,
            "gateway_endpoints": {svc: ep.endpoint_id for svc, ep in self.gateway_endpoints.items()},
            "nat_route_tables": [rt.route_table_id for rt in self.nat_route_tables],
            "missing_endpoints": [
                {"service": m.service, "service_name": m.service_name, "route_table_ids": list(m.route_table_ids)}
                for m in self.missing_endpoints
            ],
            "missing_associations": [
                {"service": m.service, "endpoint_id": m.endpoint_id, "route_table_id": m.route_table_id}
                for m in self.missing_associations
            ],
            "interface_endpoints": [
                {
                    "endpoint_id": c.endpoint_id,
                    "service": c.service,
                    "az_count": c.az_count,
                    "monthly_cost": round(c.monthly_cost, 2),
                }
                for c in self.interface_costs
            ],
        }


def analyze_endpoints(
    region: str,
    vpc_id: str,
    endpoints: list[VPCEndpoint],
    route_tables: list[RouteTable],
    services: tuple[str, ...] = settings.SERVICES_OF_INTEREST,
) -> EndpointAnalysis:
    """VPC의 Endpoint/Route Table 구성을 분석한다 (순수 함수)."""
    nat_route_tables = tuple(
        sorted((rt for rt in route_tables if rt.routes_through_nat), key=lambda rt: rt.route_table_id)
    )

    gateway_endpoints: dict[str, VPCEndpoint] = {}
    for ep in sorted(endpoints, key=lambda e: e.endpoint_id):
        if ep.is_gateway and ep.service in services and ep.service not in gateway_endpoints:
            gateway_endpoints[ep.service] = ep

    interface_endpoints = tuple(sorted((ep for ep in endpoints if ep.is_interface), key=lambda e: e.endpoint_id))
    interface_costs = tuple(_interface_cost(region, ep) for ep in interface_endpoints)

    missing_endpoints: list[MissingEndpoint] = []
    missing_associations: list[MissingAssociation] = []

    if nat_route_tables:
        nat_rt_ids = tuple(rt.route_table_id for rt in nat_route_tables)
        for service in services:
            endpoint = gateway_endpoints.get(service)
            if endpoint is None:
                missing_endpoints.append(
                    MissingEndpoint(
                        service=service,
                        service_name=service_name_for(region, service),
                        route_table_ids=nat_rt_ids,
                    )
                )
                continue
            for rt in nat_route_tables:
                if rt.route_table_id not in endpoint.route_table_ids:
                    missing_associations.append(
                        MissingAssociation(
                            service=service,
                            endpoint_id=endpoint.endpoint_id,
                            route_table_id=rt.route_table_id,
                            route_table_name=rt.name,
                            subnet_ids=rt.subnet_ids,
                        )
                    )

    return EndpointAnalysis(
        vpc_id=vpc_id,
        region=region,
        gateway_endpoints=gateway_endpoints,
        interface_endpoints=interface_endpoints,
        nat_route_tables=nat_route_tables,
        missing_endpoints=tuple(missing_endpoints),
        missing_associations=tuple(missing_associations),
        interface_costs=interface_costs,
    )


def _interface_cost(region: str, endpoint: VPCEndpoint) -> InterfaceEndpointCost:
    # 서브넷 정보가 없으면 AZ 1개로 계산
    az_count = len(endpoint.subnet_ids) or 1
    return InterfaceEndpointCost(
        endpoint_id=endpoint.endpoint_id,
        service=endpoint.service,
        az_count=az_count,
        hourly_cost=get_endpoint_hourly_price(region) * az_count,
        monthly_cost=get_endpoint_monthly_cost(region, "Interface", az_count=az_count),
    )


def analyze_all_vpcs(
    collector: TopologyCollector,
    region: str,
    nat_gateways: list[NATGateway],
) -> dict[str, EndpointAnalysis]:
    """NAT Gateway가 있는 모든 VPC를 분석한다 (VPC ID 정렬)."""
    results: dict[str, EndpointAnalysis] = {}
    for vpc_id in sorted({nat.vpc_id for nat in nat_gateways if nat.vpc_id}):
        endpoints = collector.discover_vpc_endpoints(vpc_id)
        route_tables = collector.discover_route_tables(vpc_id)
        analysis = analyze_endpoints(region, vpc_id, endpoints, route_tables)
        logger.info(
            "VPC %s: 누락 Endpoint %d, 누락 연결 %d",
            vpc_id,
            len(analysis.missing_endpoints),
            len(analysis.missing_associations),
        )
        results[vpc_id] = analysis
    return results
