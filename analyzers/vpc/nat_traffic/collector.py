"""
NAT Gateway 토폴로지 수집기

수집 항목:
- NAT Gateway 목록 (VPC, Subnet, 가용성 모드, ENI)
- VPC Endpoint 목록 (Gateway/Interface, 연결된 Route Table/Subnet)
- Route Table 목록 (라우트, 서브넷 연결)

모든 조회는 페이지네이터를 사용하며 결과는 호출마다 새로 만든 불변 객체다.
"""

from __future__ import annotations

import logging

from botocore.exceptions import BotoCoreError, ClientError

from core.exceptions import APICallError

from .models import AvailabilityMode, NATGateway, Route, RouteTable, VPCEndpoint, parse_tags

logger = logging.getLogger(__name__)

# 분석 대상에서 제외할 NAT Gateway 상태
INACTIVE_NAT_STATES = ("deleted", "deleting", "failed")

# Route 대상 키 -> 대상 유형
ROUTE_TARGET_KEYS = (
    ("NatGatewayId", "nat-gateway"),
    ("GatewayId", "gateway"),
    ("TransitGatewayId", "transit-gateway"),
    ("VpcPeeringConnectionId", "vpc-peering"),
    ("NetworkInterfaceId", "network-interface"),
    ("InstanceId", "instance"),
    ("EgressOnlyInternetGatewayId", "egress-only-igw"),
    ("VpcEndpointId", "vpc-endpoint"),
)


class TopologyCollector:
    """EC2 API로 NAT Gateway / VPC Endpoint / Route Table을 조회한다.

    Args:
        ec2: boto3 EC2 client
    """

    def __init__(self, ec2):
        self.ec2 = ec2

    def discover_nat_gateways(self, vpc_id: str | None = None) -> list[NATGateway]:
        """활성 NAT Gateway 목록

        ``deleted``, ``deleting``, ``failed`` 상태는 제외한다.

        Args:
            vpc_id: 특정 VPC로 제한 (None이면 리전 전체)
        """
        kwargs = {}
        if vpc_id:
            kwargs["Filters"] = [{"Name": "vpc-id", "Values": [vpc_id]}]

        nat_gateways = []
        for nat_data in self._paginate("describe_nat_gateways", "NatGateways", **kwargs):
            state = nat_data.get("State", "")
            if state in INACTIVE_NAT_STATES:
                continue
            nat_gateways.append(self._parse_nat_gateway(nat_data))

        logger.info("NAT Gateway %d개 발견", len(nat_gateways))
        return nat_gateways

    def discover_vpc_endpoints(self, vpc_id: str) -> list[VPCEndpoint]:
        """VPC의 Endpoint 목록"""
        endpoints = []
        for ep in self._paginate(
            "describe_vpc_endpoints",
            "VpcEndpoints",
            Filters=[{"Name": "vpc-id", "Values": [vpc_id]}],
        ):
            endpoints.append(
                VPCEndpoint(
                    endpoint_id=ep.get("VpcEndpointId", ""),
                    vpc_id=ep.get("VpcId", vpc_id),
                    service_name=ep.get("ServiceName", ""),
                    endpoint_type=ep.get("VpcEndpointType", ""),
                    state=ep.get("State", ""),
                    route_table_ids=tuple(ep.get("RouteTableIds", [])),
                    subnet_ids=tuple(ep.get("SubnetIds", [])),
                    private_dns_enabled=bool(ep.get("PrivateDnsEnabled", False)),
                    tags=parse_tags(ep.get("Tags")),
                )
            )
        return endpoints

    def discover_route_tables(self, vpc_id: str) -> list[RouteTable]:
        """VPC의 Route Table 목록"""
        route_tables = []
        for rt in self._paginate(
            "describe_route_tables",
            "RouteTables",
            Filters=[{"Name": "vpc-id", "Values": [vpc_id]}],
        ):
            associations = rt.get("Associations", [])
            route_tables.append(
                RouteTable(
                    route_table_id=rt.get("RouteTableId", ""),
                    vpc_id=rt.get("VpcId", vpc_id),
                    routes=tuple(self._parse_route(r) for r in rt.get("Routes", [])),
                    subnet_ids=tuple(a["SubnetId"] for a in associations if a.get("SubnetId")),
                    is_main=any(a.get("Main", False) for a in associations),
                    tags=parse_tags(rt.get("Tags")),
                )
            )
        return route_tables

    def _parse_nat_gateway(self, nat_data: dict) -> NATGateway:
        addresses = nat_data.get("NatGatewayAddresses", [])

        mode_value = (nat_data.get("AvailabilityMode") or "").lower()
        if mode_value in (AvailabilityMode.ZONAL.value, AvailabilityMode.REGIONAL.value):
            mode = AvailabilityMode(mode_value)
        else:
            # AvailabilityMode 필드가 없는 응답: 주소가 여러 개면 regional
            mode = AvailabilityMode.REGIONAL if len(addresses) > 1 else AvailabilityMode.ZONAL

        return NATGateway(
            nat_gateway_id=nat_data.get("NatGatewayId", ""),
            vpc_id=nat_data.get("VpcId", ""),
            subnet_id=nat_data.get("SubnetId", ""),
            state=nat_data.get("State", ""),
            availability_mode=mode,
            network_interface_id=addresses[0].get("NetworkInterfaceId", "") if addresses else "",
            connectivity_type=nat_data.get("ConnectivityType", "public"),
            public_ips=tuple(a["PublicIp"] for a in addresses if a.get("PublicIp")),
            tags=parse_tags(nat_data.get("Tags")),
        )

    @staticmethod
    def _parse_route(route: dict) -> Route:
        destination = route.get("DestinationCidrBlock") or route.get("DestinationIpv6CidrBlock") or ""
        if not destination and route.get("DestinationPrefixListId"):
            destination = route["DestinationPrefixListId"]
        for key, target_type in ROUTE_TARGET_KEYS:
            if route.get(key):
                return Route(destination=destination, target_id=route[key], target_type=target_type)
        return Route(destination=destination, target_id="", target_type="unknown")

    def _paginate(self, operation: str, result_key: str, **kwargs):
        try:
            paginator = self.ec2.get_paginator(operation)
            for page in paginator.paginate(**kwargs):
                yield from page.get(result_key, [])
        except (ClientError, BotoCoreError) as e:
            raise APICallError.from_client_error("ec2", operation, e) from e
