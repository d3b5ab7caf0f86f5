"""
NAT Gateway 구성 권장 사항

- regional-nat-gateway: VPC에 zonal NAT Gateway가 2개 이상이고 regional이 없을 때
- vpc-endpoint: Endpoint 누락/연결 누락이 있을 때 (절감액은 비용 추정이 있으면 포함)
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from typing import Any

from .cost import CostEstimate
from .endpoints import EndpointAnalysis
from .models import NATGateway


@dataclass(frozen=True)
class Recommendation:
    """권장 사항"""

    type: str
    priority: str
    title: str
    description: str
    benefits: tuple[str, ...] = ()
    commands: tuple[str, ...] = ()
    savings: str = ""
    vpc_id: str = ""
    monthly_savings: float | None = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "priority": self.priority,
            "title": self.title,
            "description": self.description,
            "benefits": list(self.benefits),
            "commands": list(self.commands),
            "savings": self.savings,
            "vpc_id": self.vpc_id,
        }


def recommend_nat_setup(nat_gateways: list[NATGateway]) -> list[Recommendation]:
    """VPC별 NAT Gateway 구성을 보고 regional NAT 전환을 권장한다."""
    by_vpc: dict[str, list[NATGateway]] = {}
    for nat in nat_gateways:
        by_vpc.setdefault(nat.vpc_id, []).append(nat)

    recommendations = []
    for vpc_id in sorted(by_vpc):
        nats = by_vpc[vpc_id]
        regional_count = sum(1 for nat in nats if nat.is_regional)
        zonal_count = len(nats) - regional_count
        if zonal_count < 2 or regional_count:
            continue

        recommendations.append(
            Recommendation(
                type="regional-nat-gateway",
                priority="high",
                title=f"VPC {vpc_id}: Regional NAT Gateway 전환 검토",
                description=(
                    f"이 VPC에는 zonal NAT Gateway가 {zonal_count}개 있습니다. Regional NAT Gateway는 "
                    "모든 가용 영역에 자동으로 확장되는 단일 리소스로 여러 zonal NAT Gateway를 대체할 수 있습니다."
                ),
                benefits=(
                    "NAT Gateway 리소스 하나로 관리 단순화",
                    "퍼블릭 서브넷 불필요",
                    "새 가용 영역으로 자동 확장",
                    "올바르게 구성하면 AZ 간 데이터 전송 비용($0.01/GB) 제거",
                    "모든 AZ에 걸친 고가용성",
                ),
                commands=(
                    f"# VPC {vpc_id}에 Regional NAT Gateway 생성",
                    "aws ec2 create-nat-gateway \\",
                    f"  --vpc-id {shlex.quote(vpc_id)} \\",
                    "  --availability-mode regional \\",
                    "  --connectivity-type public",
                    "",
                    "# 생성 후:",
                    "# 1. Route Table이 새 Regional NAT Gateway를 가리키도록 변경",
                    "# 2. 모든 AZ에서 연결 테스트",
                    "# 3. 기존 zonal NAT Gateway 삭제",
                ),
                savings="AZ 간 데이터 전송 비용($0.01/GB) 제거 및 운영 단순화",
                vpc_id=vpc_id,
            )
        )
    return recommendations


def recommend_endpoints(
    analyses: dict[str, EndpointAnalysis],
    cost: CostEstimate | None = None,
) -> list[Recommendation]:
    """Endpoint 구성 문제를 VPC별 실행 명령과 함께 권장 사항으로 만든다."""
    recommendations = []
    for vpc_id in sorted(analyses):
        analysis = analyses[vpc_id]
        if not analysis.has_issues:
            continue

        services = sorted(
            {m.service for m in analysis.missing_endpoints} | {m.service for m in analysis.missing_associations}
        )
        monthly_savings = None
        savings = "Gateway Endpoint는 시간당/데이터 처리 비용이 없습니다"
        if cost is not None:
            monthly_savings = sum(cost.savings_for(service) for service in services)
            savings = f"월 ${monthly_savings:,.2f} 추정 절감 (연 ${monthly_savings * 12:,.2f})"

        recommendations.append(
            Recommendation(
                type="vpc-endpoint",
                priority="high",
                title=f"VPC {vpc_id}: {', '.join(s.upper() for s in services)} Gateway Endpoint 구성",
                description=(
                    f"누락된 Endpoint {len(analysis.missing_endpoints)}개, "
                    f"누락된 Route Table 연결 {len(analysis.missing_associations)}개"
                ),
                benefits=(
                    "S3/DynamoDB 트래픽의 NAT 데이터 처리 비용 제거",
                    "AWS 네트워크 내부 경로 사용",
                ),
                commands=tuple(analysis.create_endpoint_commands() + analysis.add_route_commands()),
                savings=savings,
                vpc_id=vpc_id,
                monthly_savings=monthly_savings,
            )
        )
    return recommendations
