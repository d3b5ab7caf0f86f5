"""
analyzers/vpc/nat_traffic - NAT Gateway 트래픽 진단 패키지

NAT Gateway를 지나는 트래픽을 임시 VPC Flow Log로 수집하여 AWS 서비스별로
분류하고, Gateway Endpoint로 절감 가능한 데이터 처리 비용을 추정합니다.

구성 요소:
    - TopologyCollector: NAT Gateway / VPC Endpoint / Route Table 조회
    - FlowLogManager: 임시 Flow Log 및 로그 그룹 수명 관리
    - TrafficAnalyzer: Logs Insights 집계 + AWS IP 대역 분류
    - ScanOrchestrator: 진단 상태 머신 (생성 -> 수집 -> 분석 -> 정리)
    - run_quick_scan: 리소스 생성 없는 구성 진단
"""

from .classifier import AddressClassifier
from .collector import TopologyCollector
from .cost import CostEstimate, FlowLogsCostEstimate, estimate_flow_logs_cost, project_costs
from .endpoints import EndpointAnalysis, Finding, analyze_all_vpcs, analyze_endpoints
from .flow_logs import FlowLogManager, LogGroupStats
from .logs_query import LogsInsightsClient
from .models import (
    AvailabilityMode,
    FlowRecord,
    NATGateway,
    ProgressEvent,
    RouteTable,
    ScanPhase,
    TrafficService,
    VPCEndpoint,
)
from .orchestrator import (
    DeepScanResult,
    HeadlessInteraction,
    QuickScanResult,
    ScanClients,
    ScanInteraction,
    ScanOptions,
    ScanOrchestrator,
    ScanPlan,
    run_quick_scan,
)
from .recommendations import Recommendation, recommend_endpoints, recommend_nat_setup
from .traffic import TrafficAnalyzer, TrafficStats

__all__: list[str] = [
    # Models
    "AvailabilityMode",
    "FlowRecord",
    "NATGateway",
    "ProgressEvent",
    "RouteTable",
    "ScanPhase",
    "TrafficService",
    "VPCEndpoint",
    # Components
    "AddressClassifier",
    "TopologyCollector",
    "FlowLogManager",
    "LogGroupStats",
    "LogsInsightsClient",
    "TrafficAnalyzer",
    "TrafficStats",
    # Cost
    "CostEstimate",
    "FlowLogsCostEstimate",
    "estimate_flow_logs_cost",
    "project_costs",
    # Endpoints
    "EndpointAnalysis",
    "Finding",
    "analyze_all_vpcs",
    "analyze_endpoints",
    "Recommendation",
    "recommend_endpoints",
    "recommend_nat_setup",
    # Orchestration
    "DeepScanResult",
    "HeadlessInteraction",
    "QuickScanResult",
    "ScanClients",
    "ScanInteraction",
    "ScanOptions",
    "ScanOrchestrator",
    "ScanPlan",
    "run_quick_scan",
]
