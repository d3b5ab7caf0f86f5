"""
NAT Gateway 트래픽 진단 데이터 모델

토폴로지(NAT Gateway, VPC Endpoint, Route Table), Flow Log 레코드,
트래픽 통계, 진행 이벤트를 정의한다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AvailabilityMode(str, Enum):
    """NAT Gateway 가용성 모드"""

    ZONAL = "zonal"
    REGIONAL = "regional"


class TrafficService(str, Enum):
    """트래픽 분류 서비스 태그"""

    S3 = "s3"
    DYNAMODB = "dynamodb"
    ECR = "ecr"
    OTHER = "other"


# Gateway Endpoint로 대체 가능한 서비스
GATEWAY_ENDPOINT_SERVICES = (TrafficService.S3, TrafficService.DYNAMODB)


class ScanPhase(str, Enum):
    """진단 오케스트레이터 상태"""

    INIT = "INIT"
    DISCOVER = "DISCOVER"
    SELECT_TARGETS = "SELECT_TARGETS"
    AWAIT_APPROVAL = "AWAIT_APPROVAL"
    CREATE_RESOURCES = "CREATE_RESOURCES"
    AWAIT_ACTIVATION = "AWAIT_ACTIVATION"
    COLLECT = "COLLECT"
    ANALYZE = "ANALYZE"
    STOP_RESOURCES = "STOP_RESOURCES"
    AWAIT_RETENTION_DECISION = "AWAIT_RETENTION_DECISION"
    DONE = "DONE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ScanPhase.DONE, ScanPhase.FAILED)


def parse_tags(tags: list[dict[str, str]] | None) -> dict[str, str]:
    """AWS 태그 리스트를 딕셔너리로 변환한다. ``aws:`` 접두사 태그는 제외."""
    return {
        tag.get("Key", ""): tag.get("Value", "") for tag in tags or [] if not tag.get("Key", "").startswith("aws:")
    }


# =============================================================================
# 토폴로지
# =============================================================================


@dataclass(frozen=True)
class NATGateway:
    """NAT Gateway 정보

    Attributes:
        nat_gateway_id: NAT Gateway 식별자
        vpc_id: 소속 VPC
        subnet_id: 배치 서브넷 (regional 모드는 비어 있을 수 있음)
        state: ``available``, ``pending`` 등
        availability_mode: zonal 또는 regional
        network_interface_id: 첫 번째 주소의 ENI (zonal Flow Log 대상)
        connectivity_type: ``public`` 또는 ``private``
        public_ips: 할당된 퍼블릭 IP
        tags: 태그 딕셔너리
    """

    nat_gateway_id: str
    vpc_id: str
    subnet_id: str = ""
    state: str = "available"
    availability_mode: AvailabilityMode = AvailabilityMode.ZONAL
    network_interface_id: str = ""
    connectivity_type: str = "public"
    public_ips: tuple[str, ...] = ()
    tags: dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @property
    def name(self) -> str:
        return self.tags.get("Name", "")

    @property
    def is_regional(self) -> bool:
        return self.availability_mode == AvailabilityMode.REGIONAL

    @property
    def display_name(self) -> str:
        return f"{self.nat_gateway_id} ({self.name})" if self.name else self.nat_gateway_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "nat_gateway_id": self.nat_gateway_id,
            "vpc_id": self.vpc_id,
            "subnet_id": self.subnet_id,
            "state": self.state,
            "availability_mode": self.availability_mode.value,
            "network_interface_id": self.network_interface_id,
            "connectivity_type": self.connectivity_type,
            "public_ips": list(self.public_ips),
            "name": self.name,
        }


@dataclass(frozen=True)
class VPCEndpoint:
    """VPC Endpoint 정보"""

    endpoint_id: str
    vpc_id: str
    service_name: str
    endpoint_type: str
    state: str = "available"
    route_table_ids: tuple[str, ...] = ()
    subnet_ids: tuple[str, ...] = ()
    private_dns_enabled: bool = False
    tags: dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @property
    def service(self) -> str:
        """서비스 약칭 (``com.amazonaws.us-east-1.s3`` -> ``s3``, ``...ecr.api`` -> ``ecr.api``)"""
        parts = self.service_name.split(".")
        if len(parts) > 3 and parts[0] == "com" and parts[1] == "amazonaws":
            return ".".join(parts[3:])
        return parts[-1] if parts else ""

    @property
    def is_gateway(self) -> bool:
        return self.endpoint_type.lower() == "gateway"

    @property
    def is_interface(self) -> bool:
        return self.endpoint_type.lower() == "interface"


@dataclass(frozen=True)
class Route:
    """라우트 테이블 항목"""

    destination: str
    target_id: str
    target_type: str

    @property
    def is_default(self) -> bool:
        return self.destination == "0.0.0.0/0"


@dataclass(frozen=True)
class RouteTable:
    """라우트 테이블 정보"""

    route_table_id: str
    vpc_id: str
    routes: tuple[Route, ...] = ()
    subnet_ids: tuple[str, ...] = ()
    is_main: bool = False
    tags: dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @property
    def name(self) -> str:
        return self.tags.get("Name", "")

    @property
    def default_nat_gateway(self) -> str | None:
        """기본 라우트(0.0.0.0/0)가 가리키는 NAT Gateway ID"""
        for route in self.routes:
            if route.is_default and route.target_type == "nat-gateway":
                return route.target_id
        return None

    @property
    def routes_through_nat(self) -> bool:
        return self.default_nat_gateway is not None


# =============================================================================
# Flow Log 레코드
# =============================================================================

# Flow Log 사용자 지정 형식 (14개 필드, 공백 구분)
FLOW_LOG_FIELDS = (
    "interface-id",
    "srcaddr",
    "dstaddr",
    "pkt-srcaddr",
    "pkt-dstaddr",
    "srcport",
    "dstport",
    "protocol",
    "packets",
    "bytes",
    "start",
    "end",
    "action",
    "log-status",
)
FLOW_LOG_FORMAT = " ".join(f"${{{name}}}" for name in FLOW_LOG_FIELDS)

MISSING_VALUE = "-"


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        try:
            return int(float(value))
        except ValueError:
            return 0


@dataclass(frozen=True)
class FlowRecord:
    """Flow Log 레코드 한 줄"""

    interface_id: str
    srcaddr: str
    dstaddr: str
    pkt_srcaddr: str
    pkt_dstaddr: str
    srcport: int
    dstport: int
    protocol: int
    packets: int
    bytes: int
    start: int
    end: int
    action: str
    log_status: str

    @classmethod
    def parse(cls, line: str) -> FlowRecord | None:
        """위치 기반 파싱. 필드가 14개 미만이면 None."""
        fields = line.split()
        if len(fields) < len(FLOW_LOG_FIELDS):
            return None
        return cls(
            interface_id=fields[0],
            srcaddr=fields[1],
            dstaddr=fields[2],
            pkt_srcaddr=fields[3],
            pkt_dstaddr=fields[4],
            srcport=_to_int(fields[5]),
            dstport=_to_int(fields[6]),
            protocol=_to_int(fields[7]),
            packets=_to_int(fields[8]),
            bytes=_to_int(fields[9]),
            start=_to_int(fields[10]),
            end=_to_int(fields[11]),
            action=fields[12],
            log_status=fields[13],
        )

    @property
    def is_accepted(self) -> bool:
        return self.action == "ACCEPT"

    @property
    def destination(self) -> str:
        """NAT 변환 전 실제 목적지 (pkt-dstaddr 우선, 없으면 dstaddr)"""
        for candidate in (self.pkt_dstaddr, self.dstaddr):
            if candidate and candidate != MISSING_VALUE:
                return candidate
        return ""

    @property
    def source(self) -> str:
        """NAT 변환 전 실제 출발지 (pkt-srcaddr 우선, 없으면 srcaddr)"""
        for candidate in (self.pkt_srcaddr, self.srcaddr):
            if candidate and candidate != MISSING_VALUE:
                return candidate
        return ""


# =============================================================================
# 진행 이벤트
# =============================================================================


@dataclass(frozen=True)
class ProgressEvent:
    """UI로 전달되는 진행 상황"""

    phase: ScanPhase
    message: str = ""
    elapsed_seconds: float = 0.0
    remaining_seconds: float | None = None

    @property
    def percent(self) -> float | None:
        if self.remaining_seconds is None:
            return None
        total = self.elapsed_seconds + self.remaining_seconds
        if total <= 0:
            return 100.0
        return min(100.0, self.elapsed_seconds / total * 100)
