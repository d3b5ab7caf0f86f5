"""
NAT Gateway 트래픽 진단 오케스트레이터

상태 흐름:
    INIT -> DISCOVER -> SELECT_TARGETS -> AWAIT_APPROVAL -> CREATE_RESOURCES
         -> AWAIT_ACTIVATION -> COLLECT -> ANALYZE -> STOP_RESOURCES
         -> AWAIT_RETENTION_DECISION -> DONE
    (모든 비종료 상태) -> FAILED

과금 리소스(Flow Log, 로그 그룹)는 CREATE_RESOURCES에서만 생성되고,
실패/취소/인터럽트를 포함한 모든 종료 경로에서 Flow Log는 삭제된다.
정리 중 오류는 원래 오류에 덧붙여지며 원래 오류를 대체하지 않는다.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from core.config import get_flow_logs_role_name, settings
from core.exceptions import (
    IPRangesUnavailableError,
    PreconditionError,
    ScanCancelledError,
    ScanError,
    ScanFailedError,
)
from core.parallel import CancellationToken, get_cleanup_client, get_client

from .classifier import AddressClassifier
from .collection import CollectionWindow
from .collector import TopologyCollector
from .cost import CostEstimate, FlowLogsCostEstimate, estimate_flow_logs_cost, project_costs
from .endpoints import EndpointAnalysis, Finding, analyze_all_vpcs
from .flow_logs import FlowLogManager
from .logs_query import LogsInsightsClient
from .models import NATGateway, ProgressEvent, ScanPhase
from .recommendations import Recommendation, recommend_endpoints, recommend_nat_setup
from .traffic import TrafficAnalyzer, TrafficStats

logger = logging.getLogger(__name__)

P = ScanPhase

# 허용된 상태 전이 (FAILED는 모든 비종료 상태에서 허용)
TRANSITIONS: dict[ScanPhase, tuple[ScanPhase, ...]] = {
    P.INIT: (P.DISCOVER,),
    P.DISCOVER: (P.SELECT_TARGETS,),
    P.SELECT_TARGETS: (P.AWAIT_APPROVAL, P.DONE),
    P.AWAIT_APPROVAL: (P.CREATE_RESOURCES, P.DONE),
    P.CREATE_RESOURCES: (P.AWAIT_ACTIVATION, P.STOP_RESOURCES),
    P.AWAIT_ACTIVATION: (P.COLLECT, P.STOP_RESOURCES),
    P.COLLECT: (P.ANALYZE, P.STOP_RESOURCES),
    P.ANALYZE: (P.STOP_RESOURCES,),
    P.STOP_RESOURCES: (P.AWAIT_RETENTION_DECISION,),
    P.AWAIT_RETENTION_DECISION: (P.DONE,),
    P.DONE: (),
    P.FAILED: (),
}

# Flow Log가 존재할 수 있는 단계: 실패 시 STOP_RESOURCES를 거쳐 FAILED
RESOURCE_PHASES = (P.CREATE_RESOURCES, P.AWAIT_ACTIVATION, P.COLLECT, P.ANALYZE)

# 데이터 수집 전 단계: 실패 시 로그 그룹도 삭제
PRE_COLLECTION_PHASES = (
    P.INIT,
    P.DISCOVER,
    P.SELECT_TARGETS,
    P.AWAIT_APPROVAL,
    P.CREATE_RESOURCES,
    P.AWAIT_ACTIVATION,
)

PHASE_MESSAGES = {
    P.DISCOVER: "NAT Gateway 조회 중",
    P.SELECT_TARGETS: "대상 NAT Gateway 선택",
    P.AWAIT_APPROVAL: "실행 승인 대기",
    P.CREATE_RESOURCES: "Flow Log 생성 중",
    P.AWAIT_ACTIVATION: "Flow Log 활성화 대기 중",
    P.COLLECT: "트래픽 수집 중",
    P.ANALYZE: "트래픽 분석 중",
    P.STOP_RESOURCES: "Flow Log 삭제 중",
    P.AWAIT_RETENTION_DECISION: "로그 그룹 보존 여부 확인",
    P.DONE: "완료",
    P.FAILED: "실패",
}


def new_run_id(now: float | None = None) -> str:
    return f"{settings.APP_NAME}-{int(now if now is not None else time.time())}"


def log_group_name(run_id: str) -> str:
    return f"{settings.LOG_GROUP_PREFIX}/{run_id}"


# =============================================================================
# 옵션 / 상호작용
# =============================================================================


@dataclass(frozen=True)
class ScanOptions:
    """진단 실행 옵션"""

    region: str
    duration_minutes: int = settings.DEFAULT_DURATION_MINUTES
    nat_gateway_ids: tuple[str, ...] = ()
    vpc_id: str | None = None
    auto_approve: bool = False
    auto_cleanup: bool = False
    role_name: str = field(default_factory=get_flow_logs_role_name)
    profile: str | None = None
    activation_timeout: float = settings.ACTIVATION_TIMEOUT_SECONDS
    activation_interval: float = settings.ACTIVATION_POLL_SECONDS
    progress_interval: float = settings.PROGRESS_INTERVAL_SECONDS

    def validate(self) -> None:
        """Raises: PreconditionError"""
        if not self.region:
            raise PreconditionError("리전이 지정되지 않았습니다", hint="--region 또는 AWS_REGION을 지정하세요")
        if not settings.MIN_DURATION_MINUTES <= self.duration_minutes <= settings.MAX_DURATION_MINUTES:
            raise PreconditionError(
                f"수집 시간은 {settings.MIN_DURATION_MINUTES}~{settings.MAX_DURATION_MINUTES}분이어야 합니다 "
                f"(입력: {self.duration_minutes})",
                hint="--duration 값을 확인하세요",
            )
        if not self.role_name:
            raise PreconditionError("Flow Log 역할 이름이 비어 있습니다", hint="NATDOCTOR_FLOW_LOGS_ROLE을 지정하세요")


@dataclass(frozen=True)
class ScanPlan:
    """승인 요청 내용"""

    run_id: str
    region: str
    log_group: str
    role_arn: str
    nat_gateways: tuple[NATGateway, ...]
    duration_minutes: int
    flow_logs_cost: FlowLogsCostEstimate


class ScanInteraction(Protocol):
    """오케스트레이터가 사용자와 상호작용하는 지점"""

    def select_targets(self, nat_gateways: list[NATGateway]) -> list[NATGateway]: ...

    def approve(self, plan: ScanPlan) -> bool: ...

    def retain_log_group(self, log_group: str) -> bool: ...

    def on_progress(self, event: ProgressEvent) -> None: ...


class HeadlessInteraction:
    """비대화형 실행: 모든 대상 선택, 승인/보존은 옵션으로 결정"""

    def __init__(self, auto_approve: bool = False, auto_cleanup: bool = False):
        self.auto_approve = auto_approve
        self.auto_cleanup = auto_cleanup
        self.events: list[ProgressEvent] = []

    def select_targets(self, nat_gateways: list[NATGateway]) -> list[NATGateway]:
        return list(nat_gateways)

    def approve(self, plan: ScanPlan) -> bool:
        return self.auto_approve

    def retain_log_group(self, log_group: str) -> bool:
        return not self.auto_cleanup

    def on_progress(self, event: ProgressEvent) -> None:
        self.events.append(event)


# =============================================================================
# 결과
# =============================================================================


@dataclass(frozen=True)
class DeepScanResult:
    """트래픽 진단 결과 (불변)"""

    run_id: str
    region: str
    nat_gateways: tuple[NATGateway, ...]
    duration_minutes: int
    log_group: str
    traffic: TrafficStats | None = None
    cost: CostEstimate | None = None
    endpoint_analyses: dict[str, EndpointAnalysis] = field(default_factory=dict)
    findings: tuple[Finding, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    flow_logs_cost: FlowLogsCostEstimate | None = None
    window_start: datetime | None = None
    window_end: datetime | None = None
    log_group_retained: bool = False
    cancelled: bool = False
    cleanup_errors: tuple[str, ...] = ()
    phases: tuple[ScanPhase, ...] = ()
    account_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "region": self.region,
            "account_id": self.account_id,
            "nat_gateways": [nat.to_dict() for nat in self.nat_gateways],
            "duration_minutes": self.duration_minutes,
            "log_group": self.log_group,
            "log_group_retained": self.log_group_retained,
            "cancelled": self.cancelled,
            "window_start": self.window_start.isoformat() if self.window_start else None,
            "window_end": self.window_end.isoformat() if self.window_end else None,
            "traffic": self.traffic.to_dict() if self.traffic else None,
            "cost": self.cost.to_dict() if self.cost else None,
            "endpoint_analyses": {vpc: a.to_dict() for vpc, a in self.endpoint_analyses.items()},
            "findings": [f.to_dict() for f in self.findings],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "cleanup_errors": list(self.cleanup_errors),
            "phases": [p.value for p in self.phases],
        }


@dataclass(frozen=True)
class QuickScanResult:
    """구성 전용 진단 결과 (리소스 생성 없음)"""

    region: str
    nat_gateways: tuple[NATGateway, ...]
    endpoint_analyses: dict[str, EndpointAnalysis] = field(default_factory=dict)
    findings: tuple[Finding, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "region": self.region,
            "nat_gateways": [nat.to_dict() for nat in self.nat_gateways],
            "endpoint_analyses": {vpc: a.to_dict() for vpc, a in self.endpoint_analyses.items()},
            "findings": [f.to_dict() for f in self.findings],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


# =============================================================================
# AWS clients
# =============================================================================


@dataclass
class ScanClients:
    """진단에 필요한 boto3 client 묶음"""

    ec2: Any
    logs: Any
    iam: Any = None
    cloudwatch: Any = None
    sts: Any = None
    cleanup_ec2: Any = None
    cleanup_logs: Any = None

    @classmethod
    def from_session(cls, session, region: str) -> ScanClients:
        return cls(
            ec2=get_client(session, "ec2", region_name=region),
            logs=get_client(session, "logs", region_name=region),
            iam=get_client(session, "iam", region_name=region),
            cloudwatch=get_client(session, "cloudwatch", region_name=region),
            sts=get_client(session, "sts", region_name=region),
            cleanup_ec2=get_cleanup_client(session, "ec2", region_name=region),
            cleanup_logs=get_cleanup_client(session, "logs", region_name=region),
        )


def _select_nat_gateways(
    nat_gateways: list[NATGateway],
    nat_gateway_ids: tuple[str, ...],
) -> list[NATGateway]:
    if not nat_gateway_ids:
        return nat_gateways
    by_id = {nat.nat_gateway_id: nat for nat in nat_gateways}
    unknown = [nat_id for nat_id in nat_gateway_ids if nat_id not in by_id]
    if unknown:
        raise PreconditionError(
            f"NAT Gateway를 찾을 수 없습니다: {', '.join(unknown)}",
            hint="ID와 리전을 확인하세요 (삭제/실패 상태는 제외됩니다)",
        )
    return [by_id[nat_id] for nat_id in nat_gateway_ids]


# =============================================================================
# Quick scan
# =============================================================================


def run_quick_scan(
    collector: TopologyCollector,
    region: str,
    vpc_id: str | None = None,
    nat_gateway_ids: tuple[str, ...] = (),
) -> QuickScanResult:
    """Flow Log 없이 Endpoint/Route Table 구성만 진단한다."""
    nat_gateways = _select_nat_gateways(collector.discover_nat_gateways(vpc_id), nat_gateway_ids)
    analyses = analyze_all_vpcs(collector, region, nat_gateways)
    findings = [finding for vpc in sorted(analyses) for finding in analyses[vpc].to_findings()]
    recommendations = recommend_endpoints(analyses) + recommend_nat_setup(nat_gateways)
    return QuickScanResult(
        region=region,
        nat_gateways=tuple(nat_gateways),
        endpoint_analyses=analyses,
        findings=tuple(findings),
        recommendations=tuple(recommendations),
    )


# =============================================================================
# Deep scan
# =============================================================================


class ScanOrchestrator:
    """트래픽 진단 상태 머신

    Args:
        clients: boto3 client 묶음
        options: 실행 옵션
        interaction: 사용자 상호작용 (선택/승인/보존/진행 표시)
        classifier: 주소 분류기 (기본: AWS IP 대역 24시간 캐시)
        flow_logs: FlowLogManager (기본: clients로 생성)
        analyzer: TrafficAnalyzer (기본: clients.logs로 생성)
        collection: CollectionWindow
        run_id: 실행 ID (기본: natdoctor-<epoch>)
    """

    def __init__(
        self,
        clients: ScanClients,
        options: ScanOptions,
        interaction: ScanInteraction,
        classifier: AddressClassifier | None = None,
        flow_logs: FlowLogManager | None = None,
        analyzer: TrafficAnalyzer | None = None,
        collection: CollectionWindow | None = None,
        run_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.clients = clients
        self.options = options
        self.interaction = interaction
        self.classifier = classifier or AddressClassifier()
        self.collector = TopologyCollector(clients.ec2)
        self.flow_logs = flow_logs or FlowLogManager(
            clients.ec2,
            clients.logs,
            clients.iam,
            cleanup_ec2=clients.cleanup_ec2,
            cleanup_logs=clients.cleanup_logs,
        )
        self.analyzer = analyzer or TrafficAnalyzer(LogsInsightsClient(clients.logs), self.classifier)
        self.collection = collection or CollectionWindow(interval=options.progress_interval)
        self.run_id = run_id or new_run_id()
        self.log_group = log_group_name(self.run_id)
        self._clock = clock

        self.phase = ScanPhase.INIT
        self.history: list[ScanPhase] = [ScanPhase.INIT]
        self.flow_log_ids: list[str] = []
        self.log_group_created = False
        self.log_group_deleted = False
        self._started = clock()

    # -------------------------------------------------------------------------
    # 상태 전이
    # -------------------------------------------------------------------------

    def _transition(self, target: ScanPhase) -> None:
        allowed = TRANSITIONS[self.phase]
        if target is not ScanPhase.FAILED and target not in allowed:
            raise ScanError(f"허용되지 않은 상태 전이: {self.phase.value} -> {target.value}", phase=self.phase.value)
        if target is ScanPhase.FAILED and self.phase.is_terminal:
            raise ScanError(f"종료 상태에서 전이할 수 없습니다: {self.phase.value}", phase=self.phase.value)

        logger.debug("상태 전이: %s -> %s", self.phase.value, target.value)
        self.phase = target
        self.history.append(target)
        self._emit(ProgressEvent(phase=target, message=PHASE_MESSAGES.get(target, ""), elapsed_seconds=self._elapsed()))

    def _emit(self, event: ProgressEvent) -> None:
        try:
            self.interaction.on_progress(event)
        except Exception as e:
            # 표시 오류가 진단 흐름을 바꾸지 않음
            logger.debug("진행 표시 오류: %s", e)

    def _elapsed(self) -> float:
        return self._clock() - self._started

    # -------------------------------------------------------------------------
    # 실행
    # -------------------------------------------------------------------------

    def run(self, token: CancellationToken | None = None) -> DeepScanResult:
        """진단을 실행한다.

        Returns:
            DeepScanResult (승인 거절 시 cancelled=True)

        Raises:
            ScanFailedError: 실패/취소. cause에 원래 오류, cleanup_errors에 정리 오류.
        """
        token = token or CancellationToken()
        try:
            return self._run(token)
        except (Exception, KeyboardInterrupt) as e:
            failed_phase = self.phase
            logger.debug("%s 단계 실패: %r", failed_phase.value, e)
            if failed_phase in RESOURCE_PHASES:
                self._transition(ScanPhase.STOP_RESOURCES)
            delete_log_group = failed_phase in PRE_COLLECTION_PHASES or self.options.auto_cleanup
            cleanup_errors = self._cleanup(delete_log_group=delete_log_group)
            self._transition(ScanPhase.FAILED)

            cause: Exception = e if isinstance(e, Exception) else ScanCancelledError(phase=failed_phase.value)
            retained = self.log_group if self.log_group_created and not self.log_group_deleted else ""
            if cleanup_errors:
                logger.error("정리 중 오류 %d건 발생", len(cleanup_errors))
            raise ScanFailedError(
                phase=failed_phase.value,
                cause=cause,
                cleanup_errors=cleanup_errors,
                retained_log_group=retained,
            ) from e

    def _run(self, token: CancellationToken) -> DeepScanResult:
        options = self.options
        options.validate()

        # DISCOVER
        self._transition(ScanPhase.DISCOVER)
        discovered = self.collector.discover_nat_gateways(options.vpc_id)
        if not discovered:
            scope = f"VPC {options.vpc_id}" if options.vpc_id else f"리전 {options.region}"
            raise PreconditionError(f"{scope}에 활성 NAT Gateway가 없습니다")
        candidates = _select_nat_gateways(discovered, options.nat_gateway_ids)
        setup_recommendations = recommend_nat_setup(discovered)
        token.raise_if_cancelled(self.phase.value)

        # SELECT_TARGETS
        self._transition(ScanPhase.SELECT_TARGETS)
        if options.nat_gateway_ids or len(candidates) == 1:
            targets = candidates
        else:
            targets = list(self.interaction.select_targets(candidates))
        if not targets:
            logger.info("선택된 NAT Gateway 없음 - 종료")
            self._transition(ScanPhase.DONE)
            return self._declined_result(targets)

        # AWAIT_APPROVAL
        self._transition(ScanPhase.AWAIT_APPROVAL)
        role_arn = self.flow_logs.validate_delivery_role(options.role_name)
        self._load_classifier()
        plan = ScanPlan(
            run_id=self.run_id,
            region=options.region,
            log_group=self.log_group,
            role_arn=role_arn,
            nat_gateways=tuple(targets),
            duration_minutes=options.duration_minutes,
            flow_logs_cost=self._estimate_flow_logs_cost(targets),
        )
        token.raise_if_cancelled(self.phase.value)
        if not (options.auto_approve or self.interaction.approve(plan)):
            logger.info("사용자가 실행을 승인하지 않음 - 리소스 생성 없이 종료")
            self._transition(ScanPhase.DONE)
            return self._declined_result(targets, plan.flow_logs_cost)

        # CREATE_RESOURCES
        self._transition(ScanPhase.CREATE_RESOURCES)
        self.log_group_created = self.flow_logs.create_log_group(self.log_group, self.run_id)
        for nat in targets:
            token.raise_if_cancelled(self.phase.value)
            self.flow_log_ids.append(self.flow_logs.create(nat, self.log_group, role_arn, self.run_id))

        # AWAIT_ACTIVATION
        self._transition(ScanPhase.AWAIT_ACTIVATION)
        self.flow_logs.poll_active(
            self.flow_log_ids,
            token,
            timeout=options.activation_timeout,
            interval=options.activation_interval,
            on_poll=lambda elapsed, remaining: self._emit(
                ProgressEvent(
                    phase=ScanPhase.AWAIT_ACTIVATION,
                    message="Flow Log 활성화 대기 중",
                    elapsed_seconds=elapsed,
                    remaining_seconds=remaining,
                )
            ),
        )

        # COLLECT
        self._transition(ScanPhase.COLLECT)
        self.collection.collect(options.duration_minutes * 60, token, on_progress=self._emit)

        # ANALYZE
        self._transition(ScanPhase.ANALYZE)
        window_start = self.collection.started_at or datetime.now(timezone.utc)
        window_end = self.collection.ended_at or datetime.now(timezone.utc)
        sample_minutes = max((window_end - window_start) / timedelta(minutes=1), 1.0)

        traffic = self.analyzer.analyze(self.log_group, window_start, window_end, token)
        cost = project_costs(traffic, sample_minutes, options.region)
        # 리전 전체 NAT VPC 점검 (vpc_id 필터가 있으면 다시 조회)
        region_nats = self.collector.discover_nat_gateways() if options.vpc_id else discovered
        analyses = analyze_all_vpcs(self.collector, options.region, region_nats)
        findings = [finding for vpc in sorted(analyses) for finding in analyses[vpc].to_findings()]
        recommendations = recommend_endpoints(analyses, cost) + setup_recommendations

        # STOP_RESOURCES
        self._transition(ScanPhase.STOP_RESOURCES)
        cleanup_errors = self._stop_flow_logs()

        # AWAIT_RETENTION_DECISION
        self._transition(ScanPhase.AWAIT_RETENTION_DECISION)
        retained = self._decide_retention(cleanup_errors)

        self._transition(ScanPhase.DONE)
        return DeepScanResult(
            run_id=self.run_id,
            region=options.region,
            nat_gateways=tuple(targets),
            duration_minutes=options.duration_minutes,
            log_group=self.log_group,
            traffic=traffic,
            cost=cost,
            endpoint_analyses=analyses,
            findings=tuple(findings),
            recommendations=tuple(recommendations),
            flow_logs_cost=plan.flow_logs_cost,
            window_start=window_start,
            window_end=window_end,
            log_group_retained=retained,
            cleanup_errors=tuple(str(e) for e in cleanup_errors),
            phases=tuple(self.history),
            account_id=self._account_id(),
        )

    # -------------------------------------------------------------------------
    # 단계별 도우미
    # -------------------------------------------------------------------------

    def _load_classifier(self) -> None:
        try:
            self.classifier.load()
        except IPRangesUnavailableError as e:
            raise PreconditionError(
                "AWS IP 대역 문서를 가져올 수 없어 트래픽을 분류할 수 없습니다",
                hint="네트워크 연결을 확인하거나 NATDOCTOR_CACHE_DIR에 캐시를 준비하세요",
                cause=e,
            ) from e

    def _estimate_flow_logs_cost(self, targets: list[NATGateway]) -> FlowLogsCostEstimate:
        return estimate_flow_logs_cost(
            self.clients.cloudwatch,
            [nat.nat_gateway_id for nat in targets],
            self.options.duration_minutes,
            self.options.region,
        )

    def _stop_flow_logs(self) -> list[Exception]:
        errors: list[Exception] = []
        try:
            self.flow_logs.delete(self.flow_log_ids)
            self.flow_log_ids = []
        except ScanError as e:
            logger.error("Flow Log 삭제 실패: %s", e)
            errors.append(e)
        return errors

    def _decide_retention(self, cleanup_errors: list[Exception]) -> bool:
        """로그 그룹 보존 여부. 보존하지 않으면 삭제하고 False."""
        if not self.log_group_created:
            return False
        if self.flow_log_ids:
            logger.warning("Flow Log 삭제 실패 - 로그 그룹 유지: %s", self.log_group)
            return True
        if self.options.auto_cleanup:
            keep = False
        else:
            try:
                keep = self.interaction.retain_log_group(self.log_group)
            except Exception as e:
                logger.warning("보존 여부 확인 실패 - 로그 그룹 유지: %s", e)
                keep = True
        if keep:
            logger.info("로그 그룹 유지: %s (보존 기간 %d일)", self.log_group, settings.LOG_GROUP_RETENTION_DAYS)
            return True
        try:
            self.flow_logs.delete_log_group(self.log_group)
        except ScanError as e:
            logger.error("로그 그룹 삭제 실패: %s", e)
            cleanup_errors.append(e)
            return True
        return False

    def _cleanup(self, delete_log_group: bool) -> list[Exception]:
        """실패 경로 정리. 취소 토큰과 무관하게 끝까지 시도한다."""
        errors = self._stop_flow_logs()
        if not (delete_log_group and self.log_group_created):
            return errors
        if self.flow_log_ids:
            logger.warning("Flow Log 삭제 실패 - 로그 그룹 유지: %s", self.log_group)
            return errors
        try:
            self.flow_logs.delete_log_group(self.log_group)
            self.log_group_deleted = True
        except ScanError as e:
            logger.error("로그 그룹 삭제 실패: %s", e)
            errors.append(e)
        return errors

    def _declined_result(
        self,
        targets: list[NATGateway],
        flow_logs_cost: FlowLogsCostEstimate | None = None,
    ) -> DeepScanResult:
        return DeepScanResult(
            run_id=self.run_id,
            region=self.options.region,
            nat_gateways=tuple(targets),
            duration_minutes=self.options.duration_minutes,
            log_group=self.log_group,
            flow_logs_cost=flow_logs_cost,
            cancelled=True,
            phases=tuple(self.history),
        )

    def _account_id(self) -> str:
        if self.clients.sts is None:
            return ""
        try:
            return self.clients.sts.get_caller_identity().get("Account", "")
        except (ClientError, BotoCoreError) as e:
            logger.debug("계정 ID 조회 실패: %s", e)
            return ""
