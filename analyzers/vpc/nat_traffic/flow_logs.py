"""
VPC Flow Log 수명 주기 관리

임시 Flow Log와 전달 대상 로그 그룹의 생성, 활성화 대기, 삭제를 담당한다.

- zonal NAT Gateway: ENI 단위 Flow Log (``NetworkInterface``)
- regional NAT Gateway: Gateway 단위 Flow Log (``RegionalNatGateway``)

생성된 모든 리소스에는 ``CreatedBy``, ``RunId``, ``Timestamp`` 태그가 붙는다.
삭제 작업은 취소 토큰을 확인하지 않는다.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import unquote

from botocore.exceptions import BotoCoreError, ClientError

from core.config import settings
from core.exceptions import (
    APICallError,
    ActivationTimeoutError,
    CleanupError,
    PreconditionError,
    ResourceCreationError,
    ScanError,
    is_not_found,
)
from core.parallel.cancel import CancellationToken

from .models import FLOW_LOG_FORMAT, NATGateway

logger = logging.getLogger(__name__)

CREATED_BY = "natdoctor"
MAX_AGGREGATION_INTERVAL = 60

# 역할 정책 이름에 포함되어야 하는 키워드 (CloudWatch Logs 전달 권한)
DELIVERY_POLICY_KEYWORDS = ("CloudWatchLogs", "FlowLogs")

ROLE_SETUP_HINT = (
    "VPC Flow Logs용 IAM Role이 필요합니다.\n"
    "  1. 신뢰 정책 Principal: vpc-flow-logs.amazonaws.com\n"
    "  2. 권한: logs:CreateLogStream, logs:PutLogEvents, logs:DescribeLogGroups, logs:DescribeLogStreams\n"
    "  3. Role 이름을 NATDOCTOR_FLOW_LOGS_ROLE 환경변수로 지정할 수 있습니다."
)


@dataclass(frozen=True)
class LogGroupStats:
    """로그 그룹 현황"""

    name: str
    stored_bytes: int
    stream_count: int
    retention_days: int | None = None
    created_at: datetime | None = None


def _run_tags(run_id: str) -> dict[str, str]:
    return {
        "CreatedBy": CREATED_BY,
        "RunId": run_id,
        "Timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
    }


def _error_code(error: Exception) -> str:
    return getattr(error, "response", {}).get("Error", {}).get("Code", "")


def _load_policy_document(document) -> dict:
    """IAM 정책 문서 (dict 또는 URL 인코딩된 JSON 문자열)"""
    if isinstance(document, dict):
        return document
    if not document:
        return {}
    return json.loads(unquote(document))


def _trusts_service(document: dict, principal: str) -> bool:
    statements = document.get("Statement", [])
    if isinstance(statements, dict):
        statements = [statements]
    for statement in statements:
        if statement.get("Effect", "Allow") != "Allow":
            continue
        services = statement.get("Principal", {}).get("Service", [])
        if isinstance(services, str):
            services = [services]
        if principal in services:
            return True
    return False


class FlowLogManager:
    """임시 Flow Log와 로그 그룹 관리

    Args:
        ec2: boto3 EC2 client
        logs: boto3 CloudWatch Logs client
        iam: boto3 IAM client (역할 검증용, 없으면 검증 불가)
        cleanup_ec2: 삭제 작업용 EC2 client (기본: ec2)
        cleanup_logs: 삭제 작업용 Logs client (기본: logs)
        clock: 단조 시계 (테스트용)
    """

    def __init__(
        self,
        ec2,
        logs,
        iam=None,
        cleanup_ec2=None,
        cleanup_logs=None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ec2 = ec2
        self.logs = logs
        self.iam = iam
        self.cleanup_ec2 = cleanup_ec2 or ec2
        self.cleanup_logs = cleanup_logs or logs
        self._clock = clock

    # -------------------------------------------------------------------------
    # 전제 조건
    # -------------------------------------------------------------------------

    def validate_delivery_role(self, role_name: str) -> str:
        """Flow Log 전달 역할을 검증하고 ARN을 반환한다.

        Raises:
            PreconditionError: 역할 없음, 신뢰 정책 누락, 로그 전달 정책 누락
        """
        if self.iam is None:
            raise PreconditionError("IAM client가 없어 Flow Log 역할을 검증할 수 없습니다", hint=ROLE_SETUP_HINT)

        try:
            role = self.iam.get_role(RoleName=role_name)["Role"]
        except ClientError as e:
            if _error_code(e) == "NoSuchEntity":
                raise PreconditionError(
                    f"Flow Log 역할을 찾을 수 없습니다: {role_name}", hint=ROLE_SETUP_HINT, cause=e
                ) from e
            raise APICallError.from_client_error("iam", "get_role", e) from e

        document = _load_policy_document(role.get("AssumeRolePolicyDocument"))
        if not _trusts_service(document, settings.FLOW_LOGS_SERVICE_PRINCIPAL):
            raise PreconditionError(
                f"역할 {role_name}의 신뢰 정책에 {settings.FLOW_LOGS_SERVICE_PRINCIPAL}가 없습니다",
                hint=ROLE_SETUP_HINT,
            )

        if not self._has_delivery_policy(role_name):
            raise PreconditionError(
                f"역할 {role_name}에 CloudWatch Logs 전달 정책이 없습니다",
                hint=ROLE_SETUP_HINT,
            )

        logger.info("Flow Log 역할 확인: %s", role["Arn"])
        return role["Arn"]

    def _has_delivery_policy(self, role_name: str) -> bool:
        try:
            attached = self.iam.get_paginator("list_attached_role_policies").paginate(RoleName=role_name)
            names = [p.get("PolicyName", "") for page in attached for p in page.get("AttachedPolicies", [])]
            inline = self.iam.get_paginator("list_role_policies").paginate(RoleName=role_name)
            names += [name for page in inline for name in page.get("PolicyNames", [])]
        except ClientError as e:
            raise APICallError.from_client_error("iam", "list_role_policies", e) from e

        return any(keyword in name for name in names for keyword in DELIVERY_POLICY_KEYWORDS)

    # -------------------------------------------------------------------------
    # 생성
    # -------------------------------------------------------------------------

    def create_log_group(self, name: str, run_id: str) -> bool:
        """로그 그룹 생성 (보존 기간 1일). 새로 만들었으면 True, 기존 그룹이면 False."""
        created = True
        try:
            self.logs.create_log_group(logGroupName=name, tags=_run_tags(run_id))
        except ClientError as e:
            if _error_code(e) != "ResourceAlreadyExistsException":
                raise ResourceCreationError("log-group", name, cause=e) from e
            logger.info("기존 로그 그룹 사용: %s", name)
            created = False
        except BotoCoreError as e:
            raise ResourceCreationError("log-group", name, cause=e) from e

        try:
            self.logs.put_retention_policy(
                logGroupName=name,
                retentionInDays=settings.LOG_GROUP_RETENTION_DAYS,
            )
        except (ClientError, BotoCoreError) as e:
            # 보존 기간 설정 실패는 진단을 막지 않음
            logger.warning("로그 그룹 보존 기간 설정 실패 (%s): %s", name, e)

        return created

    def create(self, nat: NATGateway, log_group: str, role_arn: str, run_id: str) -> str:
        """NAT Gateway 하나에 Flow Log를 생성하고 ID를 반환한다.

        Raises:
            ResourceCreationError: 대상 ENI 없음, API 실패, Unsuccessful 응답
        """
        if nat.is_regional:
            resource_type, resource_id = "RegionalNatGateway", nat.nat_gateway_id
        else:
            if not nat.network_interface_id:
                raise ResourceCreationError(nat.nat_gateway_id, "NAT Gateway ENI를 찾을 수 없습니다")
            resource_type, resource_id = "NetworkInterface", nat.network_interface_id

        tags = [{"Key": k, "Value": v} for k, v in _run_tags(run_id).items()]
        try:
            response = self.ec2.create_flow_logs(
                ResourceIds=[resource_id],
                ResourceType=resource_type,
                TrafficType="ALL",
                LogDestinationType="cloud-watch-logs",
                LogGroupName=log_group,
                DeliverLogsPermissionArn=role_arn,
                LogFormat=FLOW_LOG_FORMAT,
                MaxAggregationInterval=MAX_AGGREGATION_INTERVAL,
                TagSpecifications=[{"ResourceType": "vpc-flow-log", "Tags": tags}],
            )
        except (ClientError, BotoCoreError) as e:
            raise ResourceCreationError(nat.nat_gateway_id, "create_flow_logs 호출 실패", cause=e) from e

        unsuccessful = response.get("Unsuccessful", [])
        if unsuccessful:
            error = unsuccessful[0].get("Error", {})
            raise ResourceCreationError(
                nat.nat_gateway_id,
                f"{error.get('Code', 'Unknown')}: {error.get('Message', '')}",
            )

        flow_log_ids = response.get("FlowLogIds", [])
        if not flow_log_ids:
            raise ResourceCreationError(nat.nat_gateway_id, "Flow Log ID가 반환되지 않았습니다")

        logger.info("Flow Log 생성: %s -> %s (%s)", nat.nat_gateway_id, flow_log_ids[0], resource_type)
        return flow_log_ids[0]

    # -------------------------------------------------------------------------
    # 활성화 대기
    # -------------------------------------------------------------------------

    def poll_active(
        self,
        flow_log_ids: list[str],
        token: CancellationToken,
        timeout: float = settings.ACTIVATION_TIMEOUT_SECONDS,
        interval: float = settings.ACTIVATION_POLL_SECONDS,
        on_poll: Callable[[float, float], None] | None = None,
    ) -> None:
        """모든 Flow Log가 ACTIVE가 될 때까지 대기

        Args:
            flow_log_ids: 대기 대상
            token: 취소 토큰
            timeout: 최대 대기 시간 (초)
            interval: 폴링 간격 (초)
            on_poll: (경과, 남은 시간) 콜백

        Raises:
            ActivationTimeoutError: 제한 시간 초과
            ScanCancelledError: 취소
            ScanError: 전달 실패(DeliverLogsStatus=FAILED)
        """
        if not flow_log_ids:
            return

        started = self._clock()
        while True:
            token.raise_if_cancelled("AWAIT_ACTIVATION")
            if self._all_active(flow_log_ids):
                logger.info("Flow Log %d개 활성화 완료", len(flow_log_ids))
                return

            elapsed = self._clock() - started
            remaining = timeout - elapsed
            if remaining <= 0:
                raise ActivationTimeoutError(flow_log_ids, timeout)
            if on_poll:
                on_poll(elapsed, remaining)
            token.sleep(min(interval, remaining), "AWAIT_ACTIVATION")

    def _all_active(self, flow_log_ids: list[str]) -> bool:
        try:
            response = self.ec2.describe_flow_logs(FlowLogIds=flow_log_ids)
        except ClientError as e:
            if is_not_found(e):
                # 생성 직후 조회 불가 (eventual consistency)
                return False
            raise APICallError.from_client_error("ec2", "describe_flow_logs", e) from e

        statuses = {fl.get("FlowLogId"): fl for fl in response.get("FlowLogs", [])}
        for flow_log_id in flow_log_ids:
            flow_log = statuses.get(flow_log_id)
            if flow_log is None:
                return False
            if flow_log.get("DeliverLogsStatus") == "FAILED":
                raise ScanError(
                    f"Flow Log 전달 실패 [{flow_log_id}]: {flow_log.get('DeliverLogsErrorMessage', '')}",
                    phase="AWAIT_ACTIVATION",
                )
            if flow_log.get("FlowLogStatus") != "ACTIVE":
                return False
        return True

    # -------------------------------------------------------------------------
    # 정리
    # -------------------------------------------------------------------------

    def delete(self, flow_log_ids: list[str]) -> None:
        """Flow Log 삭제. 이미 없는 Flow Log는 성공으로 간주한다.

        Raises:
            CleanupError: API 실패 또는 삭제 실패 항목
        """
        if not flow_log_ids:
            return

        try:
            response = self.cleanup_ec2.delete_flow_logs(FlowLogIds=list(flow_log_ids))
        except (ClientError, BotoCoreError) as e:
            raise CleanupError(",".join(flow_log_ids), "delete_flow_logs 호출 실패", cause=e) from e

        failures = [
            item
            for item in response.get("Unsuccessful", [])
            if item.get("Error", {}).get("Code") != "InvalidFlowLogId.NotFound"
        ]
        if failures:
            detail = ", ".join(
                f"{item.get('ResourceId', '?')}({item.get('Error', {}).get('Code', 'Unknown')})" for item in failures
            )
            raise CleanupError(",".join(flow_log_ids), detail)

        logger.info("Flow Log %d개 삭제", len(flow_log_ids))

    def delete_log_group(self, name: str) -> None:
        """로그 그룹 삭제. 없는 그룹은 무시한다.

        Raises:
            CleanupError: 삭제 실패
        """
        try:
            self.cleanup_logs.delete_log_group(logGroupName=name)
        except ClientError as e:
            if _error_code(e) == "ResourceNotFoundException":
                logger.debug("로그 그룹 없음 (이미 삭제됨): %s", name)
                return
            raise CleanupError(name, "delete_log_group 호출 실패", cause=e) from e
        except BotoCoreError as e:
            raise CleanupError(name, "delete_log_group 호출 실패", cause=e) from e

        logger.info("로그 그룹 삭제: %s", name)

    # -------------------------------------------------------------------------
    # 조회 (cleanup 명령)
    # -------------------------------------------------------------------------

    def active_flow_logs(self, log_group: str) -> list[str]:
        """로그 그룹으로 전달 중인 ACTIVE Flow Log ID 목록"""
        try:
            paginator = self.ec2.get_paginator("describe_flow_logs")
            pages = paginator.paginate(Filter=[{"Name": "log-group-name", "Values": [log_group]}])
            return [
                fl["FlowLogId"]
                for page in pages
                for fl in page.get("FlowLogs", [])
                if fl.get("FlowLogStatus") == "ACTIVE"
            ]
        except (ClientError, BotoCoreError) as e:
            raise APICallError.from_client_error("ec2", "describe_flow_logs", e) from e

    def log_group_stats(self, name: str) -> LogGroupStats | None:
        """로그 그룹 크기/스트림 수. 그룹이 없으면 None."""
        try:
            groups = self.logs.describe_log_groups(logGroupNamePrefix=name).get("logGroups", [])
            group = next((g for g in groups if g.get("logGroupName") == name), None)
            if group is None:
                return None

            stream_count = 0
            for page in self.logs.get_paginator("describe_log_streams").paginate(logGroupName=name):
                stream_count += len(page.get("logStreams", []))
        except (ClientError, BotoCoreError) as e:
            raise APICallError.from_client_error("logs", "describe_log_groups", e) from e

        created_ms = group.get("creationTime")
        return LogGroupStats(
            name=name,
            stored_bytes=int(group.get("storedBytes", 0)),
            stream_count=stream_count,
            retention_days=group.get("retentionInDays"),
            created_at=datetime.fromtimestamp(created_ms / 1000, tz=timezone.utc) if created_ms else None,
        )
