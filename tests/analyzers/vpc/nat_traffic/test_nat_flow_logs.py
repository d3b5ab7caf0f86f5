"""
tests/analyzers/vpc/nat_traffic/test_nat_flow_logs.py - Flow Log 수명 주기 테스트
"""

import json
from unittest.mock import MagicMock
from urllib.parse import quote

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from analyzers.vpc.nat_traffic.flow_logs import MAX_AGGREGATION_INTERVAL, FlowLogManager
from analyzers.vpc.nat_traffic.models import FLOW_LOG_FORMAT
from core.exceptions import (
    ActivationTimeoutError,
    APICallError,
    CleanupError,
    PreconditionError,
    ResourceCreationError,
    ScanCancelledError,
    ScanError,
)
from core.parallel.cancel import CancellationToken

ROLE_ARN = "arn:aws:iam::123456789012:role/natdoctor-FlowLogsRole"
LOG_GROUP = "/aws/vpc/flowlogs/natdoctor-1700000000"


def _client_error(code: str, operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _clock(*values):
    return iter(values).__next__


@pytest.fixture
def manager(ec2_client, logs_client, iam_client):
    return FlowLogManager(ec2_client, logs_client, iam_client)


class TestValidateDeliveryRole:
    """Flow Log 전달 역할 검증"""

    def test_valid_role(self, manager):
        assert manager.validate_delivery_role("natdoctor-FlowLogsRole") == ROLE_ARN

    def test_url_encoded_trust_policy(self, manager, iam_client):
        document = {
            "Statement": [{"Effect": "Allow", "Principal": {"Service": ["vpc-flow-logs.amazonaws.com"]}}]
        }
        iam_client.get_role.return_value["Role"]["AssumeRolePolicyDocument"] = quote(json.dumps(document))

        assert manager.validate_delivery_role("natdoctor-FlowLogsRole") == ROLE_ARN

    def test_role_missing(self, manager, iam_client):
        iam_client.get_role.side_effect = _client_error("NoSuchEntity", "GetRole")

        with pytest.raises(PreconditionError) as exc_info:
            manager.validate_delivery_role("missing-role")
        assert "missing-role" in str(exc_info.value)
        assert "vpc-flow-logs.amazonaws.com" in exc_info.value.hint

    def test_access_denied_is_api_error(self, manager, iam_client):
        iam_client.get_role.side_effect = _client_error("AccessDenied", "GetRole")

        with pytest.raises(APICallError):
            manager.validate_delivery_role("natdoctor-FlowLogsRole")

    def test_wrong_trust_principal(self, manager, iam_client):
        iam_client.get_role.return_value["Role"]["AssumeRolePolicyDocument"] = {
            "Statement": [{"Effect": "Allow", "Principal": {"Service": "ec2.amazonaws.com"}}]
        }

        with pytest.raises(PreconditionError, match="신뢰 정책"):
            manager.validate_delivery_role("natdoctor-FlowLogsRole")

    def test_missing_delivery_policy(self, manager, iam_client):
        empty = MagicMock()
        empty.paginate.return_value = [{"AttachedPolicies": [], "PolicyNames": []}]
        iam_client.get_paginator.side_effect = None
        iam_client.get_paginator.return_value = empty

        with pytest.raises(PreconditionError, match="전달 정책"):
            manager.validate_delivery_role("natdoctor-FlowLogsRole")

    def test_inline_policy_accepted(self, manager, iam_client):
        attached = MagicMock()
        attached.paginate.return_value = [{"AttachedPolicies": []}]
        inline = MagicMock()
        inline.paginate.return_value = [{"PolicyNames": ["natdoctor-FlowLogsDelivery"]}]
        iam_client.get_paginator.side_effect = (
            lambda name: attached if name == "list_attached_role_policies" else inline
        )

        assert manager.validate_delivery_role("natdoctor-FlowLogsRole") == ROLE_ARN

    def test_no_iam_client(self, ec2_client, logs_client):
        with pytest.raises(PreconditionError):
            FlowLogManager(ec2_client, logs_client).validate_delivery_role("role")


class TestCreate:
    """로그 그룹 / Flow Log 생성"""

    def test_create_log_group(self, manager, logs_client):
        assert manager.create_log_group(LOG_GROUP, "natdoctor-1700000000") is True

        kwargs = logs_client.create_log_group.call_args.kwargs
        assert kwargs["logGroupName"] == LOG_GROUP
        assert kwargs["tags"]["CreatedBy"] == "natdoctor"
        assert kwargs["tags"]["RunId"] == "natdoctor-1700000000"
        logs_client.put_retention_policy.assert_called_once_with(logGroupName=LOG_GROUP, retentionInDays=1)

    def test_existing_log_group(self, manager, logs_client):
        logs_client.create_log_group.side_effect = _client_error("ResourceAlreadyExistsException")
        assert manager.create_log_group(LOG_GROUP, "run") is False

    def test_log_group_failure(self, manager, logs_client):
        logs_client.create_log_group.side_effect = _client_error("AccessDeniedException")

        with pytest.raises(ResourceCreationError) as exc_info:
            manager.create_log_group(LOG_GROUP, "run")
        assert exc_info.value.resource == "log-group"

    def test_retention_failure_not_fatal(self, manager, logs_client):
        logs_client.put_retention_policy.side_effect = _client_error("AccessDeniedException")
        assert manager.create_log_group(LOG_GROUP, "run") is True

    def test_zonal_uses_eni(self, manager, ec2_client, nat_factory):
        ec2_client.create_flow_logs.return_value = {"FlowLogIds": ["fl-1"], "Unsuccessful": []}

        flow_log_id = manager.create(nat_factory(eni="eni-0abc"), LOG_GROUP, ROLE_ARN, "run")

        assert flow_log_id == "fl-1"
        kwargs = ec2_client.create_flow_logs.call_args.kwargs
        assert kwargs["ResourceType"] == "NetworkInterface"
        assert kwargs["ResourceIds"] == ["eni-0abc"]
        assert kwargs["TrafficType"] == "ALL"
        assert kwargs["LogFormat"] == FLOW_LOG_FORMAT
        assert kwargs["MaxAggregationInterval"] == MAX_AGGREGATION_INTERVAL
        assert kwargs["DeliverLogsPermissionArn"] == ROLE_ARN
        tags = {t["Key"]: t["Value"] for t in kwargs["TagSpecifications"][0]["Tags"]}
        assert tags["CreatedBy"] == "natdoctor" and tags["RunId"] == "run"

    def test_regional_uses_gateway(self, manager, ec2_client, nat_factory):
        ec2_client.create_flow_logs.return_value = {"FlowLogIds": ["fl-2"]}

        manager.create(nat_factory("nat-r", regional=True), LOG_GROUP, ROLE_ARN, "run")

        kwargs = ec2_client.create_flow_logs.call_args.kwargs
        assert kwargs["ResourceType"] == "RegionalNatGateway"
        assert kwargs["ResourceIds"] == ["nat-r"]

    def test_zonal_without_eni(self, manager, ec2_client, nat_factory):
        with pytest.raises(ResourceCreationError):
            manager.create(nat_factory(eni=""), LOG_GROUP, ROLE_ARN, "run")
        ec2_client.create_flow_logs.assert_not_called()

    def test_unsuccessful_response(self, manager, ec2_client, nat_factory):
        ec2_client.create_flow_logs.return_value = {
            "FlowLogIds": [],
            "Unsuccessful": [{"ResourceId": "eni-0aaa", "Error": {"Code": "AccessDenied", "Message": "no"}}],
        }

        with pytest.raises(ResourceCreationError, match="AccessDenied"):
            manager.create(nat_factory(), LOG_GROUP, ROLE_ARN, "run")

    def test_api_failure(self, manager, ec2_client, nat_factory):
        ec2_client.create_flow_logs.side_effect = _client_error("FlowLogsLimitExceeded")

        with pytest.raises(ResourceCreationError) as exc_info:
            manager.create(nat_factory("nat-x"), LOG_GROUP, ROLE_ARN, "run")
        assert exc_info.value.resource == "nat-x"


class TestPollActive:
    """활성화 대기"""

    def test_already_active(self, ec2_client, logs_client):
        ec2_client.describe_flow_logs.return_value = {
            "FlowLogs": [{"FlowLogId": "fl-1", "FlowLogStatus": "ACTIVE", "DeliverLogsStatus": "SUCCESS"}]
        }
        manager = FlowLogManager(ec2_client, logs_client, clock=_clock(0.0))

        manager.poll_active(["fl-1"], CancellationToken(), timeout=60, interval=0.01)

    def test_empty_ids(self, manager, ec2_client):
        manager.poll_active([], CancellationToken())
        ec2_client.describe_flow_logs.assert_not_called()

    def test_timeout(self, ec2_client, logs_client):
        ec2_client.describe_flow_logs.return_value = {"FlowLogs": [{"FlowLogId": "fl-1", "FlowLogStatus": "PENDING"}]}
        manager = FlowLogManager(ec2_client, logs_client, clock=_clock(0.0, 5.0, 700.0))
        polls = []

        with pytest.raises(ActivationTimeoutError) as exc_info:
            manager.poll_active(
                ["fl-1"],
                CancellationToken(),
                timeout=600,
                interval=0.01,
                on_poll=lambda elapsed, remaining: polls.append((elapsed, remaining)),
            )

        assert exc_info.value.flow_log_ids == ["fl-1"]
        assert polls == [(5.0, 595.0)]

    def test_not_found_is_pending(self, ec2_client, logs_client):
        ec2_client.describe_flow_logs.side_effect = [
            _client_error("InvalidFlowLogId.NotFound"),
            {"FlowLogs": [{"FlowLogId": "fl-1", "FlowLogStatus": "ACTIVE"}]},
        ]
        manager = FlowLogManager(ec2_client, logs_client, clock=_clock(0.0, 1.0))

        manager.poll_active(["fl-1"], CancellationToken(), timeout=60, interval=0.01)

        assert ec2_client.describe_flow_logs.call_count == 2

    def test_delivery_failed(self, ec2_client, logs_client):
        ec2_client.describe_flow_logs.return_value = {
            "FlowLogs": [
                {
                    "FlowLogId": "fl-1",
                    "FlowLogStatus": "ACTIVE",
                    "DeliverLogsStatus": "FAILED",
                    "DeliverLogsErrorMessage": "Access error",
                }
            ]
        }
        manager = FlowLogManager(ec2_client, logs_client, clock=_clock(0.0))

        with pytest.raises(ScanError, match="Access error"):
            manager.poll_active(["fl-1"], CancellationToken(), timeout=60)

    def test_cancelled(self, manager, ec2_client):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(ScanCancelledError):
            manager.poll_active(["fl-1"], token)
        ec2_client.describe_flow_logs.assert_not_called()


class TestDelete:
    """정리"""

    def test_delete_uses_cleanup_client(self, ec2_client, logs_client):
        cleanup_ec2 = MagicMock()
        cleanup_ec2.delete_flow_logs.return_value = {"Unsuccessful": []}
        manager = FlowLogManager(ec2_client, logs_client, cleanup_ec2=cleanup_ec2)

        manager.delete(["fl-1", "fl-2"])

        cleanup_ec2.delete_flow_logs.assert_called_once_with(FlowLogIds=["fl-1", "fl-2"])
        ec2_client.delete_flow_logs.assert_not_called()

    def test_delete_empty(self, manager, ec2_client):
        manager.delete([])
        ec2_client.delete_flow_logs.assert_not_called()

    def test_already_deleted_is_success(self, manager, ec2_client):
        ec2_client.delete_flow_logs.return_value = {
            "Unsuccessful": [{"ResourceId": "fl-1", "Error": {"Code": "InvalidFlowLogId.NotFound"}}]
        }
        manager.delete(["fl-1"])

    def test_partial_failure(self, manager, ec2_client):
        ec2_client.delete_flow_logs.return_value = {
            "Unsuccessful": [{"ResourceId": "fl-2", "Error": {"Code": "UnauthorizedOperation"}}]
        }

        with pytest.raises(CleanupError, match="fl-2"):
            manager.delete(["fl-1", "fl-2"])

    def test_api_failure(self, manager, ec2_client):
        ec2_client.delete_flow_logs.side_effect = _client_error("RequestLimitExceeded")

        with pytest.raises(CleanupError):
            manager.delete(["fl-1"])

    def test_delete_log_group_missing_ok(self, manager, logs_client):
        logs_client.delete_log_group.side_effect = _client_error("ResourceNotFoundException")
        manager.delete_log_group(LOG_GROUP)

    def test_delete_log_group_failure(self, manager, logs_client):
        logs_client.delete_log_group.side_effect = _client_error("AccessDeniedException")

        with pytest.raises(CleanupError) as exc_info:
            manager.delete_log_group(LOG_GROUP)
        assert exc_info.value.resource == LOG_GROUP


class TestCleanupQueries:
    """cleanup 명령용 조회"""

    def test_active_flow_logs(self, manager, ec2_client):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {
                "FlowLogs": [
                    {"FlowLogId": "fl-1", "FlowLogStatus": "ACTIVE"},
                    {"FlowLogId": "fl-2", "FlowLogStatus": "DELETED"},
                ]
            }
        ]
        ec2_client.get_paginator.return_value = paginator

        assert manager.active_flow_logs(LOG_GROUP) == ["fl-1"]
        paginator.paginate.assert_called_once_with(Filter=[{"Name": "log-group-name", "Values": [LOG_GROUP]}])

    @mock_aws
    def test_log_group_lifecycle(self):
        logs = boto3.client("logs", region_name="us-east-1")
        ec2 = boto3.client("ec2", region_name="us-east-1")
        manager = FlowLogManager(ec2, logs)

        assert manager.log_group_stats(LOG_GROUP) is None
        assert manager.create_log_group(LOG_GROUP, "natdoctor-1700000000") is True
        assert manager.create_log_group(LOG_GROUP, "natdoctor-1700000000") is False

        stats = manager.log_group_stats(LOG_GROUP)
        assert stats is not None
        assert stats.name == LOG_GROUP
        assert stats.stream_count == 0
        assert stats.retention_days == 1

        manager.delete_log_group(LOG_GROUP)
        assert manager.log_group_stats(LOG_GROUP) is None
        # 두 번째 삭제는 무시
        manager.delete_log_group(LOG_GROUP)
