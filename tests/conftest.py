"""
tests/conftest.py - pytest 공통 픽스처

AWS 자격 증명 격리, 캐시 디렉토리 격리, boto3 client 모킹과 테스트 데이터 헬퍼를 제공합니다.

Usage:
    def test_something(ec2_client, sample_ip_ranges):
        # ec2_client: MagicMock EC2 client
        # sample_ip_ranges: 최소 AWS IP 대역 문서
        pass
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from analyzers.vpc.nat_traffic.classifier import AddressClassifier  # noqa: E402
from analyzers.vpc.nat_traffic.models import AvailabilityMode, NATGateway  # noqa: E402

# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """테스트 환경 설정 (실제 자격 증명/캐시와 격리)"""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv("NATDOCTOR_FLOW_LOGS_ROLE", raising=False)
    monkeypatch.setenv("NATDOCTOR_CACHE_DIR", str(tmp_path / "cache"))

    yield


# =============================================================================
# AWS client 모킹 픽스처
# =============================================================================


@pytest.fixture
def ec2_client():
    """EC2 클라이언트 모킹 (페이지네이터 기본: 빈 결과)"""
    mock_client = MagicMock()
    mock_paginator = MagicMock()
    mock_paginator.paginate.return_value = [{}]
    mock_client.get_paginator.return_value = mock_paginator
    return mock_client


@pytest.fixture
def logs_client():
    """CloudWatch Logs 클라이언트 모킹"""
    return MagicMock()


@pytest.fixture
def iam_client():
    """IAM 클라이언트 모킹 (유효한 Flow Log 역할)"""
    mock_client = MagicMock()
    mock_client.get_role.return_value = {
        "Role": {
            "RoleName": "natdoctor-FlowLogsRole",
            "Arn": "arn:aws:iam::123456789012:role/natdoctor-FlowLogsRole",
            "AssumeRolePolicyDocument": {
                "Version": "2012-10-17",
                "Statement": [
                    {
                        "Effect": "Allow",
                        "Principal": {"Service": "vpc-flow-logs.amazonaws.com"},
                        "Action": "sts:AssumeRole",
                    }
                ],
            },
        }
    }

    attached = MagicMock()
    attached.paginate.return_value = [{"AttachedPolicies": [{"PolicyName": "CloudWatchLogsFullAccess"}]}]
    inline = MagicMock()
    inline.paginate.return_value = [{"PolicyNames": []}]
    mock_client.get_paginator.side_effect = lambda name: attached if name == "list_attached_role_policies" else inline
    return mock_client


# =============================================================================
# 테스트 데이터
# =============================================================================


@pytest.fixture
def sample_ip_ranges():
    """S3 / DynamoDB / EC2 대역이 하나씩 있는 최소 IP 대역 문서"""
    return {
        "syncToken": "1700000000",
        "createDate": "2024-01-01-00-00-00",
        "prefixes": [
            {"ip_prefix": "52.216.0.0/15", "region": "us-east-1", "service": "AMAZON"},
            {"ip_prefix": "52.216.0.0/15", "region": "us-east-1", "service": "S3"},
            {"ip_prefix": "3.218.180.0/22", "region": "us-east-1", "service": "DYNAMODB"},
            {"ip_prefix": "3.80.0.0/12", "region": "us-east-1", "service": "EC2"},
        ],
        "ipv6_prefixes": [
            {"ipv6_prefix": "2600:1f18::/33", "region": "us-east-1", "service": "EC2"},
        ],
    }


@pytest.fixture
def classifier(sample_ip_ranges):
    """네트워크 접근 없이 로드되는 분류기"""
    instance = AddressClassifier(loader=lambda: sample_ip_ranges)
    instance.load()
    return instance


def make_nat(
    nat_gateway_id: str = "nat-0aaa",
    vpc_id: str = "vpc-1",
    regional: bool = False,
    eni: str = "eni-0aaa",
) -> NATGateway:
    """NATGateway 테스트 객체 생성"""
    return NATGateway(
        nat_gateway_id=nat_gateway_id,
        vpc_id=vpc_id,
        subnet_id="" if regional else "subnet-1",
        availability_mode=AvailabilityMode.REGIONAL if regional else AvailabilityMode.ZONAL,
        network_interface_id="" if regional else eni,
        public_ips=("203.0.113.10",),
        tags={"Name": f"{nat_gateway_id}-name"},
    )


@pytest.fixture
def nat_factory():
    return make_nat
