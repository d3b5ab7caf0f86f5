"""
core/parallel/client.py - boto3 client 생성 헬퍼

Retry(adaptive 모드) + 타임아웃이 설정된 boto3 client를 생성합니다.

주요 구성 요소:
- get_client: retry 설정이 적용된 boto3 client 생성
- get_cleanup_client: 정리 작업용 client (짧은 타임아웃, 적은 재시도)
- create_session: 프로파일/리전으로 boto3 Session 생성

Example:
    from core.parallel.client import create_session, get_client

    session = create_session(profile="dev", region="ap-northeast-2")
    ec2 = get_client(session, "ec2")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, cast

if TYPE_CHECKING:
    import boto3

# Retry mode 타입 (botocore TypedDict와 호환)
RetryMode = Literal["legacy", "standard", "adaptive"]

# 기본 retry 설정
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_MODE: RetryMode = "adaptive"
DEFAULT_CONNECT_TIMEOUT = 10  # 초
DEFAULT_READ_TIMEOUT = 30  # 초

# 정리 작업은 프로세스 종료를 오래 막지 않아야 함
CLEANUP_MAX_ATTEMPTS = 3
CLEANUP_CONNECT_TIMEOUT = 5
CLEANUP_READ_TIMEOUT = 10


def create_session(profile: str | None = None, region: str | None = None) -> boto3.Session:
    """boto3 Session 생성

    Args:
        profile: AWS 프로파일 이름 (None이면 기본 자격 증명 체인)
        region: 리전 (None이면 프로파일/환경변수 설정)
    """
    import boto3

    return boto3.Session(profile_name=profile, region_name=region)


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: int = DEFAULT_READ_TIMEOUT,
    **kwargs: Any,
) -> Any:
    """Retry가 적용된 boto3 client 생성

    Args:
        session: boto3 Session
        service_name: AWS 서비스 이름 (ec2, logs, iam 등)
        region_name: 리전 (None이면 세션 기본값)
        max_attempts: 최대 시도 횟수 (기본: 5)
        retry_mode: 재시도 모드 ('adaptive' 또는 'standard')
        connect_timeout: 연결 타임아웃 (초)
        read_timeout: 읽기 타임아웃 (초)
        **kwargs: session.client()에 전달할 추가 인자

    Returns:
        boto3 client
    """
    from botocore.config import Config

    config = Config(
        retries={"max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
    )

    if "config" in kwargs:
        existing = kwargs.pop("config")
        config = config.merge(existing)

    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name,
        config=config,
        **kwargs,
    )


def get_cleanup_client(session: boto3.Session, service_name: str, region_name: str | None = None) -> Any:
    """정리 작업용 client (standard 재시도, 짧은 타임아웃)"""
    return get_client(
        session,
        service_name,
        region_name=region_name,
        max_attempts=CLEANUP_MAX_ATTEMPTS,
        retry_mode="standard",
        connect_timeout=CLEANUP_CONNECT_TIMEOUT,
        read_timeout=CLEANUP_READ_TIMEOUT,
    )
