"""
core/config.py - 중앙 설정 관리

불변 Settings 데이터클래스와 환경변수 헬퍼를 제공합니다.

환경변수:
    NATDOCTOR_CACHE_DIR       캐시 루트 디렉토리 (기본: ~/.natdoctor/cache)
    NATDOCTOR_FLOW_LOGS_ROLE  Flow Log 전달용 IAM Role 이름
    AWS_REGION / AWS_DEFAULT_REGION
    AWS_PROFILE / AWS_DEFAULT_PROFILE
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

__version__ = "0.4.0"


@dataclass(frozen=True)
class Settings:
    """애플리케이션 기본 설정 (불변)"""

    DEFAULT_REGION: str = "us-east-1"
    APP_NAME: str = "natdoctor"

    # Flow Log 전달 IAM Role
    FLOW_LOGS_ROLE_NAME: str = "natdoctor-FlowLogsRole"
    FLOW_LOGS_SERVICE_PRINCIPAL: str = "vpc-flow-logs.amazonaws.com"

    # 로그 그룹
    LOG_GROUP_PREFIX: str = "/aws/vpc/flowlogs"
    LOG_GROUP_RETENTION_DAYS: int = 1

    # 수집 기간 (분)
    DEFAULT_DURATION_MINUTES: int = 15
    MIN_DURATION_MINUTES: int = 5
    MAX_DURATION_MINUTES: int = 60

    # 대기/폴링 (초)
    ACTIVATION_TIMEOUT_SECONDS: int = 600
    ACTIVATION_POLL_SECONDS: int = 30
    PROGRESS_INTERVAL_SECONDS: int = 30
    DATA_WAIT_TIMEOUT_SECONDS: int = 300
    DATA_WAIT_POLL_SECONDS: int = 15
    QUERY_TIMEOUT_SECONDS: int = 300
    QUERY_POLL_SECONDS: int = 2

    # 원시 레코드 쿼리 최대 행 수
    RAW_QUERY_LIMIT: int = 20000

    TOP_SOURCES_LIMIT: int = 10

    SERVICES_OF_INTEREST: tuple[str, ...] = field(default_factory=lambda: ("s3", "dynamodb"))


settings = Settings()


def get_version() -> str:
    """버전 문자열 반환"""
    return __version__


def resolve_region(option: str | None, profile_region: str | None = None) -> str:
    """옵션 > 환경변수 > 프로파일 설정 > Settings.DEFAULT_REGION"""
    return (
        option
        or os.environ.get("AWS_REGION")
        or os.environ.get("AWS_DEFAULT_REGION")
        or profile_region
        or settings.DEFAULT_REGION
    )


def get_default_profile() -> str | None:
    """AWS_PROFILE > AWS_DEFAULT_PROFILE"""
    return os.environ.get("AWS_PROFILE") or os.environ.get("AWS_DEFAULT_PROFILE") or None


def get_cache_root() -> Path:
    """캐시 루트 디렉토리 (NATDOCTOR_CACHE_DIR 우선)"""
    override = os.environ.get("NATDOCTOR_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".natdoctor" / "cache"


def get_flow_logs_role_name() -> str:
    return os.environ.get("NATDOCTOR_FLOW_LOGS_ROLE") or settings.FLOW_LOGS_ROLE_NAME
