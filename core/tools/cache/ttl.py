"""캐시 TTL(Time To Live) 관리.

카테고리별 캐시 유효기간을 관리합니다. 캐시 나이는 데이터 파일 옆에 저장되는
``.timestamp`` 사이드카(ISO 8601, UTC)로 판단하며, 사이드카가 없으면 만료로 봅니다.

Example:
    ::

        from core.tools.cache.ttl import get_or_fetch

        data = get_or_fetch("ip_ranges", "aws.json", fetch_fn=download_ranges)
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from .path import get_cache_path, get_timestamp_path

logger = logging.getLogger(__name__)

# 카테고리별 캐시 TTL 설정
CACHE_TTL: dict[str, timedelta] = {
    "ip_ranges": timedelta(hours=24),
}

# 기본 TTL (설정되지 않은 카테고리)
DEFAULT_TTL = timedelta(hours=12)


def get_ttl(category: str) -> timedelta:
    """카테고리의 TTL 반환 (설정 없으면 DEFAULT_TTL)"""
    return CACHE_TTL.get(category, DEFAULT_TTL)


def read_timestamp(filepath: str) -> datetime | None:
    """사이드카에서 캐시 저장 시각을 읽는다. 없거나 손상되었으면 None."""
    try:
        with open(get_timestamp_path(filepath), encoding="utf-8") as f:
            saved_at = datetime.fromisoformat(f.read().strip())
    except (OSError, ValueError):
        return None
    if saved_at.tzinfo is None:
        saved_at = saved_at.replace(tzinfo=timezone.utc)
    return saved_at


def is_cache_valid(category: str, filepath: str, now: datetime | None = None) -> bool:
    """사이드카 타임스탬프 기반 캐시 유효성 확인

    Args:
        category: 캐시 카테고리 (TTL 조회용)
        filepath: 캐시 파일 경로
        now: 기준 시각 (테스트용, 기본: 현재 UTC)

    Returns:
        캐시가 유효하면 True, 만료되었거나 없으면 False
    """
    if not os.path.exists(filepath):
        return False

    saved_at = read_timestamp(filepath)
    if saved_at is None:
        return False

    now = now or datetime.now(timezone.utc)
    return now - saved_at < get_ttl(category)


def load_cache(filepath: str) -> Any | None:
    """JSON 캐시 로드. 실패 시 None."""
    try:
        with open(filepath, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.debug("캐시 로드 실패 (%s): %s", filepath, e)
        return None


def save_cache(filepath: str, data: Any) -> None:
    """JSON 캐시와 타임스탬프 사이드카를 저장. 실패는 로그만 남긴다."""
    try:
        os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, default=str)
        with open(get_timestamp_path(filepath), "w", encoding="utf-8") as f:
            f.write(datetime.now(timezone.utc).isoformat())
    except OSError as e:
        logger.debug("캐시 저장 실패 (%s): %s", filepath, e)


def get_or_fetch(
    category: str,
    filename: str,
    fetch_fn: Callable[[], Any],
) -> Any:
    """캐시 유효하면 로드, 아니면 fetch_fn 실행 후 저장

    fetch_fn이 실패하면 만료된 캐시라도 있으면 그것을 반환하고,
    캐시가 전혀 없으면 예외를 그대로 전파합니다.
    """
    filepath = get_cache_path(category, filename)

    if is_cache_valid(category, filepath):
        data = load_cache(filepath)
        if data is not None:
            return data

    try:
        data = fetch_fn()
    except Exception as e:
        stale = load_cache(filepath) if os.path.exists(filepath) else None
        if stale is None:
            raise
        logger.warning("새 데이터 조회 실패, 만료된 캐시 사용 (%s/%s): %s", category, filename, e)
        return stale

    save_cache(filepath, data)
    return data
