"""캐시 경로 유틸리티.

모든 캐시는 ``NATDOCTOR_CACHE_DIR`` (기본 ``~/.natdoctor/cache``) 아래에 저장됩니다.
카테고리별 캐시 디렉토리/파일 경로 생성 함수를 제공합니다.
"""

import os

from core.config import get_cache_root


def get_cache_dir(category: str = "") -> str:
    """캐시 디렉토리 경로 반환

    Args:
        category: 캐시 카테고리 (예: "ip_ranges")
                  빈 문자열이면 루트 캐시 디렉토리 반환

    Returns:
        캐시 디렉토리 절대 경로 (자동 생성됨)
    """
    root = str(get_cache_root())
    cache_dir = os.path.join(root, category) if category else root

    os.makedirs(cache_dir, exist_ok=True)
    return cache_dir


def get_cache_path(category: str, filename: str) -> str:
    """캐시 파일 경로 반환

    Example:
        >>> get_cache_path("ip_ranges", "aws.json")
        '/home/user/.natdoctor/cache/ip_ranges/aws.json'
    """
    return os.path.join(get_cache_dir(category), filename)


def get_timestamp_path(filepath: str) -> str:
    """캐시 파일의 타임스탬프 사이드카 경로 (``<file>.timestamp``)"""
    return f"{filepath}.timestamp"
