"""
core/tools/cache - 공통 캐시 경로 및 TTL 관리

구조:
    ~/.natdoctor/cache/
    └── ip_ranges/
        ├── aws.json
        └── aws.json.timestamp

사용법:
    from core.tools.cache import get_cache_path, get_or_fetch

    data = get_or_fetch("ip_ranges", "aws.json", fetch_fn=download)
"""

from .path import get_cache_dir, get_cache_path, get_timestamp_path
from .ttl import CACHE_TTL, get_or_fetch, is_cache_valid, load_cache, save_cache

__all__ = [
    "get_cache_dir",
    "get_cache_path",
    "get_timestamp_path",
    "CACHE_TTL",
    "get_or_fetch",
    "is_cache_valid",
    "load_cache",
    "save_cache",
]
