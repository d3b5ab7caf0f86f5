"""
목적지 IP 주소 -> AWS 서비스 분류기

AWS가 공개하는 IP 대역 문서(ip-ranges.json)의 서비스 태그로 목적지 주소를 분류한다.

- ``S3`` -> s3
- ``DYNAMODB`` -> dynamodb
- ``EC2`` -> ecr (ECR은 전용 대역이 없어 EC2 대역으로 근사)

S3/DynamoDB 대역은 EC2/AMAZON 대역과 겹칠 수 있으므로 s3, dynamodb, ecr 순서로
검사한다. 어떤 입력이든 예외 없이 분류하며, 매칭되지 않거나 파싱할 수 없는
주소는 other로 분류한다.
"""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Callable, Iterable
from functools import lru_cache
from typing import Any

from core.shared.aws.ip_ranges.providers import AWSPrefix, get_aws_ip_ranges, iter_aws_prefixes

from .models import TrafficService

logger = logging.getLogger(__name__)

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network

# AWS IP 대역 문서의 service 값 -> 분류 태그
SERVICE_TAGS: dict[str, TrafficService] = {
    "S3": TrafficService.S3,
    "DYNAMODB": TrafficService.DYNAMODB,
    "EC2": TrafficService.ECR,
}

# 겹치는 대역에서의 우선순위
CLASSIFICATION_ORDER = (TrafficService.S3, TrafficService.DYNAMODB, TrafficService.ECR)


class AddressClassifier:
    """IP 주소를 서비스 태그로 분류한다.

    Args:
        loader: AWS IP 대역 문서를 반환하는 함수 (기본: 24시간 캐시 적용 다운로드)
    """

    def __init__(self, loader: Callable[[], dict[str, Any]] = get_aws_ip_ranges):
        self._loader = loader
        self._networks: dict[TrafficService, list[IPNetwork]] = {}
        self._loaded = False
        self._classify_cached = lru_cache(maxsize=65536)(self._classify)

    @classmethod
    def from_prefixes(cls, prefixes: Iterable[AWSPrefix]) -> AddressClassifier:
        """이미 파싱된 대역 목록으로 생성 (네트워크 접근 없음)"""
        classifier = cls(loader=dict)
        classifier._index(prefixes)
        return classifier

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        """IP 대역 문서를 로드하여 서비스별 대역을 구성한다.

        Raises:
            IPRangesUnavailableError: 다운로드 실패 + 캐시 없음
        """
        if self._loaded:
            return
        self._index(iter_aws_prefixes(self._loader()))

    def _index(self, prefixes: Iterable[AWSPrefix]) -> None:
        grouped: dict[TrafficService, list[IPNetwork]] = {tag: [] for tag in CLASSIFICATION_ORDER}
        for prefix in prefixes:
            tag = SERVICE_TAGS.get(prefix.service)
            if tag is not None:
                grouped[tag].append(prefix.network)

        # 인접/중복 대역 병합으로 검색 대상 축소
        for tag, networks in grouped.items():
            v4 = [n for n in networks if n.version == 4]
            v6 = [n for n in networks if n.version == 6]
            grouped[tag] = list(ipaddress.collapse_addresses(v4)) + list(ipaddress.collapse_addresses(v6))

        self._networks = grouped
        self._loaded = True
        self._classify_cached.cache_clear()
        logger.debug(
            "서비스 대역 로드: %s",
            ", ".join(f"{tag.value}={len(nets)}" for tag, nets in grouped.items()),
        )

    def classify(self, address: str) -> TrafficService:
        """주소를 분류한다. 잘못된 입력은 other."""
        if not self._loaded:
            self.load()
        if not address:
            return TrafficService.OTHER
        return self._classify_cached(address.strip())

    def _classify(self, address: str) -> TrafficService:
        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            return TrafficService.OTHER

        for tag in CLASSIFICATION_ORDER:
            for network in self._networks.get(tag, ()):
                if network.version == ip.version and ip in network:
                    return tag
        return TrafficService.OTHER
