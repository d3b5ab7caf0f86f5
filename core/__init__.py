# core/__init__.py
"""
core - natdoctor 공용 인프라

아키텍처:
    core/
    ├── parallel/       # boto3 client 생성, 재시도, 취소 토큰
    ├── tools/cache/    # TTL 파일 캐시 (AWS IP 대역)
    ├── shared/aws/     # AWS IP 대역, 가격표
    ├── config.py       # 중앙 설정 관리
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import settings, resolve_region
    region = resolve_region(None)

    # 예외 처리
    from core.exceptions import APICallError, is_access_denied
    try:
        result = ec2.describe_nat_gateways()
    except Exception as e:
        if is_access_denied(e):
            print("권한이 없습니다")
"""
