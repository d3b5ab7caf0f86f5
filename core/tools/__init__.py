# core/tools - 공용 도구
"""
공용 도구 모음

    cache/  # TTL 파일 캐시 (AWS IP 대역 문서)
"""
