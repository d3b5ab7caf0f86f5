"""
analyzers - 네트워크 비용 분석 도구
"""
