"""
cli - natdoctor 명령줄 인터페이스

click 명령, rich 출력, questionary 프롬프트
"""
