"""NAT Gateway 트래픽 진단 - 대화형 프롬프트

대상 NAT Gateway 선택, 실행 승인, 로그 그룹 보존 여부 확인
"""

from __future__ import annotations

import logging

import questionary

from analyzers.vpc.nat_traffic.models import NATGateway, ProgressEvent
from analyzers.vpc.nat_traffic.orchestrator import ScanPlan
from analyzers.vpc.nat_traffic.reporter import print_plan

from .ui.console import console
from .ui.progress import ScanProgressTracker

logger = logging.getLogger(__name__)


class PromptInteraction:
    """questionary 기반 ScanInteraction

    Args:
        tracker: 진행 표시 (프롬프트 전에 중지됨)
        auto_approve: 승인 프롬프트 생략
        auto_cleanup: 보존 프롬프트 생략 (삭제)
    """

    def __init__(
        self,
        tracker: ScanProgressTracker | None = None,
        auto_approve: bool = False,
        auto_cleanup: bool = False,
    ):
        self.tracker = tracker or ScanProgressTracker(console)
        self.auto_approve = auto_approve
        self.auto_cleanup = auto_cleanup

    def select_targets(self, nat_gateways: list[NATGateway]) -> list[NATGateway]:
        """진단할 NAT Gateway 선택

        Raises:
            KeyboardInterrupt: 사용자가 취소한 경우
        """
        self.tracker.stop()
        choices = [
            questionary.Choice(
                f"{nat.display_name}  [{nat.vpc_id}, {nat.availability_mode.value}]",
                value=nat.nat_gateway_id,
                checked=True,
            )
            for nat in nat_gateways
        ]
        selected = questionary.checkbox(
            "진단할 NAT Gateway를 선택하세요 (스페이스: 선택/해제):",
            choices=choices,
        ).ask()

        if selected is None:
            raise KeyboardInterrupt("사용자가 취소했습니다.")

        return [nat for nat in nat_gateways if nat.nat_gateway_id in selected]

    def approve(self, plan: ScanPlan) -> bool:
        self.tracker.stop()
        print_plan(plan, console)
        if self.auto_approve:
            return True

        confirmed = questionary.confirm("Flow Log를 생성하고 진단을 시작하시겠습니까?", default=False).ask()
        if confirmed is None:
            raise KeyboardInterrupt("사용자가 취소했습니다.")
        return bool(confirmed)

    def retain_log_group(self, log_group: str) -> bool:
        """로그 그룹 유지 여부. 응답이 없으면 유지."""
        if self.auto_cleanup:
            return False

        self.tracker.stop()
        delete = questionary.confirm(
            f"로그 그룹 {log_group}을(를) 삭제하시겠습니까? (유지 시 1일 후 로그 만료)",
            default=True,
        ).ask()
        if delete is None:
            logger.info("응답 없음 - 로그 그룹 유지")
            return True
        return not delete

    def on_progress(self, event: ProgressEvent) -> None:
        self.tracker.handle(event)
