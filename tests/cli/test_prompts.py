# tests/cli/test_prompts.py
"""
cli/prompts.py 테스트 - questionary 기반 대화형 상호작용
"""

from unittest.mock import MagicMock, patch

import pytest

from analyzers.vpc.nat_traffic.cost import estimate_flow_logs_cost
from analyzers.vpc.nat_traffic.models import ProgressEvent, ScanPhase
from analyzers.vpc.nat_traffic.orchestrator import ScanPlan
from cli.prompts import PromptInteraction


@pytest.fixture
def tracker():
    return MagicMock()


@pytest.fixture
def plan(nat_factory):
    return ScanPlan(
        run_id="natdoctor-1700000000",
        region="us-east-1",
        log_group="/aws/vpc/flowlogs/natdoctor-1700000000",
        role_arn="arn:aws:iam::123456789012:role/natdoctor-FlowLogsRole",
        nat_gateways=(nat_factory(),),
        duration_minutes=15,
        flow_logs_cost=estimate_flow_logs_cost(None, ["nat-0aaa"], 15, "us-east-1"),
    )


def _answer(value):
    prompt = MagicMock()
    prompt.ask.return_value = value
    return prompt


class TestSelectTargets:
    """대상 선택"""

    def test_selected_subset(self, tracker, nat_factory):
        nats = [nat_factory("nat-a"), nat_factory("nat-b")]

        with patch("cli.prompts.questionary.checkbox", return_value=_answer(["nat-b"])) as mock_checkbox:
            selected = PromptInteraction(tracker).select_targets(nats)

        assert selected == [nats[1]]
        tracker.stop.assert_called_once()
        choices = mock_checkbox.call_args.kwargs["choices"]
        assert [c.value for c in choices] == ["nat-a", "nat-b"]

    def test_escape_raises_interrupt(self, tracker, nat_factory):
        with patch("cli.prompts.questionary.checkbox", return_value=_answer(None)):
            with pytest.raises(KeyboardInterrupt):
                PromptInteraction(tracker).select_targets([nat_factory()])


class TestApprove:
    """실행 승인"""

    def test_confirmed(self, tracker, plan):
        with patch("cli.prompts.print_plan"), patch("cli.prompts.questionary.confirm", return_value=_answer(True)):
            assert PromptInteraction(tracker).approve(plan) is True

    def test_declined(self, tracker, plan):
        with patch("cli.prompts.print_plan"), patch("cli.prompts.questionary.confirm", return_value=_answer(False)):
            assert PromptInteraction(tracker).approve(plan) is False

    def test_auto_approve_skips_prompt(self, tracker, plan):
        with patch("cli.prompts.print_plan") as mock_plan, patch("cli.prompts.questionary.confirm") as mock_confirm:
            assert PromptInteraction(tracker, auto_approve=True).approve(plan) is True

        mock_plan.assert_called_once()
        mock_confirm.assert_not_called()

    def test_escape_raises_interrupt(self, tracker, plan):
        with patch("cli.prompts.print_plan"), patch("cli.prompts.questionary.confirm", return_value=_answer(None)):
            with pytest.raises(KeyboardInterrupt):
                PromptInteraction(tracker).approve(plan)


class TestRetainLogGroup:
    """로그 그룹 보존 여부"""

    def test_delete_answer(self, tracker):
        with patch("cli.prompts.questionary.confirm", return_value=_answer(True)):
            assert PromptInteraction(tracker).retain_log_group("/aws/vpc/flowlogs/x") is False

    def test_keep_answer(self, tracker):
        with patch("cli.prompts.questionary.confirm", return_value=_answer(False)):
            assert PromptInteraction(tracker).retain_log_group("/aws/vpc/flowlogs/x") is True

    def test_no_answer_keeps(self, tracker):
        with patch("cli.prompts.questionary.confirm", return_value=_answer(None)):
            assert PromptInteraction(tracker).retain_log_group("/aws/vpc/flowlogs/x") is True

    def test_auto_cleanup(self, tracker):
        with patch("cli.prompts.questionary.confirm") as mock_confirm:
            assert PromptInteraction(tracker, auto_cleanup=True).retain_log_group("/aws/vpc/flowlogs/x") is False
        mock_confirm.assert_not_called()


def test_progress_forwarded(tracker):
    event = ProgressEvent(ScanPhase.DISCOVER, "NAT Gateway 조회 중")
    PromptInteraction(tracker).on_progress(event)
    tracker.handle.assert_called_once_with(event)
