"""
cli/app.py - 메인 CLI 엔트리포인트

Click 기반의 natdoctor CLI 애플리케이션 진입점입니다.

명령어 구조:
    natdoctor --version                 # 버전 표시
    natdoctor scan quick                # 구성 진단 (리소스 생성 없음)
    natdoctor scan deep                 # Flow Log 기반 트래픽 진단
    natdoctor cleanup --log-group NAME  # 남은 Flow Log / 로그 그룹 정리

    예시:
    natdoctor scan quick -r ap-northeast-2
    natdoctor scan deep -r ap-northeast-2 --duration 15 --nat-gateway-ids nat-0abc
    natdoctor scan deep --auto-approve --auto-cleanup --json

종료 코드:
    0   성공 (승인 거절 포함)
    1   실패
    130 취소 (Ctrl+C, SIGTERM)

Usage:
    $ natdoctor scan deep
    $ python -m cli.app scan quick
"""

import logging
import sys

import click
from botocore.exceptions import BotoCoreError
from click import Context

from core.config import get_default_profile, get_version, resolve_region, settings
from core.exceptions import AAError, PreconditionError, ScanFailedError

# Keep lightweight, centralized logging config
# WARNING 레벨로 설정하여 INFO 로그가 도구 출력에 섞이지 않도록 함
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

VERSION = get_version()

EXIT_FAILURE = 1
EXIT_CANCELLED = 130


def _parse_ids(values: tuple[str, ...]) -> tuple[str, ...]:
    """--nat-gateway-ids a,b --nat-gateway-ids c -> (a, b, c), 중복 제거"""
    ids: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if item and item not in ids:
                ids.append(item)
    return tuple(ids)


def _create_session(profile: str | None, region: str | None):
    """boto3 Session과 최종 리전 (옵션 > 환경변수 > 프로파일 > 기본값)"""
    from core.parallel import create_session

    session = create_session(profile=profile or get_default_profile(), region=region)
    return session, resolve_region(region, session.region_name)


def _print_error(error: BaseException) -> None:
    from cli.ui.console import print_error, print_info

    print_error(str(error))
    hint = getattr(error, "hint", "")
    if hint:
        print_info(hint)


def _report_failure(error: ScanFailedError) -> None:
    from cli.ui.console import print_error, print_info, print_warning

    if error.cancelled:
        print_warning(f"진단이 취소되었습니다 ({error.phase} 단계)")
    else:
        print_error(f"진단 실패 ({error.phase} 단계): {error.cause}")
        hint = getattr(error.cause, "hint", "")
        if hint:
            print_info(hint)

    for cleanup_error in error.cleanup_errors:
        print_error(f"정리 실패: {cleanup_error}")
    if error.retained_log_group:
        print_info(f"로그 그룹 유지: {error.retained_log_group}")
        print_info(f"삭제: natdoctor cleanup --log-group {error.retained_log_group}")


def region_option(f):
    return click.option("-r", "--region", default=None, help="AWS 리전 (기본: AWS_REGION 또는 프로파일 설정)")(f)


def profile_option(f):
    return click.option("-p", "--profile", default=None, help="AWS 프로파일 (기본: AWS_PROFILE)")(f)


@click.group()
@click.version_option(VERSION, prog_name="natdoctor")
@click.option("--debug", is_flag=True, help="디버그 로그 출력")
@click.pass_context
def cli(ctx: Context, debug: bool) -> None:
    """natdoctor - NAT Gateway 트래픽 진단

    NAT Gateway를 지나는 트래픽을 AWS 서비스별로 분류하고
    Gateway Endpoint로 절감 가능한 비용을 추정합니다.
    """
    from cli.ui.console import configure_logging

    configure_logging(debug)

    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


# =============================================================================
# scan 명령어
# =============================================================================


@cli.group("scan")
def scan_group() -> None:
    """NAT Gateway 진단"""


@scan_group.command("quick")
@region_option
@profile_option
@click.option("--vpc-id", default=None, help="특정 VPC만 진단")
@click.option("--nat-gateway-ids", "nat_gateway_ids", multiple=True, help="NAT Gateway ID (쉼표 구분, 다중 가능)")
@click.option("--json", "as_json", is_flag=True, help="JSON 형식으로 출력")
def scan_quick(
    region: str | None,
    profile: str | None,
    vpc_id: str | None,
    nat_gateway_ids: tuple[str, ...],
    as_json: bool,
) -> None:
    """구성 진단 (Flow Log 생성 없음)

    \b
    NAT Gateway 목록, S3/DynamoDB Gateway Endpoint 누락,
    Route Table 연결 누락을 점검합니다.
    """
    from analyzers.vpc.nat_traffic import TopologyCollector, run_quick_scan
    from analyzers.vpc.nat_traffic.reporter import print_json, render_quick_scan
    from cli.ui.console import console
    from core.parallel import get_client

    try:
        session, resolved_region = _create_session(profile, region)
        collector = TopologyCollector(get_client(session, "ec2", region_name=resolved_region))
        result = run_quick_scan(collector, resolved_region, vpc_id, _parse_ids(nat_gateway_ids))
    except (AAError, BotoCoreError) as e:
        _print_error(e)
        raise SystemExit(EXIT_FAILURE) from e

    if as_json:
        print_json(result.to_dict(), console)
    else:
        render_quick_scan(result, console)


@scan_group.command("deep")
@region_option
@profile_option
@click.option(
    "-d",
    "--duration",
    type=click.IntRange(settings.MIN_DURATION_MINUTES, settings.MAX_DURATION_MINUTES),
    default=settings.DEFAULT_DURATION_MINUTES,
    show_default=True,
    help="트래픽 수집 시간 (분)",
)
@click.option("--vpc-id", default=None, help="특정 VPC의 NAT Gateway만 대상")
@click.option("--nat-gateway-ids", "nat_gateway_ids", multiple=True, help="NAT Gateway ID (쉼표 구분, 다중 가능)")
@click.option("--role-name", default=None, help="Flow Log 전달 IAM 역할 (기본: NATDOCTOR_FLOW_LOGS_ROLE)")
@click.option("-y", "--auto-approve", is_flag=True, help="승인 프롬프트 생략")
@click.option("--auto-cleanup", is_flag=True, help="진단 후 로그 그룹 자동 삭제")
@click.option("--json", "as_json", is_flag=True, help="JSON 형식으로 출력")
def scan_deep(
    region: str | None,
    profile: str | None,
    duration: int,
    vpc_id: str | None,
    nat_gateway_ids: tuple[str, ...],
    role_name: str | None,
    auto_approve: bool,
    auto_cleanup: bool,
    as_json: bool,
) -> None:
    """트래픽 진단 (임시 Flow Log 생성)

    \b
    1. NAT Gateway 조회 및 대상 선택
    2. 실행 승인 후 Flow Log / 로그 그룹 생성
    3. 지정 시간 동안 트래픽 수집
    4. 서비스별 분류, 월간 비용/절감액 추정
    5. Flow Log 삭제 (실패/취소 시에도 항상)
    """
    from analyzers.vpc.nat_traffic import HeadlessInteraction, ScanClients, ScanOptions, ScanOrchestrator
    from analyzers.vpc.nat_traffic.reporter import print_json, render_deep_scan
    from cli.prompts import PromptInteraction
    from cli.ui.console import console, print_info, print_warning
    from cli.ui.progress import scan_progress
    from core.parallel import CancellationToken, cancel_on_signals

    try:
        session, resolved_region = _create_session(profile, region)
        options_kwargs = {"role_name": role_name} if role_name else {}
        options = ScanOptions(
            region=resolved_region,
            profile=profile,
            duration_minutes=duration,
            nat_gateway_ids=_parse_ids(nat_gateway_ids),
            vpc_id=vpc_id,
            auto_approve=auto_approve,
            auto_cleanup=auto_cleanup,
            **options_kwargs,
        )
        options.validate()
        clients = ScanClients.from_session(session, resolved_region)
    except (PreconditionError, BotoCoreError) as e:
        _print_error(e)
        raise SystemExit(EXIT_FAILURE) from e

    interactive = sys.stdin.isatty() and not as_json
    if not interactive and not auto_approve:
        print_warning("비대화형 실행에서는 --auto-approve 없이 리소스를 생성하지 않습니다")

    token = CancellationToken()
    with scan_progress(console) as tracker, cancel_on_signals(token):
        if interactive:
            interaction = PromptInteraction(tracker, auto_approve=auto_approve, auto_cleanup=auto_cleanup)
        else:
            interaction = HeadlessInteraction(auto_approve=auto_approve, auto_cleanup=auto_cleanup)

        try:
            result = ScanOrchestrator(clients, options, interaction).run(token)
        except ScanFailedError as e:
            tracker.stop()
            _report_failure(e)
            raise SystemExit(EXIT_CANCELLED if e.cancelled else EXIT_FAILURE) from e

    if as_json:
        print_json(result.to_dict(), console)
        return

    render_deep_scan(result, console)
    if result.cancelled:
        print_info("리소스를 생성하지 않고 종료했습니다")


# =============================================================================
# cleanup 명령어
# =============================================================================


@cli.command("cleanup")
@click.option("--log-group", "log_group", required=True, help="정리할 로그 그룹 이름")
@region_option
@profile_option
@click.option("-f", "--force", is_flag=True, help="확인 없이 삭제 (natdoctor가 만들지 않은 그룹 포함)")
def cleanup_command(log_group: str, region: str | None, profile: str | None, force: bool) -> None:
    """남은 Flow Log와 로그 그룹 삭제

    \b
    Examples:
        natdoctor cleanup --log-group /aws/vpc/flowlogs/natdoctor-1700000000
        natdoctor cleanup --log-group /aws/vpc/flowlogs/natdoctor-1700000000 --force
    """
    from analyzers.vpc.nat_traffic import FlowLogManager
    from analyzers.vpc.nat_traffic.reporter import format_bytes
    from cli.ui.console import console, print_error, print_info, print_success
    from core.parallel import get_cleanup_client, get_client
    from core.shared.aws.pricing import BYTES_PER_GB, get_cloudwatch_storage_price

    managed_prefix = f"{settings.LOG_GROUP_PREFIX}/{settings.APP_NAME}-"
    if not log_group.startswith(managed_prefix) and not force:
        print_error(f"natdoctor가 생성한 로그 그룹이 아닙니다: {log_group}")
        print_info("그래도 삭제하려면 --force를 사용하세요")
        raise SystemExit(EXIT_FAILURE)

    try:
        session, resolved_region = _create_session(profile, region)
        manager = FlowLogManager(
            get_client(session, "ec2", region_name=resolved_region),
            get_client(session, "logs", region_name=resolved_region),
            cleanup_ec2=get_cleanup_client(session, "ec2", region_name=resolved_region),
            cleanup_logs=get_cleanup_client(session, "logs", region_name=resolved_region),
        )
        stats = manager.log_group_stats(log_group)
        flow_log_ids = manager.active_flow_logs(log_group)
    except (AAError, BotoCoreError) as e:
        _print_error(e)
        raise SystemExit(EXIT_FAILURE) from e

    if stats is None and not flow_log_ids:
        print_info(f"정리할 리소스가 없습니다: {log_group}")
        return

    console.print(f"[bold]{log_group}[/bold] ({resolved_region})")
    if stats is not None:
        storage_cost = stats.stored_bytes / BYTES_PER_GB * get_cloudwatch_storage_price(resolved_region)
        console.print(
            f"  저장 용량: {format_bytes(stats.stored_bytes)} (월 ${storage_cost:,.2f}), 스트림 {stats.stream_count}개"
        )
    if flow_log_ids:
        console.print(f"  전달 중인 Flow Log: {', '.join(flow_log_ids)}")

    if not force and not click.confirm("삭제하시겠습니까?"):
        console.print("[dim]취소되었습니다[/dim]")
        return

    try:
        manager.delete(flow_log_ids)
        if stats is not None:
            manager.delete_log_group(log_group)
    except AAError as e:
        _print_error(e)
        raise SystemExit(EXIT_FAILURE) from e

    print_success(f"정리 완료: {log_group}")


if __name__ == "__main__":
    cli()
