"""
진단 결과 콘솔 출력 (Rich)

- NAT Gateway 목록
- 서비스별 트래픽 분포 / 상위 출발지
- 월간 비용 추정 및 절감액
- 구성 문제(Finding)와 권장 사항, 실행 명령
"""

from __future__ import annotations

import json

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .cost import CostEstimate, FlowLogsCostEstimate
from .endpoints import EndpointAnalysis, Finding
from .models import NATGateway, TrafficService
from .orchestrator import DeepScanResult, QuickScanResult, ScanPlan
from .recommendations import Recommendation
from .traffic import TrafficStats

console = Console()

SERVICE_LABELS = {
    TrafficService.S3: "S3",
    TrafficService.DYNAMODB: "DynamoDB",
    TrafficService.ECR: "ECR / EC2",
    TrafficService.OTHER: "기타",
}


def format_bytes(nbytes: float) -> str:
    value = float(nbytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(value) < 1024:
            return f"{value:,.1f} {unit}" if unit != "B" else f"{int(value):,} B"
        value /= 1024
    return f"{value:,.2f} TB"


def format_usd(amount: float) -> str:
    return f"${amount:,.2f}"


# =============================================================================
# 구성 요소
# =============================================================================


def print_nat_gateways(nat_gateways: tuple[NATGateway, ...] | list[NATGateway], out: Console | None = None) -> None:
    out = out or console
    table = Table(title="NAT Gateway", show_header=True, header_style="bold magenta")
    table.add_column("ID")
    table.add_column("이름")
    table.add_column("VPC")
    table.add_column("모드")
    table.add_column("상태")
    table.add_column("퍼블릭 IP")

    for nat in nat_gateways:
        mode = "[cyan]regional[/cyan]" if nat.is_regional else "zonal"
        table.add_row(
            nat.nat_gateway_id,
            nat.name or "-",
            nat.vpc_id,
            mode,
            nat.state,
            ", ".join(nat.public_ips) or "-",
        )
    out.print(table)


def print_traffic(stats: TrafficStats, out: Console | None = None) -> None:
    out = out or console
    if stats.is_empty:
        out.print("[yellow]! 수집 구간 동안 NAT Gateway 트래픽이 없습니다[/yellow]")
        return

    table = Table(title="서비스별 트래픽", show_header=True, header_style="bold magenta")
    table.add_column("서비스")
    table.add_column("전송량", justify="right")
    table.add_column("비율", justify="right")
    table.add_column("레코드", justify="right")

    for tag in TrafficService:
        table.add_row(
            SERVICE_LABELS[tag],
            format_bytes(stats.bytes_for(tag)),
            f"{stats.percentage(tag):.1f}%",
            f"{stats.records_for(tag):,}",
        )
    table.add_row(
        "[bold]합계[/bold]",
        f"[bold]{format_bytes(stats.total_bytes)}[/bold]",
        "100.0%",
        f"{stats.total_records:,}",
    )
    out.print(table)
    out.print(f"[dim]집계 방식: {stats.source}[/dim]")

    sources = stats.top_sources()
    if not sources:
        return

    src_table = Table(title="상위 출발지", show_header=True, header_style="bold magenta")
    src_table.add_column("출발지 IP")
    src_table.add_column("전송량", justify="right")
    src_table.add_column("레코드", justify="right")
    for src in sources:
        src_table.add_row(src.address, format_bytes(src.bytes), f"{src.records:,}")
    out.print(src_table)


def print_cost(cost: CostEstimate, out: Console | None = None) -> None:
    out = out or console
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", width=22)
    table.add_column()
    table.add_row("데이터 처리 단가", f"{format_usd(cost.price_per_gb)}/GB ({cost.region})")
    table.add_row("수집 구간", f"{cost.sample_minutes:.1f}분")
    table.add_row("월간 예상 처리량", f"{cost.monthly_gb:,.2f} GB")
    table.add_row("월간 예상 비용", format_usd(cost.current_monthly_cost))
    for tag in (TrafficService.S3, TrafficService.DYNAMODB):
        table.add_row(f"{SERVICE_LABELS[tag]} 절감 가능", format_usd(cost.savings_for(tag)))
    table.add_row(
        "[bold]총 절감 가능[/bold]",
        f"[bold green]{format_usd(cost.total_savings_monthly)}/월[/bold green] "
        f"({format_usd(cost.total_savings_annual)}/년)",
    )
    out.print(Panel(table, title="비용 추정 (추정치)", border_style="#FF9900"))


def print_flow_logs_cost(estimate: FlowLogsCostEstimate, out: Console | None = None) -> None:
    out = out or console
    out.print(f"[dim]Flow Logs 예상 비용: {estimate.describe()}[/dim]")


def print_plan(plan: ScanPlan, out: Console | None = None) -> None:
    """승인 전 실행 계획"""
    out = out or console
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", width=16)
    table.add_column()
    table.add_row("실행 ID", plan.run_id)
    table.add_row("리전", plan.region)
    table.add_row("대상", ", ".join(nat.display_name for nat in plan.nat_gateways))
    table.add_row("수집 시간", f"{plan.duration_minutes}분")
    table.add_row("로그 그룹", plan.log_group)
    table.add_row("IAM 역할", plan.role_arn)
    table.add_row("예상 비용", plan.flow_logs_cost.describe())
    out.print(Panel(table, title="실행 계획", border_style="#FF9900"))
    out.print("[dim]Flow Log와 CloudWatch 로그 그룹이 임시로 생성되며 진단 후 Flow Log는 삭제됩니다[/dim]")


def print_endpoint_analyses(analyses: dict[str, EndpointAnalysis], out: Console | None = None) -> None:
    out = out or console
    for vpc_id, analysis in analyses.items():
        table = Table(title=f"VPC Endpoint - {vpc_id}", show_header=True, header_style="bold magenta")
        table.add_column("서비스")
        table.add_column("Gateway Endpoint")
        table.add_column("NAT Route Table 연결")

        for service in ("s3", "dynamodb"):
            endpoint = analysis.gateway_endpoints.get(service)
            missing = [m for m in analysis.missing_associations if m.service == service]
            if endpoint is None:
                status = "[red]없음[/red]" if analysis.nat_route_tables else "[dim]없음[/dim]"
                associated = "-"
            else:
                status = f"[green]{endpoint.endpoint_id}[/green]"
                associated = (
                    f"[yellow]{len(missing)}개 누락[/yellow]" if missing else "[green]모두 연결[/green]"
                )
            table.add_row(service, status, associated)
        out.print(table)

        if analysis.interface_costs:
            out.print(
                f"[dim]Interface Endpoint {len(analysis.interface_costs)}개: "
                f"월 {format_usd(analysis.interface_monthly_cost)}[/dim]"
            )


def print_findings(findings: tuple[Finding, ...] | list[Finding], out: Console | None = None) -> None:
    out = out or console
    if not findings:
        out.print("[green]✓ Endpoint 구성 문제 없음[/green]")
        return
    for finding in findings:
        out.print(f"[red]✗ {finding.title}[/red]")
        out.print(f"   {finding.description}")
        out.print(f"   [dim]조치: {finding.action} / 효과: {finding.impact}[/dim]")


def print_recommendations(
    recommendations: tuple[Recommendation, ...] | list[Recommendation],
    out: Console | None = None,
) -> None:
    out = out or console
    for rec in recommendations:
        lines = [f"[bold]{rec.title}[/bold]", rec.description]
        if rec.benefits:
            lines.append("")
            lines.extend(f"  • {benefit}" for benefit in rec.benefits)
        if rec.savings:
            lines.append("")
            lines.append(f"[green]{rec.savings}[/green]")
        out.print(Panel("\n".join(lines), title=f"권장 [{rec.priority}]", border_style="cyan"))
        if rec.commands:
            out.print("\n".join(rec.commands), markup=False, highlight=False)
            out.print()


# =============================================================================
# 결과 전체
# =============================================================================


def render_quick_scan(result: QuickScanResult, out: Console | None = None) -> None:
    out = out or console
    out.print()
    out.print(f"[bold underline cyan]NAT Gateway 구성 진단 ({result.region})[/bold underline cyan]")
    out.print()
    print_nat_gateways(result.nat_gateways, out)
    print_endpoint_analyses(result.endpoint_analyses, out)
    print_findings(result.findings, out)
    print_recommendations(result.recommendations, out)


def render_deep_scan(result: DeepScanResult, out: Console | None = None) -> None:
    out = out or console
    out.print()
    out.print(f"[bold underline cyan]NAT Gateway 트래픽 진단 ({result.region})[/bold underline cyan]")
    if result.account_id:
        out.print(f"[dim]계정 {result.account_id} / 실행 ID {result.run_id}[/dim]")
    out.print()

    print_nat_gateways(result.nat_gateways, out)
    if result.cancelled:
        out.print("[yellow]! 실행이 승인되지 않아 리소스를 생성하지 않았습니다[/yellow]")
        return

    if result.traffic is not None:
        print_traffic(result.traffic, out)
    if result.cost is not None:
        print_cost(result.cost, out)
    print_endpoint_analyses(result.endpoint_analyses, out)
    print_findings(result.findings, out)
    print_recommendations(result.recommendations, out)

    if result.log_group_retained:
        out.print(f"[blue]• 로그 그룹 유지: {result.log_group}[/blue]")
        out.print(f"[dim]  삭제: natdoctor cleanup --log-group {result.log_group}[/dim]")
    for error in result.cleanup_errors:
        out.print(f"[red]✗ 정리 실패: {error}[/red]")


def print_json(data: dict, out: Console | None = None) -> None:
    out = out or console
    out.print_json(json.dumps(data, ensure_ascii=False, default=str))
