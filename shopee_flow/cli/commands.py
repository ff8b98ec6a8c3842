"""
CLI 명령어 처리 모듈

서브커맨드:
- summary: 손익 요약 + 최근 마감 목록
- add: 마감 등록
- delete: 마감 삭제
- watch: 실시간 변경 감시 (변경마다 요약 다시 출력)
- demo: 메모리 저장소에 샘플 주문을 넣고 요약 출력
- export: 엑셀 내보내기
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config.logging_config import setup_logging
from ..config.settings import get_settings
from ..core.config import DEFAULT_CONFIG
from ..domain.models import MarginHealth
from ..generators.excel_export import ClosingExcelExporter
from ..notifications.events import Event, EventType
from ..services.dashboard import DashboardContext, open_dashboard
from ..utils.helpers import format_currency, format_percent

HEALTH_STYLES = {
    MarginHealth.HEALTHY: "green",
    MarginHealth.WARNING: "yellow",
    MarginHealth.DANGER: "red",
}

# 데모용 샘플 마감 (A: 100 / 40 / 18% / 3, B: 50 / 20 / 18% / 3)
DEMO_CLOSINGS = [
    {
        "order_id": "240501A",
        "product_name": "Capa iPhone 15 Silicone",
        "sale_price": "100",
        "product_cost": "40",
        "commission_rate": "18",
        "fixed_fee": "3",
    },
    {
        "order_id": "240501B",
        "product_name": "Película de Vidro 3D",
        "sale_price": "50",
        "product_cost": "20",
        "commission_rate": "18",
        "fixed_fee": "3",
    },
]


@dataclass
class CLIConfig:
    """CLI 설정"""
    verbose: bool = False
    use_mock: bool = False
    no_color: bool = False


class CLI:
    """ShopeeFlow CLI 출력"""

    VERSION = __version__

    def __init__(self, config: CLIConfig = None, console: Console = None):
        self.config = config or CLIConfig()
        self.console = console or Console(no_color=self.config.no_color, highlight=False)

    def banner(self):
        self.console.print(Panel.fit(
            f"[bold]ShopeeFlow v{self.VERSION}[/bold]\nShopee 주문 마감 손익 대시보드",
            border_style="red",
        ))

    def print_success(self, message: str):
        self.console.print(f"✅ [green]{message}[/green]")

    def print_error(self, message: str):
        self.console.print(f"❌ [red]{message}[/red]")

    def print_warning(self, message: str):
        self.console.print(f"⚠️ [yellow]{message}[/yellow]")

    def print_summary(self, ctx: DashboardContext, limit: int = 10):
        """KPI + 건전성 + 최근 마감"""
        symbol = ctx.config.currency_symbol
        metrics = ctx.metrics

        kpi = Table(title="손익 요약", show_header=True, header_style="bold")
        kpi.add_column("항목")
        kpi.add_column("값", justify="right")
        kpi.add_row("총 매출", format_currency(metrics.total_gross, symbol))
        kpi.add_row("총 원가", format_currency(metrics.total_cogs, symbol))
        kpi.add_row("총 수수료", format_currency(metrics.total_fees, symbol))
        kpi.add_row("순이익", format_currency(metrics.total_profit, symbol))
        kpi.add_row("마진율", format_percent(metrics.margin))
        kpi.add_row("주문 수", str(metrics.order_count))
        self.console.print(kpi)

        health = ctx.health()
        style = HEALTH_STYLES[health.level]
        self.console.print(f"[{style}]{health.message}[/{style}]")

        if ctx.records:
            self.print_records(ctx, limit)

    def print_records(self, ctx: DashboardContext, limit: int = 10):
        symbol = ctx.config.currency_symbol
        table = Table(title=f"최근 마감 ({min(limit, len(ctx.records))}/{len(ctx.records)})")
        table.add_column("ID", style="dim")
        table.add_column("주문번호")
        table.add_column("상품명")
        table.add_column("판매가", justify="right")
        table.add_column("순이익", justify="right")

        for record in ctx.records[:limit]:
            profit_style = "red" if record.profit < 0 else "green"
            table.add_row(
                record.id,
                record.order_id,
                record.product_name,
                format_currency(record.sale_price, symbol),
                f"[{profit_style}]{format_currency(record.profit, symbol)}[/{profit_style}]",
            )
        self.console.print(table)


def create_parser() -> argparse.ArgumentParser:
    """CLI 파서 생성"""
    parser = argparse.ArgumentParser(
        prog="shopee-flow",
        description="Shopee 주문 마감 손익 대시보드",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
예시:
  # 데모 (메모리 저장소)
  %(prog)s demo

  # 손익 요약
  %(prog)s summary

  # 마감 등록
  %(prog)s add --order-id 240501A --product "Capa iPhone" --sale-price 100 --cost 40

  # 실시간 감시
  %(prog)s watch
"""
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="상세 출력 모드"
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="컬러 출력 비활성화"
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="메모리 저장소 사용 (Supabase 미사용)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {CLI.VERSION}"
    )

    subparsers = parser.add_subparsers(dest="command", help="사용 가능한 명령어")

    summary_parser = subparsers.add_parser("summary", help="손익 요약")
    summary_parser.add_argument("--limit", type=int, default=10, help="표시할 최근 마감 수")

    add_parser = subparsers.add_parser("add", help="마감 등록")
    add_parser.add_argument("--order-id", required=True, help="주문번호")
    add_parser.add_argument("--product", required=True, help="상품명 / SKU")
    add_parser.add_argument("--sale-price", required=True, help="판매가")
    add_parser.add_argument("--cost", required=True, help="상품 원가")
    add_parser.add_argument(
        "--commission",
        default=str(DEFAULT_CONFIG.default_commission_rate),
        help="Shopee 수수료율 %% (기본: 18)"
    )
    add_parser.add_argument("--fixed-fee", default="", help="건당 고정 수수료 (기본: 0)")

    delete_parser = subparsers.add_parser("delete", help="마감 삭제")
    delete_parser.add_argument("record_id", help="삭제할 레코드 ID")

    watch_parser = subparsers.add_parser("watch", help="실시간 변경 감시")
    watch_parser.add_argument(
        "--seconds",
        type=float,
        default=0,
        help="감시 시간 (0이면 Ctrl+C까지)"
    )

    subparsers.add_parser("demo", help="샘플 데이터로 데모 실행")

    export_parser = subparsers.add_parser("export", help="엑셀 내보내기")
    export_parser.add_argument("-o", "--output", help="출력 파일 경로 (.xlsx)")

    return parser


def closing_input_from_args(args) -> Dict[str, Any]:
    """add 인자 → 검증기 입력"""
    return {
        "order_id": args.order_id,
        "product_name": args.product,
        "sale_price": args.sale_price,
        "product_cost": args.cost,
        "commission_rate": args.commission,
        "fixed_fee": args.fixed_fee,
    }


async def _open(args, cli: CLI, live: bool = False) -> Optional[DashboardContext]:
    ctx = await open_dashboard(use_mock=args.mock or None, live=live)
    if ctx.config_error is not None:
        cli.print_error(ctx.config_error.message)
        await ctx.close()
        return None
    if ctx.session is None:
        cli.print_error("로그인 세션을 만들지 못했습니다.")
        await ctx.close()
        return None
    return ctx


async def cmd_summary(args, cli: CLI) -> int:
    ctx = await _open(args, cli)
    if ctx is None:
        return 1
    try:
        if ctx.last_error is not None:
            cli.print_warning(f"목록을 불러오지 못했습니다: {ctx.last_error.message}")
        cli.print_summary(ctx, args.limit)
    finally:
        await ctx.close()
    return 0


async def cmd_add(args, cli: CLI) -> int:
    ctx = await _open(args, cli)
    if ctx is None:
        return 1
    try:
        result = await ctx.submit_closing(closing_input_from_args(args))
        if not result.ok:
            label = f" ({result.field})" if result.field else ""
            cli.print_error(f"{result.message}{label}")
            return 1

        record = result.record
        cli.print_success(
            f"저장되었습니다: {record.order_id} / 순이익 "
            f"{format_currency(record.profit, ctx.config.currency_symbol)}"
        )
        if cli.config.verbose:
            cli.console.print(f"id: {record.id}")
    finally:
        await ctx.close()
    return 0


async def cmd_delete(args, cli: CLI) -> int:
    ctx = await _open(args, cli)
    if ctx is None:
        return 1
    try:
        result = await ctx.delete_closing(args.record_id)
        if not result.ok:
            cli.print_error(result.message)
            return 1
        cli.print_success(f"{result.message} ({args.record_id})")
    finally:
        await ctx.close()
    return 0


async def cmd_watch(args, cli: CLI) -> int:
    ctx = await _open(args, cli, live=True)
    if ctx is None:
        return 1

    def on_refreshed(event: Event):
        cli.console.rule(f"변경 감지 (v{event.data.get('version')})")
        cli.print_summary(ctx)

    def on_failed(event: Event):
        cli.print_warning(event.data.get("error", {}).get("message", "새로고침 실패"))

    subscriptions = [
        ctx.emitter.on(EventType.RECORDS_REFRESHED, on_refreshed),
        ctx.emitter.on(EventType.REFRESH_FAILED, on_failed),
    ]

    cli.print_summary(ctx)
    cli.console.print("[dim]변경 감시 중... (Ctrl+C로 종료)[/dim]")
    try:
        if args.seconds > 0:
            await asyncio.sleep(args.seconds)
        else:
            await asyncio.Event().wait()
    finally:
        for subscription in subscriptions:
            subscription.unsubscribe()
        await ctx.close()
    return 0


async def cmd_demo(args, cli: CLI) -> int:
    ctx = await open_dashboard(use_mock=True, live=True)
    try:
        cli.banner()
        for data in DEMO_CLOSINGS:
            result = await ctx.submit_closing(data)
            if result.ok:
                cli.print_success(f"{data['order_id']} 등록")
            else:
                cli.print_error(result.message)

        # 없는 id 삭제 → 실패, 목록 유지
        result = await ctx.delete_closing("missing-id")
        cli.print_warning(f"없는 주문 삭제 시도: {result.message}")

        await ctx.wait_idle()
        cli.print_summary(ctx)
    finally:
        await ctx.close()
    return 0


async def cmd_export(args, cli: CLI) -> int:
    ctx = await _open(args, cli)
    if ctx is None:
        return 1
    try:
        path = ClosingExcelExporter().generate(ctx.records, ctx.metrics, args.output)
        cli.print_success(f"엑셀 파일 생성: {path} ({len(ctx.records)}건)")
    finally:
        await ctx.close()
    return 0


COMMANDS = {
    "summary": cmd_summary,
    "add": cmd_add,
    "delete": cmd_delete,
    "watch": cmd_watch,
    "demo": cmd_demo,
    "export": cmd_export,
}


def run_cli(argv: Optional[List[str]] = None) -> int:
    """CLI 실행"""
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(level="DEBUG" if args.verbose else settings.log_level)

    cli = CLI(CLIConfig(verbose=args.verbose, use_mock=args.mock, no_color=args.no_color))

    handler = COMMANDS.get(args.command)
    if handler is None:
        # 명령어 없으면 도움말
        cli.banner()
        parser.print_help()
        return 0

    try:
        return asyncio.run(handler(args, cli))
    except KeyboardInterrupt:
        cli.console.print("\n중단되었습니다.")
        return 130


def main():
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
