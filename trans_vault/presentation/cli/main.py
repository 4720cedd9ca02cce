# trans_vault/presentation/cli/main.py
"""Trans-Vault 命令行工具：查看翻译文件、提交翻译、查询统计。"""

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated, Literal, Optional

import typer
from rich.console import Console
from rich.table import Table

from trans_vault.bootstrap import create_app_config, create_container
from trans_vault.containers import ApplicationContainer
from trans_vault.core.exceptions import ContractViolationError
from trans_vault.core.types import SubmittedTranslation

from ._utils import running_container

app = typer.Typer(
    name="trans-vault",
    help="翻译持久化与一致性引擎的命令行管理工具。",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

UNIT_ARG = Annotated[str, typer.Argument(help="存储单元（模拟或公共库）名称。")]
LOCALE_ARG = Annotated[str, typer.Argument(help="语言代码，例如 'es'。")]


def _warn_if_ephemeral_store(container: ApplicationContainer) -> None:
    """进程内存储只在本次命令运行期间存在。"""
    if container.pydantic_config().store.kind == "memory":
        console.print(
            "[yellow]⚠️ 当前使用进程内存储 (store.kind=memory)：每次运行都从空存储开始，"
            "读取结果总为空，统计总为零且不会显示“待更新”。"
            "请设置 TRANSVAULT_STORE__KIND=github 以访问内容仓库。[/yellow]"
        )


@app.callback()
def main(ctx: typer.Context) -> None:
    """加载配置并创建 DI 容器，供所有子命令使用。"""
    env_mode_str = os.getenv("TRANSVAULT_ENV", "prod").lower()
    if env_mode_str not in ("prod", "dev", "test"):
        env_mode_str = "prod"
    env_mode: Literal["prod", "dev", "test"] = env_mode_str  # type: ignore[assignment]

    try:
        config = create_app_config(env_mode=env_mode)
    except Exception as e:
        console.print(f"[bold red]❌ 启动失败：无法加载配置: {e}[/bold red]")
        raise typer.Exit(code=1) from e
    ctx.obj = create_container(config, service_name="trans-vault-cli")


@app.command("show")
def show(
    ctx: typer.Context,
    unit: UNIT_ARG,
    locale: LOCALE_ARG,
    ref: Annotated[Optional[str], typer.Option(help="要读取的分支或提交。")] = None,
) -> None:
    """显示某个单元某种语言的已存储翻译。"""
    container: ApplicationContainer = ctx.obj
    _warn_if_ephemeral_store(container)

    async def _run():
        async with running_container(container):
            return await container.store().get(unit, locale, ref=ref)

    file = asyncio.run(_run())
    if file.is_empty:
        console.print(f"[yellow]⚠️ {unit} 没有 {locale} 的已存储翻译。[/yellow]")
        return

    table = Table(title=f"{unit} ({locale})")
    table.add_column("键", style="cyan")
    table.add_column("值")
    table.add_column("历史", justify="right")
    table.add_column("最后编辑者", style="dim")
    for key, record in file.records.items():
        last = record.history[-1] if record.history else None
        table.add_row(
            key,
            record.value or "[dim](已擦除)[/dim]",
            str(len(record.history)),
            str(last.submitter_id) if last and last.submitter_id is not None else "-",
        )
    console.print(table)


@app.command("submit")
def submit(
    ctx: typer.Context,
    file: Annotated[
        Path,
        typer.Argument(exists=True, dir_okay=False, help="包含一次翻译提交的 JSON 文件。"),
    ],
) -> None:
    """从 JSON 文件读取一次翻译提交并存储。"""
    container: ApplicationContainer = ctx.obj
    try:
        translation = SubmittedTranslation.from_payload(
            json.loads(file.read_text(encoding="utf-8"))
        )
    except (json.JSONDecodeError, ContractViolationError) as e:
        console.print(f"[bold red]❌ 提交文件无效: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    async def _run():
        async with running_container(container):
            return await container.submission_service().submit(translation)

    status = asyncio.run(_run())
    stored = "[green]是[/green]" if status.all_units_stored else "[red]否[/red]"
    built = "[green]是[/green]" if status.build_requested else "[yellow]否[/yellow]"
    console.print(f"全部单元已存储: {stored}    已请求构建: {built}")
    if not status.all_units_stored and container.pydantic_config().perform_string_commits:
        raise typer.Exit(code=1)


@app.command("stats")
def stats(
    ctx: typer.Context,
    unit: UNIT_ARG,
    locale: LOCALE_ARG,
    flush: Annotated[bool, typer.Option("--flush", help="先清除缓存条目再查询。")] = False,
) -> None:
    """
    显示某个单元某种语言的翻译统计。

    统计缓存只存在于当前进程中。使用默认的进程内存储 (store.kind=memory) 时，
    每次运行都从空存储开始，统计总为零。
    """
    container: ApplicationContainer = ctx.obj
    _warn_if_ephemeral_store(container)

    async def _run():
        async with running_container(container):
            report = container.report_service()
            if flush:
                report.flush(locale, unit)
            result = await report.get_stats(locale, unit)
            return result, report.is_pending_update(locale, unit)

    result, pending = asyncio.run(_run())
    table = Table(title=f"{unit} ({locale}) 翻译统计", show_header=False)
    table.add_column(style="dim")
    table.add_column()
    table.add_row("字符串总数", str(result.num_records))
    table.add_row("已翻译", f"{result.num_translated} ({result.percent_translated}%)")
    table.add_row("已擦除", str(result.num_erased))
    table.add_row("最后编辑时间", str(result.last_edit_timestamp or "-"))
    table.add_row("最后编辑者", str(result.last_submitter_id or "-"))
    if pending:
        table.add_row("状态", "[yellow]待更新[/yellow]")
    console.print(table)


if __name__ == "__main__":
    app()
