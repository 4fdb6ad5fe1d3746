"""
Build 命令实现

加载配置、运行构建管道、输出诊断，并可选地把待写入文件落盘。
"""

import json
import traceback
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...build.diagnostics import DiagnosticsCollector, Severity
from ...config import load_config, ConfigError, ConfigValidationError
from ...utils.logging import set_log_level, set_log_file, OutputLevel


console = Console()

_SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "blue",
}


def print_diagnostics(diagnostics: DiagnosticsCollector) -> None:
    """以表格形式输出诊断"""
    if not len(diagnostics):
        return

    table = Table(title=f"诊断 ({len(diagnostics)})")
    table.add_column("阶段", style="cyan", no_wrap=True)
    table.add_column("级别", no_wrap=True)
    table.add_column("路径", style="dim")
    table.add_column("信息")

    for record in diagnostics:
        style = _SEVERITY_STYLES.get(record.severity, "default")
        table.add_row(
            record.phase.value,
            f"[{style}]{record.severity.value}[/{style}]",
            record.path or "-",
            record.message,
        )

    console.print(table)


def build_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    write: bool = typer.Option(False, "--write", "-w", help="把编译输出与资源写入磁盘"),
    force: bool = typer.Option(True, "--force/--no-force", help="覆盖已存在的输出文件"),
    json_output: bool = typer.Option(False, "--json", help="以 JSON 输出构建结果"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """编译源码目录

    示例:
        srcpipe build -c srcpipe.yaml
        srcpipe build -c srcpipe.yaml --write
    """
    from ...build.builder import Builder
    from ...build.writer import write_pending_files

    config_path = Path(config)

    # JSON 模式下只保留错误日志（输出到 stderr），stdout 只有 JSON
    set_log_level(OutputLevel.DEBUG if verbose else (OutputLevel.ERROR if json_output else OutputLevel.INFO))
    if log_file:
        set_log_file(log_file)

    try:
        config_obj = load_config(config_path)
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)

    try:
        result = Builder().build(config_obj)
    except Exception as e:
        console.print(f"[red]✗ 构建过程中发生意外错误[/red]: {e}")
        if log_file:
            console.print(f"[yellow]详细错误信息:[/yellow]\n{traceback.format_exc()}")
        raise typer.Exit(1)

    if json_output:
        data = result.compile_result.to_dict()
        data['success'] = result.success
        data['files_to_write'] = sorted(result.files_to_write)
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2, default=str))
    else:
        print_diagnostics(result.diagnostics)
        console.print(
            f"[blue]模块[/blue]: {len(result.module_files)}  "
            f"[blue]资源[/blue]: {len(result.compile_result.included_asset_files)}  "
            f"[blue]待写入[/blue]: {len(result.files_to_write)}"
        )

    if write and result.files_to_write:
        try:
            written = write_pending_files(result.files_to_write, force=force)
        except OSError as e:
            console.print(f"[red]写入输出失败[/red]: {e}")
            raise typer.Exit(1)
        if not json_output:
            console.print(f"[green]✓ 已写入 {len(written)} 个文件[/green]")

    if not result.success:
        if not json_output:
            console.print("[red]✗ 构建完成，但存在错误[/red]")
        raise typer.Exit(1)

    if not json_output:
        console.print("[green]✓ 构建完成[/green]")
