"""
Validate 命令实现

检查配置文件，并展示解析后的构建路径，便于确认相对路径的解析结果。
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import typer
from rich.console import Console
from rich.table import Table

from ...config import load_config, ConfigError, ConfigValidationError, SrcpipeConfig


console = Console()


def _resolved_settings(config: SrcpipeConfig) -> Dict[str, Any]:
    paths = config.paths
    return {
        "src": Path(paths.src).as_posix(),
        "root_dir": Path(paths.root_dir).as_posix(),
        "dest": Path(paths.dest).as_posix(),
        "collection_dest": Path(paths.collection_dest).as_posix(),
        "exclude": list(config.exclude),
        "exclude_mode": config.exclude_mode.value,
        "generate_collection": config.generate_collection,
        "max_concurrency": config.compiler.max_concurrency,
    }


def _print_settings(settings: Dict[str, Any], src_exists: bool) -> None:
    table = Table(title="构建设置")
    table.add_column("项目", style="cyan", no_wrap=True)
    table.add_column("值", style="green")

    for key, value in settings.items():
        if isinstance(value, list):
            value = ", ".join(value) or "-"
        table.add_row(key, str(value))

    console.print(table)
    if not src_exists:
        console.print(f"[yellow]⚠ 源码目录不存在: {settings['src']}[/yellow]")


def _print_errors(errors: List[Dict[str, Any]]) -> None:
    table = Table(title="验证错误")
    table.add_column("位置", style="cyan", no_wrap=True)
    table.add_column("错误信息", style="red")
    table.add_column("输入值", style="yellow")

    for error in errors:
        location = " -> ".join(str(item) for item in error.get('loc', []))
        input_value = str(error.get('input', ''))
        if len(input_value) > 47:
            input_value = input_value[:47] + "..."
        table.add_row(location or "根级别", error.get('msg', '未知错误'), input_value or "-")

    console.print(table)


def validate_command(
    config: str = typer.Option(..., "--config", "-c", help="配置文件路径"),
    json_output: bool = typer.Option(False, "--json", help="以 JSON 输出验证结果"),
) -> None:
    """验证配置文件

    示例:
        srcpipe validate -c srcpipe.yaml
        srcpipe validate -c srcpipe.yaml --json
    """
    config_path = Path(config)

    try:
        config_obj = load_config(config_path)
        errors: List[Dict[str, Any]] = []
    except ConfigValidationError as e:
        config_obj = None
        errors = e.errors
    except ConfigError as e:
        config_obj = None
        errors = [{'loc': [], 'msg': str(e), 'type': 'config_error'}]

    if config_obj is not None:
        settings = _resolved_settings(config_obj)
        src_exists = Path(config_obj.paths.src).is_dir()
        if json_output:
            typer.echo(json.dumps({
                "file": str(config_path),
                "errors": [],
                "error_count": 0,
                "settings": settings,
                "src_exists": src_exists,
            }, ensure_ascii=False, indent=2))
        else:
            console.print("[green]✓ 配置文件验证通过[/green]")
            _print_settings(settings, src_exists)
        return

    if json_output:
        typer.echo(json.dumps(
            {"file": str(config_path), "errors": errors, "error_count": len(errors)},
            ensure_ascii=False, indent=2, default=str,
        ))
    else:
        console.print(f"[red]配置文件验证失败 ({len(errors)} 个错误):[/red]")
        _print_errors(errors)

    raise typer.Exit(1)
