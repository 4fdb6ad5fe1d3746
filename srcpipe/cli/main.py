"""
srcpipe CLI 主入口

提供命令行接口，支持 build/validate/example/info 等命令。
"""

import sys

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..utils import configure_logging, OutputLevel
from .commands import build, validate


app = typer.Typer(
    name="srcpipe",
    help="srcpipe - 源码目录编译构建管道",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"srcpipe v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
) -> None:
    """srcpipe - 源码目录编译构建管道

    使用 --help 查看可用命令的详细信息。
    """
    configure_logging(level=OutputLevel.INFO)


app.command("build", help="编译源码目录")(build.build_command)
app.command("validate", help="验证配置文件")(validate.validate_command)


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")

    table.add_row("srcpipe", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")

    console.print(table)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "srcpipe.yaml",
        "--output", "-o",
        help="输出配置文件路径"
    )
) -> None:
    """生成示例配置文件"""
    from ..config import save_config, ConfigError
    from ..config.schema import PathsModel, SrcpipeConfig

    config = SrcpipeConfig(
        paths=PathsModel(src="src", root_dir=".", dest="dist", collection_dest="dist/collection"),
        exclude=["node_modules", "*.spec.ts", "__mocks__/"],
    )

    try:
        save_config(config, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]srcpipe build -c {output} --write[/cyan]")


if __name__ == "__main__":
    app()
