"""
目录扫描步骤模块

扫描源码目录，收集需要编译的源文件。
"""

from ...utils.logging import info, success, warning, LogStage
from ..build_context import BuildContext, BuildState
from ..diagnostics import Phase
from ..scanner import DirectoryScanner
from .build_step import BuildStep


class ScanStep(BuildStep):
    """目录扫描步骤"""

    state = BuildState.SCANNING
    phase = Phase.SCAN

    def __init__(self):
        super().__init__("scan", "扫描源码目录")

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 30)

    async def execute(self, context: BuildContext) -> None:
        config = context.config
        info(f"扫描源码目录: {config.src}", stage=LogStage.SCAN)
        self.report_start(context, f"扫描: {config.src}")

        scanner = DirectoryScanner(config, context.cancel_token)
        scan = await scanner.scan(config.src)

        context.scan = scan
        context.result.diagnostics.extend(scan.diagnostics)
        context.build_stats['source_files'] = len(scan.source_files)

        for diagnostic in scan.diagnostics:
            warning(f"{diagnostic.message} ({diagnostic.path})", stage=LogStage.SCAN)

        self.report_end(context, f"找到 {len(scan.source_files)} 个源文件")
        success(
            f"扫描完成: {len(scan.source_files)} 个源文件, 跳过 {len(scan.skipped_paths)} 项",
            stage=LogStage.SCAN,
        )
