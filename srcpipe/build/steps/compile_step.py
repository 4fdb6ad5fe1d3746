"""
编译步骤模块

把扫描到的源文件交给编译器，并把结果合并到编译结果中。
"""

from typing import Optional

from ...utils.logging import info, success, warning, LogStage
from ..build_context import BuildContext, BuildState
from ..diagnostics import Phase
from ..dispatcher import CompilationDispatcher
from ..transpiler import BasicTranspiler, Transpiler
from .build_step import BuildStep


class CompileStep(BuildStep):
    """编译步骤"""

    state = BuildState.COMPILING
    phase = Phase.COMPILE

    def __init__(self, transpiler: Optional[Transpiler] = None):
        super().__init__("compile", "编译源文件")
        self.transpiler = transpiler or BasicTranspiler()

    def get_progress_range(self) -> tuple[int, int]:
        return (30, 80)

    async def execute(self, context: BuildContext) -> None:
        source_files = context.scan.source_files if context.scan else set()
        info(f"编译 {len(source_files)} 个源文件", stage=LogStage.COMPILE)
        self.report_start(context)

        dispatcher = CompilationDispatcher(context.config, self.transpiler, context.cancel_token)
        dispatch = await dispatcher.dispatch_all(source_files, context)

        context.build_stats['module_files'] = len(context.result.module_files)
        context.build_stats['asset_files'] = len(context.result.included_asset_files)

        failed = len(source_files) - len(dispatch.units)
        if failed:
            warning(f"{failed} 个源文件编译失败", stage=LogStage.COMPILE)

        self.report_end(context, f"编译 {len(dispatch.units)} 个模块")
        success(f"编译完成: {len(dispatch.units)} 个模块", stage=LogStage.COMPILE)
