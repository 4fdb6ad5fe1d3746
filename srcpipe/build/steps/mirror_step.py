"""
资源镜像步骤模块

把编译单元引用的资源文件登记到 collection 输出。
"""

from ...utils.logging import info, success, warning, LogStage
from ..asset_mirror import AssetMirror
from ..build_context import BuildContext, BuildState
from ..diagnostics import Phase
from .build_step import BuildStep


class MirrorStep(BuildStep):
    """资源镜像步骤"""

    state = BuildState.MIRRORING
    phase = Phase.COPY

    def __init__(self):
        super().__init__("mirror", "镜像资源文件")

    def get_progress_range(self) -> tuple[int, int]:
        return (85, 100)

    def should_run(self, context: BuildContext) -> bool:
        return context.config.generate_collection

    async def execute(self, context: BuildContext) -> None:
        assets = list(context.result.included_asset_files)
        info(f"镜像 {len(assets)} 个资源文件", stage=LogStage.COPY)
        self.report_start(context)

        mirror = AssetMirror(context.config, context.cancel_token)
        diagnostics = await mirror.mirror(assets, context)
        context.result.diagnostics.extend(diagnostics)

        for diagnostic in diagnostics:
            warning(f"{diagnostic.message} ({diagnostic.path})", stage=LogStage.COPY)

        self.report_end(context)
        success(f"资源镜像完成: {len(assets) - len(diagnostics)} 个", stage=LogStage.COPY)
