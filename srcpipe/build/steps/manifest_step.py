"""
Manifest 步骤模块

把累计的编译结果交给 ManifestBuilder 生成 manifest。
ManifestBuilder 的失败只记录为诊断，不中断后续的资源镜像。
"""

from typing import Optional

from ...utils.logging import manifest_logger
from ..build_context import BuildContext, BuildState
from ..diagnostics import BuildCancelledError, Phase, diagnostic_from_exception
from ..manifest import CollectionManifestBuilder, ManifestBuilder
from .build_step import BuildStep


class ManifestStep(BuildStep):
    """Manifest 生成步骤"""

    state = BuildState.MANIFEST_BUILDING
    phase = Phase.MANIFEST

    def __init__(self, manifest_builder: Optional[ManifestBuilder] = None):
        super().__init__("manifest", "生成 manifest")
        self.manifest_builder = manifest_builder or CollectionManifestBuilder()

    def get_progress_range(self) -> tuple[int, int]:
        return (80, 85)

    def should_run(self, context: BuildContext) -> bool:
        # 没有可编译源文件时跳过
        return bool(context.scan and context.scan.source_files)

    async def execute(self, context: BuildContext) -> None:
        self.report_start(context)
        try:
            context.result.manifest = self.manifest_builder.build(context.config, context, context.result)
        except BuildCancelledError:
            raise
        except Exception as e:
            manifest_logger.error(f"manifest 生成失败: {e}")
            context.result.diagnostics.add(diagnostic_from_exception(e, Phase.MANIFEST))
            return

        manifest_logger.debug("manifest 已生成")
        self.report_end(context)
