"""
构建管道模块

按 扫描 -> 编译 -> manifest -> 资源镜像 的顺序执行构建步骤。
任何步骤中的意外错误都转换为诊断，管道总是返回（可能带诊断的）构建上下文。
"""

import time
from typing import List, Optional

from ..utils.logging import debug, error, info, success, warning, time_span, LogStage
from .build_context import BuildConfig, BuildContext, BuildState, CancellationToken, ProgressCallback
from .diagnostics import BuildCancelledError, diagnostic_from_exception
from .manifest import ManifestBuilder
from .steps.build_step import BuildStep
from .steps.compile_step import CompileStep
from .steps.manifest_step import ManifestStep
from .steps.mirror_step import MirrorStep
from .steps.scan_step import ScanStep
from .transpiler import Transpiler


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(
        self,
        transpiler: Optional[Transpiler] = None,
        manifest_builder: Optional[ManifestBuilder] = None,
    ):
        self._steps: List[BuildStep] = [
            ScanStep(),
            CompileStep(transpiler),
            ManifestStep(manifest_builder),
            MirrorStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    async def execute(
        self,
        config: BuildConfig,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BuildContext:
        """执行构建管道

        Args:
            config: 构建配置
            progress_callback: 进度回调函数
            cancel_token: 取消令牌

        Returns:
            BuildContext: 构建上下文，包含编译结果与待写入文件
        """
        context = BuildContext(
            config=config,
            progress_callback=progress_callback,
            cancel_token=cancel_token or CancellationToken(),
        )

        span = time_span("compile started", stage=LogStage.BUILD)
        context.build_stats['start_time'] = time.time()
        debug(
            f"构建配置: src={config.src} collection={config.collection_dest} "
            f"exclude={list(config.exclude)} mode={config.exclude_mode.value} "
            f"generate_collection={config.generate_collection}",
            stage=LogStage.BUILD,
        )

        for step in self._steps:
            try:
                if not step.should_run(context):
                    # 前置条件不满足，视为立即完成
                    debug(f"跳过步骤: {step.description}", stage=LogStage.BUILD)
                    context.transition(step.state)
                    continue

                context.transition(step.state)
                info(f"执行步骤: {step.description}", stage=LogStage.BUILD)
                context.cancel_token.raise_if_cancelled()
                await step.execute(context)
            except BuildCancelledError as e:
                context.cancelled = True
                context.result.diagnostics.add(diagnostic_from_exception(e, step.phase))
                warning(f"{e} (步骤: {step.name})", stage=LogStage.BUILD)
                break
            except Exception as e:
                context.result.diagnostics.add(diagnostic_from_exception(e, step.phase))
                error(f"步骤 '{step.name}' 发生意外错误: {e}", stage=LogStage.BUILD)
                break

        context.transition(BuildState.DONE)

        context.build_stats['end_time'] = time.time()
        context.build_stats['files_to_write'] = len(context.files_to_write)
        context.build_stats['build_time'] = span.finish("compile finished")

        diagnostics = context.result.diagnostics
        if diagnostics.has_errors() or context.cancelled:
            warning(
                f"构建结束: {len(context.result.module_files)} 个模块, "
                f"{len(diagnostics.errors)} 个错误, {len(diagnostics.warnings)} 个警告",
                stage=LogStage.DONE,
            )
        else:
            success(
                f"构建成功: {len(context.result.module_files)} 个模块, "
                f"{len(context.result.included_asset_files)} 个资源, "
                f"{len(context.files_to_write)} 个待写入文件",
                stage=LogStage.DONE,
            )

        return context

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
