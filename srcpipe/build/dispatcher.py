"""
编译分发器

为每个可编译源文件发出一次编译请求，并在单一汇总点合并结果。
单个文件失败只产生一条诊断，不影响其他文件。
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from ..utils.logging import compile_logger
from ..utils.paths import normalize_path
from .build_context import BuildConfig, CancellationToken
from .diagnostics import (
    BuildCancelledError,
    CompileError,
    DiagnosticRecord,
    Phase,
    diagnostic_from_exception,
)
from .models import CompilationUnit, OutcomeStatus, TaskOutcome
from .scanner import join_all
from .transpiler import Transpiler

if TYPE_CHECKING:
    from .build_context import BuildContext


@dataclass
class DispatchResult:
    """编译分发结果"""
    units: Dict[str, CompilationUnit] = field(default_factory=dict)
    diagnostics: List[DiagnosticRecord] = field(default_factory=list)
    asset_files: List[str] = field(default_factory=list)
    outcomes: Dict[str, OutcomeStatus] = field(default_factory=dict)


class CompilationDispatcher:
    """编译分发器"""

    def __init__(
        self,
        config: BuildConfig,
        transpiler: Transpiler,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self.config = config
        self.transpiler = transpiler
        self.cancel_token = cancel_token or CancellationToken()
        self.request_counts: Dict[str, int] = {}

    async def dispatch_all(self, paths: Iterable[str], context: 'BuildContext') -> DispatchResult:
        """编译所有源文件并合并到上下文的编译结果中

        单文件结果在批处理之前合并，批处理失败时已编译的单元仍然保留。

        Args:
            paths: 可编译源文件路径（重复项只编译一次）
            context: 构建上下文

        Returns:
            DispatchResult: 本次分发贡献的编译单元、诊断与引用的资源文件
        """
        unique_paths = sorted({normalize_path(p) for p in paths})
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        compile_logger.debug(f"分发编译请求: {len(unique_paths)} 个文件")
        outcomes = await join_all(self._compile_one(path, context, semaphore) for path in unique_paths)

        # 单一汇总点：按路径顺序合并，保证资源列表顺序确定
        result = DispatchResult()
        for outcome in outcomes:
            result.outcomes[outcome.path] = outcome.status
            if outcome.is_ok:
                self._merge_unit(context, result, outcome.value)
            elif outcome.diagnostic is not None:
                self._add_diagnostic(context, result, outcome.diagnostic)

        if result.units:
            self.cancel_token.raise_if_cancelled()
            batch = await self.transpiler.finalize_batch(self.config, context, dict(result.units))
            for diagnostic in batch.diagnostics:
                self._add_diagnostic(context, result, diagnostic)
            for source_path, unit in sorted(batch.units.items()):
                if source_path in result.units:
                    self._merge_unit(context, result, unit, include_diagnostics=False)

        failed = len(unique_paths) - len(result.units)
        compile_logger.debug(f"编译完成: 成功 {len(result.units)} 个, 失败 {failed} 个")
        return result

    async def _compile_one(
        self,
        path: str,
        context: 'BuildContext',
        semaphore: asyncio.Semaphore,
    ) -> TaskOutcome:
        """编译单个文件，返回带标签的结果"""
        self.cancel_token.raise_if_cancelled()
        self.request_counts[path] = self.request_counts.get(path, 0) + 1

        try:
            async with semaphore:
                unit = await self.transpiler.compile(self.config, context, path)
            if not isinstance(unit, CompilationUnit):
                raise TypeError(f"编译器返回了 {type(unit).__name__}，应为 CompilationUnit")
        except BuildCancelledError:
            raise
        except CompileError as e:
            compile_logger.debug(f"编译失败: {path}: {e}")
            return TaskOutcome.failed(path, diagnostic_from_exception(e, Phase.COMPILE, path))
        except Exception as e:
            compile_logger.error(f"编译器意外错误: {path}: {e}")
            return TaskOutcome.fatal(path, diagnostic_from_exception(e, Phase.COMPILE, path))

        if unit.source_path != path:
            unit.source_path = path
        return TaskOutcome.ok(path, unit)

    def _merge_unit(
        self,
        context: 'BuildContext',
        result: DispatchResult,
        unit: CompilationUnit,
        include_diagnostics: bool = True,
    ) -> None:
        """合并编译单元：同一源路径后合并者覆盖"""
        accumulator = context.result
        previous = accumulator.module_files.get(unit.source_path)
        result.units[unit.source_path] = unit
        accumulator.module_files[unit.source_path] = unit

        if include_diagnostics:
            for diagnostic in unit.diagnostics:
                self._add_diagnostic(context, result, diagnostic)

        for asset_path in unit.asset_paths:
            if asset_path not in result.asset_files:
                result.asset_files.append(asset_path)
        accumulator.add_asset_files(unit.asset_paths)

        if self.config.generate_collection:
            if previous is not None and previous.output_path != unit.output_path:
                context.files_to_write.pop(previous.output_path, None)
            context.files_to_write[unit.output_path] = unit.output_text

    @staticmethod
    def _add_diagnostic(context: 'BuildContext', result: DispatchResult, diagnostic: DiagnosticRecord) -> None:
        result.diagnostics.append(diagnostic)
        context.result.diagnostics.add(diagnostic)
