"""
目录扫描器

递归扫描源码目录，收集可编译源文件。同一目录下的子项并发处理，
目录在所有子任务完成后才算完成；并发 I/O 数量由整个扫描共享的信号量限制。
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Dict, Iterable, List, Optional, Set

from ..utils.logging import scan_logger
from ..utils.paths import normalize_path
from .build_context import BuildConfig, CancellationToken
from .classifier import ExclusionMatcher, PathKind, classify
from .diagnostics import (
    BuildCancelledError,
    DiagnosticRecord,
    Phase,
    ScanError,
    diagnostic_from_exception,
)
from .fs_host import StatResult
from .models import OutcomeStatus, TaskOutcome


@dataclass
class ScanResult:
    """扫描结果"""
    source_files: Set[str] = field(default_factory=set)
    asset_files: Set[str] = field(default_factory=set)
    diagnostics: List[DiagnosticRecord] = field(default_factory=list)
    outcomes: Dict[str, OutcomeStatus] = field(default_factory=dict)  # 每个访问过的路径的结果

    def record(self, outcome: TaskOutcome) -> None:
        self.outcomes[outcome.path] = outcome.status
        if outcome.diagnostic is not None:
            self.diagnostics.append(outcome.diagnostic)

    def merge(self, other: 'ScanResult') -> None:
        self.source_files |= other.source_files
        self.asset_files |= other.asset_files
        self.diagnostics.extend(other.diagnostics)
        self.outcomes.update(other.outcomes)

    def paths_with_status(self, status: OutcomeStatus) -> List[str]:
        return sorted(path for path, s in self.outcomes.items() if s == status)

    @property
    def skipped_paths(self) -> List[str]:
        """被排除规则跳过的路径"""
        return self.paths_with_status(OutcomeStatus.SKIPPED)

    @property
    def failed_paths(self) -> List[str]:
        """因错误而丢失的路径"""
        return self.paths_with_status(OutcomeStatus.FAILED)


async def join_all(awaitables: Iterable[Awaitable]) -> list:
    """等待所有子任务完成后再返回结果

    即使某个子任务抛出异常，其余子任务也会运行完毕，随后重新抛出第一个异常。
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for item in results:
        if isinstance(item, BaseException):
            raise item
    return results


class DirectoryScanner:
    """目录扫描器"""

    def __init__(self, config: BuildConfig, cancel_token: Optional[CancellationToken] = None):
        self.config = config
        self.fs = config.fs
        self.cancel_token = cancel_token or CancellationToken()
        self.matcher = ExclusionMatcher(config.exclude, config.exclude_mode, base=config.src)
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def scan(self, root: Optional[str] = None) -> ScanResult:
        """扫描目录树

        Args:
            root: 扫描根目录，默认为配置中的 src

        Returns:
            ScanResult: 源文件集合、资源文件集合及扫描阶段诊断
        """
        root = normalize_path(root or self.config.src)
        self._semaphore = asyncio.Semaphore(self.config.max_concurrency)

        scan_logger.debug(f"开始扫描: {root}")
        result = await self._scan_dir(root)
        scan_logger.debug(
            f"扫描完成: {len(result.source_files)} 个源文件, "
            f"{len(result.asset_files)} 个资源文件, {len(result.diagnostics)} 条诊断"
        )
        return result

    async def _scan_dir(self, directory: str) -> ScanResult:
        result = ScanResult()
        scan_logger.debug(f"扫描目录: {directory}")

        try:
            names = await self._list_dir(directory)
        except BuildCancelledError:
            raise
        except Exception as e:
            error = ScanError(f"无法读取目录: {e}", directory)
            result.record(TaskOutcome.failed(directory, diagnostic_from_exception(error, Phase.SCAN)))
            return result

        result.outcomes[directory] = OutcomeStatus.OK

        entries = [self.fs.join_path(directory, name) for name in sorted(names)]
        for contribution in await join_all(self._scan_entry(path) for path in entries):
            result.merge(contribution)

        return result

    async def _scan_entry(self, path: str) -> ScanResult:
        """处理单个目录项，返回该项（及其子树）的扫描贡献"""
        if self.matcher.matches(path):
            # 被排除的目录不再深入
            result = ScanResult()
            result.record(TaskOutcome.skipped(path))
            return result

        try:
            stat = await self._stat(path)
        except BuildCancelledError:
            raise
        except Exception as e:
            error = ScanError(f"无法读取文件信息: {e}", path)
            result = ScanResult()
            result.record(TaskOutcome.failed(path, diagnostic_from_exception(error, Phase.SCAN)))
            return result

        kind = classify(
            path,
            self.matcher,
            stat.is_directory,
            self.config.source_extensions,
            self.config.asset_extensions,
        )

        if kind == PathKind.DIRECTORY:
            return await self._scan_dir(path)

        result = ScanResult()
        if kind == PathKind.COMPILABLE_SOURCE:
            result.source_files.add(path)
        elif kind == PathKind.ASSET:
            result.asset_files.add(path)
        result.record(TaskOutcome.ok(path, kind))
        return result

    async def _list_dir(self, path: str) -> List[str]:
        self.cancel_token.raise_if_cancelled()
        async with self._semaphore:
            return await self.fs.list_dir(path)

    async def _stat(self, path: str) -> StatResult:
        self.cancel_token.raise_if_cancelled()
        async with self._semaphore:
            return await self.fs.stat(path)
