"""
资源镜像

把编译单元引用的资源文件登记到待写入列表。源码树内的资源搬到 collection 目录，
源码树外的资源按相对项目根目录的位置原地镜像。
"""

import asyncio
from typing import Iterable, List, Optional, TYPE_CHECKING

from ..utils.logging import copy_logger
from ..utils.paths import is_path_inside, normalize_path
from .build_context import BuildConfig, CancellationToken
from .diagnostics import (
    BuildCancelledError,
    CopyError,
    DiagnosticRecord,
    Phase,
    diagnostic_from_exception,
)
from .models import TaskOutcome
from .scanner import join_all

if TYPE_CHECKING:
    from .build_context import BuildContext


class AssetMirror:
    """资源镜像器"""

    def __init__(self, config: BuildConfig, cancel_token: Optional[CancellationToken] = None):
        self.config = config
        self.fs = config.fs
        self.cancel_token = cancel_token or CancellationToken()

    def destination_for(self, asset_path: str) -> str:
        """计算资源的目标路径"""
        asset_path = normalize_path(asset_path)
        if is_path_inside(asset_path, self.config.src):
            return self.fs.join_path(
                self.config.collection_dest,
                self.fs.relative_path(self.config.src, asset_path),
            )
        return self.fs.join_path(
            self.config.root_dir,
            self.fs.relative_path(self.config.root_dir, asset_path),
        )

    async def mirror(self, asset_paths: Iterable[str], context: 'BuildContext') -> List[DiagnosticRecord]:
        """镜像资源文件

        Args:
            asset_paths: 资源文件路径（按发现顺序）
            context: 构建上下文，目标内容写入其 files_to_write

        Returns:
            List[DiagnosticRecord]: 复制阶段诊断
        """
        if not self.config.generate_collection:
            return []

        paths = [normalize_path(p) for p in asset_paths]
        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        outcomes = await join_all(self._read_one(path, semaphore) for path in paths)

        diagnostics: List[DiagnosticRecord] = []
        for outcome in outcomes:
            if outcome.is_ok:
                destination, content = outcome.value
                context.files_to_write[destination] = content
                copy_logger.debug(f"镜像资源: {outcome.path} -> {destination}")
            elif outcome.diagnostic is not None:
                diagnostics.append(outcome.diagnostic)

        return diagnostics

    async def _read_one(self, path: str, semaphore: asyncio.Semaphore) -> TaskOutcome:
        self.cancel_token.raise_if_cancelled()
        try:
            async with semaphore:
                content = await self.fs.read_file(path)
        except BuildCancelledError:
            raise
        except Exception as e:
            error = CopyError(f"无法读取资源文件: {e}", path)
            return TaskOutcome.failed(path, diagnostic_from_exception(error, Phase.COPY))

        return TaskOutcome.ok(path, (self.destination_for(path), content))
