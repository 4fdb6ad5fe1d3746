"""
构建器主类

同步入口：在新的事件循环中运行构建管道，并把构建上下文转换为构建结果。
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from ..config.schema import SrcpipeConfig
from .build_context import BuildConfig, BuildContext, BuildError, CancellationToken, ProgressCallback
from .build_pipeline import BuildPipeline
from .fs_host import FileSystemHost
from .manifest import ManifestBuilder
from .models import CompileResult
from .transpiler import Transpiler


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    compile_result: CompileResult
    files_to_write: Dict[str, Union[str, bytes]] = field(default_factory=dict)
    build_time: Optional[float] = None
    cancelled: bool = False

    @property
    def diagnostics(self):
        return self.compile_result.diagnostics

    @property
    def module_files(self):
        return self.compile_result.module_files

    @property
    def error_messages(self) -> List[str]:
        return [str(d) for d in self.compile_result.diagnostics.errors]


class Builder:
    """构建器

    使用管道模式协调构建步骤，提供统一的构建接口。
    """

    def __init__(
        self,
        transpiler: Optional[Transpiler] = None,
        manifest_builder: Optional[ManifestBuilder] = None,
    ):
        self.pipeline = BuildPipeline(transpiler, manifest_builder)

    def build(
        self,
        config: Union[SrcpipeConfig, BuildConfig],
        fs: Optional[FileSystemHost] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BuildResult:
        """执行构建

        Args:
            config: 配置模型或构建配置
            fs: 文件系统宿主，默认使用本地文件系统
            progress_callback: 进度回调函数
            cancel_token: 取消令牌

        Returns:
            BuildResult: 构建结果

        Raises:
            BuildError: 已有事件循环在运行时调用（应改用 build_async）
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.build_async(config, fs, progress_callback, cancel_token))
        raise BuildError("Builder.build 不能在运行中的事件循环里调用，请使用 build_async")

    async def build_async(
        self,
        config: Union[SrcpipeConfig, BuildConfig],
        fs: Optional[FileSystemHost] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> BuildResult:
        """异步执行构建"""
        build_config = self._to_build_config(config, fs)
        context = await self.pipeline.execute(build_config, progress_callback, cancel_token)
        return self._to_result(context)

    @staticmethod
    def _to_build_config(config: Union[SrcpipeConfig, BuildConfig], fs: Optional[FileSystemHost]) -> BuildConfig:
        if isinstance(config, BuildConfig):
            if fs is not None:
                raise BuildError("传入 BuildConfig 时文件系统宿主应在配置中指定")
            return config
        return BuildConfig.from_config(config, fs)

    @staticmethod
    def _to_result(context: BuildContext) -> BuildResult:
        result = context.result
        return BuildResult(
            success=not result.diagnostics.has_errors() and not context.cancelled,
            compile_result=result,
            files_to_write=context.files_to_write,
            build_time=context.build_stats.get('build_time'),
            cancelled=context.cancelled,
        )

    def get_pipeline(self) -> BuildPipeline:
        """获取构建管道，用于自定义构建流程"""
        return self.pipeline

    def validate_build_pipeline(self) -> List[str]:
        return self.pipeline.validate_pipeline()
