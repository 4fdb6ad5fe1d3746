"""构建服务模块

提供源码目录扫描、编译分发、诊断汇总与资源镜像的核心功能。
"""

from .builder import Builder, BuildResult
from .build_context import (
    BuildConfig,
    BuildContext,
    BuildError,
    BuildState,
    CancellationToken,
)
from .build_pipeline import BuildPipeline
from .classifier import ExclusionMatcher, PathKind, classify
from .diagnostics import (
    BuildCancelledError,
    CompileError,
    CopyError,
    DiagnosticRecord,
    DiagnosticsCollector,
    FatalError,
    Phase,
    ScanError,
    Severity,
)
from .fs_host import FileSystemHost, LocalFileSystem, StatResult
from .manifest import CollectionManifestBuilder, ManifestBuilder
from .models import BatchResult, CompilationUnit, CompileResult, OutcomeStatus, TaskOutcome
from .transpiler import BasicTranspiler, Transpiler

__all__ = [
    # 主构建器
    "Builder",
    "BuildResult",
    "BuildPipeline",
    "BuildConfig",
    "BuildContext",
    "BuildError",
    "BuildState",
    "CancellationToken",

    # 分类与文件系统
    "ExclusionMatcher",
    "PathKind",
    "classify",
    "FileSystemHost",
    "LocalFileSystem",
    "StatResult",

    # 诊断
    "DiagnosticRecord",
    "DiagnosticsCollector",
    "Severity",
    "Phase",
    "ScanError",
    "CompileError",
    "CopyError",
    "FatalError",
    "BuildCancelledError",

    # 编译结果与协作接口
    "CompilationUnit",
    "CompileResult",
    "BatchResult",
    "OutcomeStatus",
    "TaskOutcome",
    "Transpiler",
    "BasicTranspiler",
    "ManifestBuilder",
    "CollectionManifestBuilder",
]
