"""
构建数据模型

定义编译单元、编译结果累加器以及任务的带标签结果类型。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .diagnostics import DiagnosticRecord, DiagnosticsCollector


@dataclass
class CompilationUnit:
    """单个源文件的编译结果"""
    source_path: str
    output_path: str
    output_text: str
    asset_paths: List[str] = field(default_factory=list)  # 按引用顺序
    diagnostics: List[DiagnosticRecord] = field(default_factory=list)  # 仅属于该文件的诊断


@dataclass
class BatchResult:
    """批处理阶段（跨文件检查）的结果"""
    diagnostics: List[DiagnosticRecord] = field(default_factory=list)
    units: Dict[str, CompilationUnit] = field(default_factory=dict)  # 被批处理替换的编译单元


@dataclass
class CompileResult:
    """整个构建的输出累加器"""
    module_files: Dict[str, CompilationUnit] = field(default_factory=dict)
    diagnostics: DiagnosticsCollector = field(default_factory=DiagnosticsCollector)
    manifest: Any = None
    included_asset_files: List[str] = field(default_factory=list)

    def add_asset_files(self, asset_paths: List[str]) -> None:
        """追加资源路径，跳过已存在的，保持首次发现顺序"""
        for asset_path in asset_paths:
            if asset_path not in self.included_asset_files:
                self.included_asset_files.append(asset_path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'module_files': {
                path: {
                    'output_path': unit.output_path,
                    'asset_paths': list(unit.asset_paths),
                }
                for path, unit in sorted(self.module_files.items())
            },
            'diagnostics': self.diagnostics.to_list(),
            'manifest': self.manifest,
            'included_asset_files': list(self.included_asset_files),
        }


class OutcomeStatus(str, Enum):
    """任务结果标签"""
    OK = "ok"
    SKIPPED = "skipped"  # 正常跳过（如被排除）
    FAILED = "failed"  # 预期内的单项失败
    FATAL = "fatal"  # 意外错误


@dataclass(frozen=True)
class TaskOutcome:
    """单个扫描项或编译请求的带标签结果"""
    status: OutcomeStatus
    path: str
    value: Any = None
    diagnostic: Optional[DiagnosticRecord] = None

    @classmethod
    def ok(cls, path: str, value: Any = None) -> 'TaskOutcome':
        return cls(OutcomeStatus.OK, path, value)

    @classmethod
    def skipped(cls, path: str) -> 'TaskOutcome':
        return cls(OutcomeStatus.SKIPPED, path)

    @classmethod
    def failed(cls, path: str, diagnostic: DiagnosticRecord) -> 'TaskOutcome':
        return cls(OutcomeStatus.FAILED, path, diagnostic=diagnostic)

    @classmethod
    def fatal(cls, path: str, diagnostic: DiagnosticRecord) -> 'TaskOutcome':
        return cls(OutcomeStatus.FATAL, path, diagnostic=diagnostic)

    @property
    def is_ok(self) -> bool:
        return self.status == OutcomeStatus.OK
