"""
诊断信息模块

定义诊断记录、构建阶段、错误分类以及只追加的诊断收集器。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union


class Severity(str, Enum):
    """诊断级别"""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Phase(str, Enum):
    """产生诊断的构建阶段"""
    SCAN = "scan"
    COMPILE = "compile"
    MANIFEST = "manifest"
    COPY = "copy"


@dataclass(frozen=True)
class DiagnosticRecord:
    """诊断记录"""
    severity: Severity
    message: str
    phase: Phase
    path: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'severity': self.severity.value,
            'message': self.message,
            'phase': self.phase.value,
            'path': self.path,
        }

    def __str__(self) -> str:
        location = f" ({self.path})" if self.path else ""
        return f"[{self.phase.value}] {self.severity.value}: {self.message}{location}"


class BuildFailure(Exception):
    """构建过程中可转换为诊断的错误基类"""

    phase: Phase = Phase.COMPILE
    severity: Severity = Severity.ERROR

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def to_diagnostic(self, phase: Optional[Phase] = None) -> DiagnosticRecord:
        return DiagnosticRecord(
            severity=self.severity,
            message=self.message,
            phase=phase or self.phase,
            path=self.path,
        )


class ScanError(BuildFailure):
    """单个目录项的列举或 stat 失败"""
    phase = Phase.SCAN


class CompileError(BuildFailure):
    """单个源文件编译失败"""
    phase = Phase.COMPILE


class CopyError(BuildFailure):
    """单个资源文件读取失败"""
    phase = Phase.COPY


class FatalError(BuildFailure):
    """编排过程中的意外错误"""
    pass


class BuildCancelledError(FatalError):
    """构建被调用方取消"""

    def __init__(self, message: str = "构建已取消", path: Optional[str] = None):
        super().__init__(message, path)


def diagnostic_from_exception(
    exc: BaseException,
    phase: Phase,
    path: Optional[str] = None,
) -> DiagnosticRecord:
    """将异常转换为诊断记录

    BuildFailure 保留自身的消息与路径；其他异常带上异常类型名。
    """
    if isinstance(exc, BuildFailure):
        record = exc.to_diagnostic(phase)
        if record.path is None and path is not None:
            record = DiagnosticRecord(record.severity, record.message, record.phase, path)
        return record

    message = str(exc) or exc.__class__.__name__
    if not isinstance(exc, OSError):
        message = f"{exc.__class__.__name__}: {message}"
    return DiagnosticRecord(severity=Severity.ERROR, message=message, phase=phase, path=path)


class DiagnosticsCollector:
    """只追加的诊断收集器

    只提供追加接口，已记录的诊断不会被修改或删除。
    """

    def __init__(self, records: Optional[Iterable[DiagnosticRecord]] = None):
        self._records: List[DiagnosticRecord] = []
        if records:
            self.extend(records)

    def add(self, record: DiagnosticRecord) -> None:
        if not isinstance(record, DiagnosticRecord):
            raise TypeError(f"期望 DiagnosticRecord，实际为 {type(record).__name__}")
        self._records.append(record)

    def extend(self, records: Iterable[DiagnosticRecord]) -> None:
        for record in records:
            self.add(record)

    @property
    def records(self) -> Tuple[DiagnosticRecord, ...]:
        """当前诊断的快照"""
        return tuple(self._records)

    def by_phase(self, phase: Phase) -> List[DiagnosticRecord]:
        return [r for r in self._records if r.phase == phase]

    def by_path(self, path: str) -> List[DiagnosticRecord]:
        return [r for r in self._records if r.path == path]

    @property
    def errors(self) -> List[DiagnosticRecord]:
        return [r for r in self._records if r.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[DiagnosticRecord]:
        return [r for r in self._records if r.severity == Severity.WARNING]

    def has_errors(self) -> bool:
        return any(r.severity == Severity.ERROR for r in self._records)

    def to_list(self) -> List[dict]:
        return [r.to_dict() for r in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[DiagnosticRecord]:
        return iter(tuple(self._records))

    def __getitem__(self, index: Union[int, slice]) -> Any:
        if isinstance(index, slice):
            return tuple(self._records[index])
        return self._records[index]

    def __repr__(self) -> str:
        return f"DiagnosticsCollector({len(self._records)} records)"
