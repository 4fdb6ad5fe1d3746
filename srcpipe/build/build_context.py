"""
构建上下文模块

定义构建过程中的只读配置、共享数据结构、状态机和取消令牌。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union, TYPE_CHECKING

from ..config.schema import ExcludeMode, SrcpipeConfig
from ..utils.paths import normalize_path
from .diagnostics import BuildCancelledError
from .fs_host import FileSystemHost, LocalFileSystem
from .models import CompileResult

if TYPE_CHECKING:
    from .scanner import ScanResult

# 进度回调类型
ProgressCallback = Callable[[str, int, int, str], None]


class BuildState(str, Enum):
    """构建状态机"""
    IDLE = "idle"
    SCANNING = "scanning"
    COMPILING = "compiling"
    MANIFEST_BUILDING = "manifest_building"
    MIRRORING = "mirroring"
    DONE = "done"


@dataclass(frozen=True)
class BuildConfig:
    """构建配置（构建期间只读）"""
    src: str
    root_dir: str
    dest: str
    collection_dest: str
    exclude: Tuple[str, ...] = ()
    exclude_mode: ExcludeMode = ExcludeMode.SEGMENT
    generate_collection: bool = True
    source_extensions: Tuple[str, ...] = (".ts", ".tsx")
    asset_extensions: Tuple[str, ...] = (".css", ".scss", ".sass")
    max_concurrency: int = 16
    fs: FileSystemHost = field(default_factory=LocalFileSystem, compare=False)

    def __post_init__(self):
        for name in ('src', 'root_dir', 'dest', 'collection_dest'):
            object.__setattr__(self, name, normalize_path(getattr(self, name)))
        object.__setattr__(self, 'exclude', tuple(self.exclude))
        object.__setattr__(self, 'exclude_mode', ExcludeMode(self.exclude_mode))
        object.__setattr__(self, 'source_extensions', tuple(self.source_extensions))
        object.__setattr__(self, 'asset_extensions', tuple(self.asset_extensions))
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency 必须大于等于 1")

    @classmethod
    def from_config(cls, config: SrcpipeConfig, fs: Optional[FileSystemHost] = None) -> 'BuildConfig':
        """从 YAML 配置模型创建构建配置"""
        return cls(
            src=str(config.paths.src),
            root_dir=str(config.paths.root_dir),
            dest=str(config.paths.dest),
            collection_dest=str(config.paths.collection_dest),
            exclude=tuple(config.exclude),
            exclude_mode=config.exclude_mode,
            generate_collection=config.generate_collection,
            source_extensions=tuple(config.compiler.source_extensions),
            asset_extensions=tuple(config.compiler.asset_extensions),
            max_concurrency=config.compiler.max_concurrency,
            fs=fs or LocalFileSystem(),
        )


class CancellationToken:
    """取消令牌

    贯穿所有挂起点，调用方 cancel() 后下一个检查点抛出 BuildCancelledError。
    """

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        self._cancelled = True
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            message = f"构建已取消: {self.reason}" if self.reason else "构建已取消"
            raise BuildCancelledError(message)


@dataclass
class BuildContext:
    """构建上下文，包含一次构建过程中的共享数据"""
    config: BuildConfig
    progress_callback: Optional[ProgressCallback] = None
    cancel_token: CancellationToken = field(default_factory=CancellationToken)

    # 待写入文件：目标路径 -> 内容
    files_to_write: Dict[str, Union[str, bytes]] = field(default_factory=dict)
    result: CompileResult = field(default_factory=CompileResult)
    scan: Optional['ScanResult'] = None

    state: BuildState = BuildState.IDLE
    state_history: List[BuildState] = field(default_factory=list)
    cancelled: bool = False

    # 统计信息
    build_stats: Dict[str, Any] = None  # type: ignore

    def __post_init__(self):
        if self.build_stats is None:
            self.build_stats = {
                'start_time': 0,
                'end_time': 0,
                'source_files': 0,
                'module_files': 0,
                'asset_files': 0,
                'files_to_write': 0,
            }
        if not self.state_history:
            self.state_history.append(self.state)

    def transition(self, state: BuildState) -> None:
        """切换构建状态"""
        self.state = state
        self.state_history.append(state)

    def report_progress(self, stage: str, current: int, message: str = "") -> None:
        if self.progress_callback:
            self.progress_callback(stage, current, 100, message)


class BuildError(Exception):
    """构建错误"""
    pass
