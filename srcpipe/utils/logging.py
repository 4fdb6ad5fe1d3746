"""
日志工具 - 统一输出门面

封装 Rich Console，提供带时间戳、带阶段标记的统一输出接口，
以及用于记录阶段耗时的 TimeSpan。
"""

import atexit
import sys
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console


class OutputLevel:
    """输出级别常量"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogStage:
    """日志阶段标记"""
    INIT = "INIT"
    SCAN = "SCAN"
    COMPILE = "COMPILE"
    MANIFEST = "MANIFEST"
    COPY = "COPY"
    WRITE = "WRITE"
    BUILD = "BUILD"
    DONE = "DONE"


_LEVEL_ORDER = {
    OutputLevel.DEBUG: 0,
    OutputLevel.INFO: 1,
    OutputLevel.SUCCESS: 1,
    OutputLevel.WARNING: 2,
    OutputLevel.ERROR: 3,
}

_LEVEL_STYLES = {
    OutputLevel.DEBUG: "dim",
    OutputLevel.INFO: "default",
    OutputLevel.SUCCESS: "green",
    OutputLevel.WARNING: "yellow",
    OutputLevel.ERROR: "red bold",
}


class OutputFacade:
    """输出门面

    所有输出都包含时间戳；错误输出到 stderr；可选同时写入日志文件。
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._file_handle = None  # type: Optional[Any]
        self._log_level = OutputLevel.INFO
        self._date_format = "%Y-%m-%d %H:%M:%S"
        self._time_format = "%H:%M:%S"

        # 不固定 file，输出时使用当前的 sys.stdout
        self._console = Console(
            color_system="auto",
            markup=True,
            highlight=False,  # 关闭语法高亮以提高性能
            log_time=False,
            log_path=False,
        )
        self._error_console = Console(stderr=True, highlight=False)

    def _get_timestamp(self, include_date: bool = False) -> str:
        now = datetime.now()
        return now.strftime(self._date_format if include_date else self._time_format)

    def _should_output(self, level: str) -> bool:
        current_level = _LEVEL_ORDER.get(self._log_level, 1)
        return _LEVEL_ORDER.get(level, 1) >= current_level

    def _format_message(self, message: str, level: str,
                        stage: Optional[str] = None, include_date: bool = False) -> str:
        timestamp = self._get_timestamp(include_date)
        if stage:
            return f"[{timestamp}] [{level}] [{stage}] {message}"
        return f"[{timestamp}] [{level}] {message}"

    def _emit(self, message: str, level: str, stage: Optional[str] = None, **kwargs):
        """输出一条消息（带颜色）"""
        if not self._should_output(level):
            return

        with self._lock:
            timestamp = self._get_timestamp()
            if level == OutputLevel.ERROR:
                console = self._error_console
                label = "[bold red]ERROR[/bold red]"
            else:
                console = self._console
                label = f"[bold]{level}[/bold]"

            if stage:
                formatted_msg = f"[dim]{timestamp}[/dim] {label} [cyan]{stage}[/cyan] {message}"
            else:
                formatted_msg = f"[dim]{timestamp}[/dim] {label} {message}"

            try:
                console.print(formatted_msg, style=_LEVEL_STYLES.get(level, "default"), **kwargs)
            except Exception:
                # 消息中包含无法解析的 markup 时回退到纯文本
                stream = sys.stderr if level == OutputLevel.ERROR else sys.stdout
                stream.write(self._format_message(message, level, stage) + "\n")
                stream.flush()

            self._write_to_file(message, level, stage)

    def _write_to_file(self, message: str, level: str, stage: Optional[str] = None):
        if not self._file_handle:
            return

        try:
            self._file_handle.write(self._format_message(message, level, stage, include_date=True) + "\n")
            self._file_handle.flush()
        except OSError:
            pass  # 文件写入失败不应该影响构建

    def set_level(self, level: str):
        """设置输出级别"""
        with self._lock:
            if level in _LEVEL_ORDER and level != OutputLevel.SUCCESS:
                self._log_level = level

    def get_level(self) -> str:
        return self._log_level

    def set_log_file(self, file_path: Union[str, Path]):
        """设置日志文件"""
        with self._lock:
            self._close_file()
            try:
                log_path = Path(file_path)
                log_path.parent.mkdir(parents=True, exist_ok=True)
                self._file_handle = open(log_path, 'a', encoding='utf-8')
            except OSError as e:
                self.warning(f"无法打开日志文件 {file_path}: {e}")

    def _close_file(self):
        if self._file_handle:
            try:
                self._file_handle.close()
            except OSError:
                pass
            self._file_handle = None

    def debug(self, message: str, stage: Optional[str] = None, **kwargs):
        self._emit(message, OutputLevel.DEBUG, stage, **kwargs)

    def info(self, message: str, stage: Optional[str] = None, **kwargs):
        self._emit(message, OutputLevel.INFO, stage, **kwargs)

    def success(self, message: str, stage: Optional[str] = None, **kwargs):
        self._emit(message, OutputLevel.SUCCESS, stage, **kwargs)

    def warning(self, message: str, stage: Optional[str] = None, **kwargs):
        self._emit(message, OutputLevel.WARNING, stage, **kwargs)

    def error(self, message: str, stage: Optional[str] = None, **kwargs):
        self._emit(message, OutputLevel.ERROR, stage, **kwargs)

    def close(self):
        """关闭输出门面"""
        with self._lock:
            self._close_file()


# 全局输出门面实例
_output_facade: Optional[OutputFacade] = None


def get_output_facade() -> OutputFacade:
    """获取全局输出门面实例"""
    global _output_facade
    if _output_facade is None:
        _output_facade = OutputFacade()
    return _output_facade


def debug(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().debug(message, stage, **kwargs)


def info(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().info(message, stage, **kwargs)


def success(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().success(message, stage, **kwargs)


def warning(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().warning(message, stage, **kwargs)


def error(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().error(message, stage, **kwargs)


def set_log_level(level: str):
    """设置全局日志级别"""
    get_output_facade().set_level(level)


def set_log_file(file_path: Union[str, Path]):
    """设置全局日志文件"""
    get_output_facade().set_log_file(file_path)


def close_logger():
    """关闭日志系统"""
    global _output_facade
    if _output_facade:
        _output_facade.close()
        _output_facade = None


def configure_logging(level: str = OutputLevel.INFO, log_file: Optional[Union[str, Path]] = None):
    """配置日志系统"""
    set_log_level(level)
    if log_file:
        set_log_file(log_file)


class StageLogger:
    """阶段日志器，为每条消息附加固定的阶段标记"""

    def __init__(self, stage: str):
        self.stage = stage

    def debug(self, message: str, **kwargs):
        debug(message, self.stage, **kwargs)

    def info(self, message: str, **kwargs):
        info(message, self.stage, **kwargs)

    def success(self, message: str, **kwargs):
        success(message, self.stage, **kwargs)

    def warning(self, message: str, **kwargs):
        warning(message, self.stage, **kwargs)

    def error(self, message: str, **kwargs):
        error(message, self.stage, **kwargs)


def get_stage_logger(stage: str) -> StageLogger:
    return StageLogger(stage)


class TimeSpan:
    """耗时记录

    创建时输出开始消息，finish() 时输出结束消息及耗时。
    """

    def __init__(self, start_message: str, stage: Optional[str] = None, debug_only: bool = False):
        self.stage = stage
        self.debug_only = debug_only
        self.start_time = time.perf_counter()
        self.elapsed: Optional[float] = None
        self._log(start_message)

    def _log(self, message: str):
        if self.debug_only:
            debug(message, self.stage)
        else:
            info(message, self.stage)

    def finish(self, finish_message: str) -> float:
        """结束计时并返回耗时（秒）"""
        self.elapsed = time.perf_counter() - self.start_time
        self._log(f"{finish_message} in {format_duration(self.elapsed)}")
        return self.elapsed


def time_span(start_message: str, stage: Optional[str] = None, debug_only: bool = False) -> TimeSpan:
    """便捷函数：创建耗时记录"""
    return TimeSpan(start_message, stage, debug_only)


def format_duration(seconds: float) -> str:
    """格式化耗时"""
    if seconds < 1.0:
        return f"{seconds * 1000:.0f} ms"
    return f"{seconds:.2f} s"


scan_logger = get_stage_logger(LogStage.SCAN)
compile_logger = get_stage_logger(LogStage.COMPILE)
manifest_logger = get_stage_logger(LogStage.MANIFEST)
copy_logger = get_stage_logger(LogStage.COPY)
write_logger = get_stage_logger(LogStage.WRITE)


atexit.register(close_logger)
