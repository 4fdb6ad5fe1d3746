"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    StageLogger,
    LogStage,
    OutputLevel,
    TimeSpan,
    time_span,
    format_duration,
    # 预定义日志器
    scan_logger,
    compile_logger,
    manifest_logger,
    copy_logger,
    write_logger,
)

from .paths import (
    normalize_path,
    is_path_inside,
    ensure_directory,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "StageLogger",
    "LogStage",
    "OutputLevel",
    "TimeSpan",
    "time_span",
    "format_duration",
    "scan_logger",
    "compile_logger",
    "manifest_logger",
    "copy_logger",
    "write_logger",

    # 路径相关
    "normalize_path",
    "is_path_inside",
    "ensure_directory",
]
