"""
待写入文件落盘

构建管道只填充待写入列表，由调用方（CLI）决定是否落盘。
"""

from pathlib import Path
from typing import Dict, List, Union

from ..utils.logging import write_logger
from ..utils.paths import ensure_directory


def write_pending_files(files_to_write: Dict[str, Union[str, bytes]], force: bool = True) -> List[Path]:
    """把待写入文件写入磁盘

    Args:
        files_to_write: 目标路径 -> 内容
        force: 是否覆盖已存在的文件

    Returns:
        List[Path]: 实际写入的文件

    Raises:
        FileExistsError: force 为 False 且目标文件已存在
    """
    written: List[Path] = []

    for destination in sorted(files_to_write):
        content = files_to_write[destination]
        path = Path(destination)

        if path.exists() and not force:
            raise FileExistsError(f"输出文件已存在: {path}")

        ensure_directory(path.parent)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')

        write_logger.debug(f"写入: {path}")
        written.append(path)

    return written
