"""
路径工具

构建管道内部统一使用正斜杠分隔的字符串路径。
"""

import posixpath
from pathlib import Path
from typing import Union


def normalize_path(path: Union[str, Path]) -> str:
    """规范化路径：统一正斜杠，折叠 `.` 与 `..`，去掉末尾斜杠

    Args:
        path: 原始路径

    Returns:
        str: 规范化后的路径
    """
    text = str(path).replace('\\', '/')
    if not text:
        return "."

    normalized = posixpath.normpath(text)
    # posixpath 会保留开头的双斜杠
    if normalized.startswith('//'):
        normalized = '/' + normalized.lstrip('/')
    return normalized


def is_path_inside(path: Union[str, Path], root: Union[str, Path]) -> bool:
    """检查路径是否位于根目录之内（按路径片段判断）

    `/src2/a.scss` 不属于 `/src`。根目录为 `.` 时，
    所有不以 `..` 开头的相对路径都在其内。
    """
    path_str = normalize_path(path)
    root_str = normalize_path(root)

    if path_str == root_str:
        return True
    if root_str == '/':
        return path_str.startswith('/')
    if root_str == '.':
        # 规范化后的相对路径不再带有 ./ 前缀
        return not (path_str.startswith('/') or path_str == '..' or path_str.startswith('../'))
    return path_str.startswith(root_str + '/')


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在"""
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path
