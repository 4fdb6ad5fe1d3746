"""
文件系统宿主

构建管道访问文件系统的唯一入口。列目录、stat 和读文件是异步挂起点，
路径拼接与相对路径计算是同步的纯函数。
"""

import asyncio
import os
import posixpath
import stat as stat_module
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from ..utils.paths import normalize_path


@dataclass(frozen=True)
class StatResult:
    """stat 结果"""
    is_directory: bool
    size: int = 0


class FileSystemHost(ABC):
    """文件系统宿主抽象接口"""

    @abstractmethod
    async def list_dir(self, path: str) -> List[str]:
        """列出目录的直接子项名称"""
        pass

    @abstractmethod
    async def stat(self, path: str) -> StatResult:
        pass

    @abstractmethod
    async def read_file(self, path: str) -> bytes:
        pass

    def join_path(self, *parts: str) -> str:
        if not parts:
            return "."
        return normalize_path(posixpath.join(*(normalize_path(p) for p in parts)))

    def relative_path(self, base: str, target: str) -> str:
        return normalize_path(posixpath.relpath(normalize_path(target), normalize_path(base)))


class LocalFileSystem(FileSystemHost):
    """本地文件系统实现

    阻塞调用放到线程中执行，不阻塞事件循环。
    """

    async def list_dir(self, path: str) -> List[str]:
        return await asyncio.to_thread(os.listdir, path)

    async def stat(self, path: str) -> StatResult:
        st = await asyncio.to_thread(os.stat, path)
        return StatResult(is_directory=stat_module.S_ISDIR(st.st_mode), size=st.st_size)

    async def read_file(self, path: str) -> bytes:
        return await asyncio.to_thread(self._read_bytes, path)

    @staticmethod
    def _read_bytes(path: str) -> bytes:
        with open(path, 'rb') as f:
            return f.read()
