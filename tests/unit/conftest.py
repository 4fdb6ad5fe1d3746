"""
单元测试公共夹具

提供内存文件系统（可注入 stat/列目录/读文件失败并统计并发度）和构建配置工厂。
"""

import asyncio
import errno
import posixpath
from collections import Counter
from typing import Dict, Iterable, List, Optional, Union

import pytest

from srcpipe.build.build_context import BuildConfig, BuildContext
from srcpipe.build.fs_host import FileSystemHost, StatResult
from srcpipe.utils.logging import OutputLevel, set_log_level
from srcpipe.utils.paths import normalize_path


class MemoryFileSystem(FileSystemHost):
    """内存文件系统"""

    def __init__(
        self,
        files: Optional[Dict[str, Union[str, bytes]]] = None,
        dirs: Iterable[str] = (),
        fail_stat: Iterable[str] = (),
        fail_list: Iterable[str] = (),
        fail_read: Iterable[str] = (),
        delay_steps: int = 2,
    ):
        self.files: Dict[str, bytes] = {}
        self.dirs = {"/"}
        for path, content in (files or {}).items():
            self.add_file(path, content)
        for directory in dirs:
            self.add_dir(directory)

        self.fail_stat = {normalize_path(p) for p in fail_stat}
        self.fail_list = {normalize_path(p) for p in fail_list}
        self.fail_read = {normalize_path(p) for p in fail_read}
        self.delay_steps = delay_steps

        self.stat_calls: Counter = Counter()
        self.list_calls: Counter = Counter()
        self.read_calls: Counter = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    def add_dir(self, path: str) -> None:
        path = normalize_path(path)
        while path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path)

    def add_file(self, path: str, content: Union[str, bytes]) -> None:
        path = normalize_path(path)
        self.add_dir(posixpath.dirname(path))
        self.files[path] = content.encode('utf-8') if isinstance(content, str) else content

    async def _io(self):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            for _ in range(self.delay_steps):
                await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

    async def list_dir(self, path: str) -> List[str]:
        path = normalize_path(path)
        self.list_calls[path] += 1
        await self._io()
        if path in self.fail_list:
            raise PermissionError(errno.EACCES, "Permission denied", path)
        if path not in self.dirs:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)

        children = set()
        for candidate in list(self.dirs) + list(self.files):
            if candidate != path and posixpath.dirname(candidate) == path:
                children.add(posixpath.basename(candidate))
        return sorted(children)

    async def stat(self, path: str) -> StatResult:
        path = normalize_path(path)
        self.stat_calls[path] += 1
        await self._io()
        if path in self.fail_stat:
            raise OSError(errno.EIO, "Input/output error", path)
        if path in self.dirs:
            return StatResult(is_directory=True)
        if path in self.files:
            return StatResult(is_directory=False, size=len(self.files[path]))
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)

    async def read_file(self, path: str) -> bytes:
        path = normalize_path(path)
        self.read_calls[path] += 1
        await self._io()
        if path in self.fail_read:
            raise OSError(errno.EIO, "Input/output error", path)
        if path not in self.files:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
        return self.files[path]


@pytest.fixture(autouse=True)
def quiet_logging():
    """测试期间只输出错误日志"""
    set_log_level(OutputLevel.ERROR)
    yield
    set_log_level(OutputLevel.INFO)


@pytest.fixture
def memory_fs():
    """创建内存文件系统的工厂"""
    return MemoryFileSystem


@pytest.fixture
def make_config():
    """创建构建配置的工厂，默认 src=/src, collection_dest=/dist/collection"""

    def _make(fs: FileSystemHost, **overrides) -> BuildConfig:
        values = dict(
            src="/src",
            root_dir="/",
            dest="/dist",
            collection_dest="/dist/collection",
            exclude=(),
            generate_collection=True,
            max_concurrency=8,
            fs=fs,
        )
        values.update(overrides)
        return BuildConfig(**values)

    return _make


@pytest.fixture
def make_context():
    def _make(config: BuildConfig) -> BuildContext:
        return BuildContext(config=config)

    return _make


@pytest.fixture
def example_tree(memory_fs):
    """示例源码树：/src 下三个有效源文件、一个被排除的源文件和一个样式文件"""
    return memory_fs({
        "/src/a.ts": "@Component({ styleUrl: 'styles/a.scss' })\nexport class A {}\n",
        "/src/b.ts": "export const b = 1;\n",
        "/src/sub/c.ts": "export const c = 2;\n",
        "/src/ignored/d.ts": "export const d = 3;\n",
        "/src/styles/a.scss": ".a { color: red; }\n",
        "/src/readme.md": "# readme\n",
    })
