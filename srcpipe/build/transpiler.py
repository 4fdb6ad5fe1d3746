"""
编译器协作接口

定义单文件编译与批处理两步接口。BasicTranspiler 是默认实现：
它不做词法分析或类型检查，只负责确定输出路径、透传源码文本并发现样式资源引用。
"""

import posixpath
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Pattern, Sequence, TYPE_CHECKING

from ..utils.paths import is_path_inside, normalize_path
from .diagnostics import CompileError, DiagnosticRecord, Phase, Severity
from .models import BatchResult, CompilationUnit

if TYPE_CHECKING:
    from .build_context import BuildConfig, BuildContext


class Transpiler(ABC):
    """编译器抽象接口"""

    @abstractmethod
    async def compile(self, config: 'BuildConfig', context: 'BuildContext', path: str) -> CompilationUnit:
        """编译单个源文件

        Raises:
            CompileError: 该文件编译失败
        """
        pass

    async def finalize_batch(
        self,
        config: 'BuildConfig',
        context: 'BuildContext',
        units: Dict[str, CompilationUnit],
    ) -> BatchResult:
        """所有单文件编译完成后的批处理（跨文件诊断）

        Raises:
            FatalError: 批处理失败
        """
        return BatchResult()


def build_reference_pattern(extensions: Sequence[str]) -> Pattern:
    """构建匹配带引号资源路径的正则"""
    suffixes = "|".join(re.escape(ext.lstrip('.')) for ext in extensions) or r"(?!)"
    return re.compile(r"""['"`]([^'"`\s]+\.(?:%s))['"`]""" % suffixes, re.IGNORECASE)


class BasicTranspiler(Transpiler):
    """默认编译器实现"""

    output_extension = ".js"

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self._patterns: Dict[Sequence[str], Pattern] = {}

    async def compile(self, config: 'BuildConfig', context: 'BuildContext', path: str) -> CompilationUnit:
        path = normalize_path(path)

        try:
            raw = await config.fs.read_file(path)
        except OSError as e:
            raise CompileError(f"无法读取源文件: {e}", path) from e

        try:
            text = raw.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise CompileError(f"源文件不是有效的 {self.encoding} 文本: {e}", path) from e

        diagnostics: List[DiagnosticRecord] = []
        if not text.strip():
            diagnostics.append(DiagnosticRecord(Severity.WARNING, "源文件为空", Phase.COMPILE, path))

        return CompilationUnit(
            source_path=path,
            output_path=self.output_path_for(config, path),
            output_text=text,
            asset_paths=self.find_asset_references(config, path, text),
            diagnostics=diagnostics,
        )

    async def finalize_batch(
        self,
        config: 'BuildConfig',
        context: 'BuildContext',
        units: Dict[str, CompilationUnit],
    ) -> BatchResult:
        """检查多个源文件映射到同一输出路径的冲突"""
        by_output: Dict[str, List[str]] = {}
        for source_path, unit in units.items():
            by_output.setdefault(unit.output_path, []).append(source_path)

        diagnostics = []
        for output_path, sources in sorted(by_output.items()):
            if len(sources) < 2:
                continue
            sources = sorted(sources)
            for source_path in sources[1:]:
                diagnostics.append(DiagnosticRecord(
                    Severity.WARNING,
                    f"输出路径 {output_path} 与 {sources[0]} 冲突",
                    Phase.COMPILE,
                    source_path,
                ))

        return BatchResult(diagnostics=diagnostics)

    def output_path_for(self, config: 'BuildConfig', path: str) -> str:
        """计算输出路径：源码树内的文件映射到 collection 目录，保持相对结构"""
        if is_path_inside(path, config.src):
            relative = config.fs.relative_path(config.src, path)
            target = config.fs.join_path(config.collection_dest, relative)
        else:
            target = config.fs.join_path(config.dest, posixpath.basename(path))

        stem, _ = posixpath.splitext(target)
        return stem + self.output_extension

    def find_asset_references(self, config: 'BuildConfig', path: str, text: str) -> List[str]:
        """查找源码中引用的资源文件，按首次出现顺序去重"""
        pattern = self._patterns.get(config.asset_extensions)
        if pattern is None:
            pattern = build_reference_pattern(config.asset_extensions)
            self._patterns[config.asset_extensions] = pattern

        directory = posixpath.dirname(path)
        found: List[str] = []
        for match in pattern.finditer(text):
            reference = match.group(1)
            if reference.startswith('/'):
                resolved = normalize_path(reference)
            else:
                resolved = config.fs.join_path(directory, reference)
            if resolved not in found:
                found.append(resolved)
        return found
