"""
路径分类器

根据排除规则与文件扩展名判断路径类型。纯函数，无副作用。
"""

import fnmatch
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from ..config.schema import ExcludeMode
from ..utils.paths import is_path_inside, normalize_path


class PathKind(str, Enum):
    """路径分类"""
    EXCLUDED = "excluded"
    DIRECTORY = "directory"
    COMPILABLE_SOURCE = "compilable_source"
    ASSET = "asset"
    IGNORED = "ignored"


# 类型声明文件不参与编译
DECLARATION_SUFFIXES = ('.d.ts', '.d.mts', '.d.cts')


class ExclusionMatcher:
    """排除规则匹配器

    substring 模式：任一模式是完整路径的子串即排除。
    segment 模式：对相对于 base 的路径按片段做 glob 匹配，
    包含 `/` 的模式需匹配连续的若干片段，以 `/` 结尾的模式只表示目录名。
    """

    def __init__(
        self,
        patterns: Iterable[str],
        mode: ExcludeMode = ExcludeMode.SEGMENT,
        base: Optional[str] = None,
    ):
        self.patterns: List[str] = [p.replace('\\', '/') for p in patterns if p]
        self.mode = ExcludeMode(mode)
        self.base = normalize_path(base) if base else None

    def matches(self, path: str) -> bool:
        """检查路径是否被排除"""
        if not self.patterns:
            return False

        path_str = normalize_path(path)

        if self.mode == ExcludeMode.SUBSTRING:
            return any(pattern in path_str for pattern in self.patterns)

        segments = self._relative_segments(path_str)
        if not segments:
            return False
        return any(self._match_segments(segments, pattern) for pattern in self.patterns)

    def _relative_segments(self, path_str: str) -> List[str]:
        if self.base and is_path_inside(path_str, self.base):
            if path_str == self.base:
                return []
            if self.base != '.':
                path_str = path_str[len(self.base):]
        return [s for s in path_str.split('/') if s and s != '.']

    @staticmethod
    def _match_segments(segments: Sequence[str], pattern: str) -> bool:
        """匹配单个模式

        Args:
            segments: 路径片段
            pattern: glob 模式

        Returns:
            bool: 是否匹配
        """
        pattern = pattern.strip('/')
        if not pattern:
            return False

        pattern_parts = [p for p in pattern.split('/') if p]

        # 单片段模式：任一片段匹配即可
        if len(pattern_parts) == 1:
            return any(fnmatch.fnmatchcase(segment, pattern_parts[0]) for segment in segments)

        # 多片段模式：匹配连续片段
        for i in range(len(segments) - len(pattern_parts) + 1):
            if all(
                fnmatch.fnmatchcase(segments[i + j], pattern_parts[j])
                for j in range(len(pattern_parts))
            ):
                return True
        return False


def _lower_name(path: str) -> str:
    return normalize_path(path).rsplit('/', 1)[-1].lower()


def is_source_file(path: str, extensions: Sequence[str]) -> bool:
    """扩展名是否标记为可编译源文件"""
    name = _lower_name(path)
    if name.endswith(DECLARATION_SUFFIXES):
        return False
    return name.endswith(tuple(ext.lower() for ext in extensions))


def is_asset_file(path: str, extensions: Sequence[str]) -> bool:
    """扩展名是否标记为资源文件"""
    return _lower_name(path).endswith(tuple(ext.lower() for ext in extensions))


def classify(
    path: str,
    matcher: ExclusionMatcher,
    is_directory: bool,
    source_extensions: Sequence[str],
    asset_extensions: Sequence[str],
) -> PathKind:
    """判断路径类型

    排除规则优先；目录状态由调用方的 stat 结果提供。
    """
    if matcher.matches(path):
        return PathKind.EXCLUDED
    if is_directory:
        return PathKind.DIRECTORY
    if is_source_file(path, source_extensions):
        return PathKind.COMPILABLE_SOURCE
    if is_asset_file(path, asset_extensions):
        return PathKind.ASSET
    return PathKind.IGNORED
