"""
Manifest 构建协作接口

Manifest 的语义内容由 ManifestBuilder 决定，编排器只负责调用并保存返回值。
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, TYPE_CHECKING

from .. import __version__
from ..utils.paths import is_path_inside
from .models import CompileResult

if TYPE_CHECKING:
    from .build_context import BuildConfig, BuildContext


class ManifestBuilder(ABC):
    """Manifest 构建器抽象接口"""

    @abstractmethod
    def build(self, config: 'BuildConfig', context: 'BuildContext', result: CompileResult) -> Any:
        """根据累计的编译结果生成 manifest"""
        pass


class CollectionManifestBuilder(ManifestBuilder):
    """默认 manifest：模块与资源清单，路径相对于源码根目录或项目根目录"""

    def build(self, config: 'BuildConfig', context: 'BuildContext', result: CompileResult) -> Dict[str, Any]:
        fs = config.fs

        def relative(path: str) -> str:
            base = config.src if is_path_inside(path, config.src) else config.root_dir
            return fs.relative_path(base, path)

        modules = []
        for source_path in sorted(result.module_files):
            unit = result.module_files[source_path]
            modules.append({
                'source': relative(source_path),
                'output': fs.relative_path(config.collection_dest, unit.output_path)
                if is_path_inside(unit.output_path, config.collection_dest)
                else unit.output_path,
                'assets': [relative(p) for p in unit.asset_paths],
            })

        return {
            'compiler': {'name': 'srcpipe', 'version': __version__},
            'collection': config.generate_collection,
            'modules': modules,
            'assets': [relative(p) for p in result.included_asset_files],
        }
