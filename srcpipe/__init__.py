"""
srcpipe - 源码目录编译构建管道

Scans a source tree, compiles every source file, aggregates diagnostics and
mirrors referenced assets into a distributable collection layout.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config.schema import SrcpipeConfig
from .build.builder import Builder, BuildResult

__all__ = ["SrcpipeConfig", "Builder", "BuildResult", "__version__"]
