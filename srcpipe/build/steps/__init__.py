"""构建步骤"""

from .build_step import BuildStep
from .scan_step import ScanStep
from .compile_step import CompileStep
from .manifest_step import ManifestStep
from .mirror_step import MirrorStep

__all__ = [
    "BuildStep",
    "ScanStep",
    "CompileStep",
    "ManifestStep",
    "MirrorStep",
]
