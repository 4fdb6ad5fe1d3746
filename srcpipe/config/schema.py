"""
配置 Schema 定义

使用 Pydantic 定义 YAML 构建配置模型，支持验证和类型检查。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class ExcludeMode(str, Enum):
    """排除模式匹配方式"""
    SEGMENT = "segment"  # 按路径片段 glob 匹配
    SUBSTRING = "substring"  # 子串匹配


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        SUPPORTED_VERSIONS = [1]
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {SUPPORTED_VERSIONS}")
        return v


class PathsModel(BaseModel):
    """路径配置模型"""
    src: Union[str, Path] = Field(..., description="源码根目录")
    root_dir: Optional[Union[str, Path]] = Field(None, description="项目根目录，默认为 src 的上级目录")
    dest: Optional[Union[str, Path]] = Field(None, description="输出根目录，默认为 root_dir/dist")
    collection_dest: Optional[Union[str, Path]] = Field(
        None,
        description="collection 输出目录，默认为 dest/collection"
    )

    @field_validator('src', 'root_dir', 'dest', 'collection_dest')
    @classmethod
    def validate_path(cls, v: Optional[Union[str, Path]]) -> Optional[Path]:
        if v is None:
            return None
        if isinstance(v, str) and not v.strip():
            raise ValueError("路径不能为空")
        return Path(v)

    @model_validator(mode='after')
    def fill_default_paths(self) -> 'PathsModel':
        """补全未指定的派生路径"""
        if self.root_dir is None:
            self.root_dir = Path(self.src).parent
        if self.dest is None:
            self.dest = Path(self.root_dir) / "dist"
        if self.collection_dest is None:
            self.collection_dest = Path(self.dest) / "collection"
        return self


class CompilerModel(BaseModel):
    """编译配置模型"""
    source_extensions: List[str] = Field(
        default_factory=lambda: [".ts", ".tsx"],
        description="可编译源文件扩展名",
        min_length=1,
    )
    asset_extensions: List[str] = Field(
        default_factory=lambda: [".css", ".scss", ".sass"],
        description="资源文件扩展名",
    )
    max_concurrency: int = Field(16, description="并发 I/O 与编译请求上限", ge=1, le=1024)

    @field_validator('source_extensions', 'asset_extensions')
    @classmethod
    def validate_extensions(cls, v: List[str]) -> List[str]:
        """扩展名统一为小写且以点开头，去除重复项"""
        cleaned: List[str] = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith('.'):
                raise ValueError(f"扩展名必须以 '.' 开头: {ext}")
            if ext not in cleaned:
                cleaned.append(ext)
        return cleaned

    @model_validator(mode='after')
    def validate_disjoint(self) -> 'CompilerModel':
        overlap = set(self.source_extensions) & set(self.asset_extensions)
        if overlap:
            raise ValueError(f"扩展名不能同时是源文件和资源文件: {sorted(overlap)}")
        return self


class SrcpipeConfig(BaseModel):
    """srcpipe 主配置模型

    这是整个配置文件的根模型，包含所有配置部分。
    """

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")

    paths: PathsModel = Field(..., description="路径配置")

    compiler: CompilerModel = Field(default_factory=CompilerModel, description="编译配置")
    exclude: List[str] = Field(
        default_factory=lambda: ["node_modules", ".git"],
        description="排除模式列表"
    )
    exclude_mode: ExcludeMode = Field(
        ExcludeMode.SEGMENT,
        description=(
            "排除模式匹配方式：默认 segment 按完整路径片段匹配，"
            "例如 'ignor' 不会排除 ignored/；需要子串匹配时设为 substring"
        )
    )
    generate_collection: bool = Field(True, description="是否生成 collection 输出")

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }

    @field_validator('exclude')
    @classmethod
    def validate_exclude(cls, v: List[str]) -> List[str]:
        """去除空模式，保留顺序"""
        return [pattern for pattern in (p.strip() for p in v) if pattern]

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return obj.as_posix()
            return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SrcpipeConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
