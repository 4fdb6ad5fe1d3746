"""
配置加载器

读取 YAML 构建配置，把 paths 段的相对路径解析到配置文件所在目录，再交给 Pydantic 验证。
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .schema import SrcpipeConfig


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误，errors 为 Pydantic 的错误列表"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        lines = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            prefix = f"字段 '{loc}'" if loc else "根级别"
            lines.append(f"{prefix}: {error.get('msg', '未知错误')}")
        return "\n".join(lines)

    def format_errors_json(self) -> str:
        return json.dumps(self.errors, ensure_ascii=False, indent=2, default=str)


# paths 段中相对于配置文件目录解析的字段
PATH_FIELDS = ('src', 'root_dir', 'dest', 'collection_dest')
YAML_SUFFIXES = ('.yaml', '.yml')


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML(typ='safe')
        self.yaml.default_flow_style = False
        self.yaml.width = 4096  # 避免长行自动换行

    def load_from_file(self, config_path: Union[str, Path]) -> SrcpipeConfig:
        """从 YAML 文件加载配置

        Raises:
            ConfigError: 文件不可读或格式错误
            ConfigValidationError: 内容未通过验证
        """
        config_path = Path(config_path)
        raw_data = self._read_mapping(config_path)
        return self.load_from_dict(raw_data, config_path.parent.resolve())

    def _read_mapping(self, config_path: Path) -> Dict[str, Any]:
        if not config_path.exists():
            raise ConfigError(f"配置文件不存在: {config_path}")
        if not config_path.is_file():
            raise ConfigError(f"配置路径不是文件: {config_path}")
        if config_path.suffix.lower() not in YAML_SUFFIXES:
            raise ConfigError(f"配置文件必须是 .yaml 或 .yml 格式: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = self.yaml.load(f)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}") from e
        except OSError as e:
            raise ConfigError(f"文件读取错误: {e}") from e

        if data is None:
            raise ConfigError("配置文件为空")
        if not isinstance(data, dict):
            raise ConfigError("配置文件根级别必须是对象/字典格式")
        return data

    def load_from_dict(self, data: Dict[str, Any], base_path: Optional[Path] = None) -> SrcpipeConfig:
        """从字典加载配置

        Args:
            data: 配置数据，不会被修改
            base_path: 相对路径的基准目录，为空时不解析相对路径
        """
        if base_path:
            data = self.resolve_paths(data, base_path)

        try:
            return SrcpipeConfig.from_dict(data)
        except ValidationError as e:
            raise ConfigValidationError("配置验证失败", list(e.errors())) from e

    @staticmethod
    def resolve_paths(data: Dict[str, Any], base_path: Path) -> Dict[str, Any]:
        """返回把 paths 段相对路径解析为绝对路径后的副本"""
        data = copy.deepcopy(data)
        paths = data.get('paths')
        if isinstance(paths, dict):
            for key in PATH_FIELDS:
                value = paths.get(key)
                if isinstance(value, str) and value and not Path(value).is_absolute():
                    paths[key] = str((base_path / value).resolve())
        return data

    def save_to_file(self, config: SrcpipeConfig, output_path: Union[str, Path]) -> None:
        """保存配置到 YAML 文件"""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                self.yaml.dump(config.to_dict(), f)
        except (OSError, YAMLError) as e:
            raise ConfigError(f"保存配置文件失败: {e}") from e

    def validate_file(self, config_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """验证配置文件，返回错误列表（空列表表示通过）"""
        try:
            self.load_from_file(config_path)
        except ConfigValidationError as e:
            return e.errors
        except ConfigError as e:
            return [{'loc': [], 'msg': str(e), 'type': 'config_error'}]
        return []


# 全局加载器实例
config_loader = ConfigLoader()


def load_config(config_path: Union[str, Path]) -> SrcpipeConfig:
    return config_loader.load_from_file(config_path)


def validate_config(config_path: Union[str, Path]) -> List[Dict[str, Any]]:
    return config_loader.validate_file(config_path)


def save_config(config: SrcpipeConfig, output_path: Union[str, Path]) -> None:
    config_loader.save_to_file(config, output_path)
