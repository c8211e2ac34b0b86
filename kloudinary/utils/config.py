"""
配置管理模块

按 默认值 -> 配置文件（JSON / INI）-> 环境变量 的顺序合并上传工具的配置
"""

import configparser
import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .exceptions import ConfigError, ValidationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class CloudinaryConfig:
    """Cloudinary账户配置"""
    cloud_name: str = ""
    api_key: str = ""
    api_secret: str = ""
    secure: bool = True
    executor_workers: int = 8

    def validate(self) -> None:
        for name in ("cloud_name", "api_key", "api_secret"):
            if not getattr(self, name):
                raise ValidationError(f"{name}不能为空", field_name=name)
        if self.executor_workers < 1:
            raise ValidationError("线程数必须大于0", field_name="executor_workers",
                                  field_value=self.executor_workers)


@dataclass
class UploadConfig:
    """上传配置"""
    max_concurrent_uploads: int = 1
    max_upload_timeout: float = 60.0  # 秒
    max_asset_size: int = 4 * 1024 * 1024  # 字节
    supported_extensions: Optional[List[str]] = None  # None 表示使用默认列表

    def validate(self) -> None:
        if self.max_concurrent_uploads < 1:
            raise ValidationError("最大并发上传数必须大于0", field_name="max_concurrent_uploads",
                                  field_value=self.max_concurrent_uploads)
        if self.max_upload_timeout <= 0:
            raise ValidationError("上传超时时间必须大于0", field_name="max_upload_timeout",
                                  field_value=self.max_upload_timeout)
        if self.max_asset_size <= 0:
            raise ValidationError("最大资源大小必须大于0", field_name="max_asset_size",
                                  field_value=self.max_asset_size)


@dataclass
class LoggingConfig:
    """日志配置"""
    level: str = "INFO"
    log_file: Optional[str] = "kloudinary.log"
    log_dir: str = "logs"
    console_output: bool = True
    json_format: bool = False

    def validate(self) -> None:
        if self.level.upper() not in LOG_LEVELS:
            raise ValidationError(f"无效的日志级别: {self.level}", field_name="level",
                                  field_value=self.level)


@dataclass
class Config:
    """应用配置"""
    cloudinary: CloudinaryConfig = field(default_factory=CloudinaryConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    debug: bool = False
    config_file: Optional[str] = None

    def validate(self) -> None:
        """
        验证全部配置

        Raises:
            ConfigError: 任一配置段不合法
        """
        for section in (self.cloudinary, self.upload, self.logging):
            try:
                section.validate()
            except ValidationError as e:
                raise ConfigError(f"配置验证失败: {e.message}", config_key=e.field_name,
                                  config_value=e.field_value) from e

    def to_dict(self) -> Dict[str, Any]:
        """转换为可写入JSON的字典（不含 config_file）"""
        data = asdict(self)
        data.pop("config_file")
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """从字典创建配置对象，字符串值会按字段类型转换"""
        config = cls()

        for name, section_cls in _SECTIONS.items():
            if name in data:
                setattr(config, name, section_cls(**_coerce_section(section_cls, data[name])))

        debug = data.get("debug", False)
        config.debug = _convert_value(debug, bool) if isinstance(debug, str) else bool(debug)

        return config

    def save_to_file(self, file_path: str) -> None:
        """以JSON格式保存配置"""
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding='utf-8')
        except OSError as e:
            raise ConfigError(f"保存配置文件失败: {e}") from e


_SECTIONS: Dict[str, type] = {
    "cloudinary": CloudinaryConfig,
    "upload": UploadConfig,
    "logging": LoggingConfig,
}

# 需要从字符串转换的字段
_FIELD_TYPES: Dict[str, type] = {
    "secure": bool,
    "executor_workers": int,
    "max_concurrent_uploads": int,
    "max_upload_timeout": float,
    "max_asset_size": int,
    "supported_extensions": list,
    "console_output": bool,
    "json_format": bool,
}


def _convert_value(value: str, value_type: type) -> Any:
    """把字符串转换为指定类型"""
    if value_type == bool:
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    if value_type == list:
        return [item.strip() for item in value.split(',') if item.strip()]
    if value_type in (int, float):
        return value_type(value)
    return value


def _coerce_section(section_cls: type, data: Dict[str, Any]) -> Dict[str, Any]:
    """拒绝未知字段，并转换来自INI或环境变量的字符串值"""
    unknown = set(data) - {f.name for f in fields(section_cls)}
    if unknown:
        raise ConfigError(f"未知配置项: {', '.join(sorted(unknown))}", config_key=section_cls.__name__)

    result = {}
    for key, value in data.items():
        value_type = _FIELD_TYPES.get(key)
        if isinstance(value, str) and value_type is not None:
            try:
                value = _convert_value(value, value_type)
            except ValueError as e:
                raise ConfigError(f"配置项 {key} 值转换错误: {e}", config_key=key, config_value=value) from e
        result[key] = value
    return result


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        raise ConfigError(f"JSON配置文件格式错误: {e}") from e


def _read_ini(path: Path) -> Dict[str, Any]:
    parser = configparser.ConfigParser()
    try:
        parser.read(path, encoding='utf-8')
    except configparser.Error as e:
        raise ConfigError(f"INI配置文件格式错误: {e}") from e

    data: Dict[str, Any] = {name: dict(parser[name]) for name in parser.sections()}
    # [general] 段中的键放到顶层
    data.update(data.pop("general", {}))
    return data


_READERS: Dict[str, Callable[[Path], Dict[str, Any]]] = {
    ".json": _read_json,
    ".ini": _read_ini,
    ".cfg": _read_ini,
}


class ConfigManager:
    """配置管理器"""

    # 环境变量 -> (配置路径, 类型)
    ENV_MAPPING = {
        "CLOUDINARY_CLOUD_NAME": ("cloudinary.cloud_name", str),
        "CLOUDINARY_API_KEY": ("cloudinary.api_key", str),
        "CLOUDINARY_API_SECRET": ("cloudinary.api_secret", str),

        "MAX_CONCURRENT_UPLOADS": ("upload.max_concurrent_uploads", int),
        "MAX_UPLOAD_TIMEOUT": ("upload.max_upload_timeout", float),
        "MAX_ASSET_SIZE": ("upload.max_asset_size", int),
        "SUPPORTED_EXTENSIONS": ("upload.supported_extensions", list),

        "LOG_LEVEL": ("logging.level", str),
        "LOG_FILE": ("logging.log_file", str),
        "LOG_DIR": ("logging.log_dir", str),

        "DEBUG": ("debug", bool)
    }

    def __init__(self, config_file: Optional[str] = None):
        """
        初始化配置管理器

        Args:
            config_file: 配置文件路径（.json / .ini / .cfg），不存在时只使用默认值和环境变量
        """
        from .logger import get_logger
        self.logger = get_logger(f"{__name__}.ConfigManager")

        self.config_file = config_file or "config.json"
        self.config = Config()
        self._load_config()

    def _load_config(self) -> None:
        path = Path(self.config_file)

        if path.exists():
            reader = _READERS.get(path.suffix.lower())
            if reader is None:
                raise ConfigError(f"不支持的配置文件格式: {path.suffix}", config_key="config_file",
                                  config_value=self.config_file)
            try:
                config = Config.from_dict(reader(path))
            except OSError as e:
                raise ConfigError(f"读取配置文件失败: {e}") from e
            self.logger.debug(f"加载配置文件: {self.config_file}")
        else:
            config = Config()

        config.config_file = self.config_file
        self.config = config
        self._apply_env()

    def _apply_env(self) -> None:
        """环境变量覆盖文件中的值"""
        for env_key, (config_key, value_type) in self.ENV_MAPPING.items():
            env_value = os.getenv(env_key)
            if env_value is None:
                continue
            try:
                value = _convert_value(env_value, value_type)
            except ValueError as e:
                raise ConfigError(f"环境变量 {env_key} 值转换错误: {e}",
                                  config_key=env_key, config_value=env_value) from e

            *parents, attr = config_key.split('.')
            target = self.config
            for parent in parents:
                target = getattr(target, parent)
            setattr(target, attr, value)

    def validate_for_usage(self) -> None:
        """
        验证配置是否可用于实际上传

        Raises:
            ConfigError: 配置验证失败
        """
        self.config.validate()

    def get_config(self) -> Config:
        return self.config

    def save_config(self, file_path: Optional[str] = None) -> None:
        self.config.save_to_file(file_path or self.config_file)

    def reload_config(self) -> None:
        self._load_config()

    def masked_config(self) -> Dict[str, Any]:
        """隐藏API Key和Secret后的配置字典"""
        data = self.config.to_dict()
        for key in ("api_key", "api_secret"):
            if data["cloudinary"].get(key):
                data["cloudinary"][key] = "***"
        return data

    def print_config(self) -> None:
        print(json.dumps(self.masked_config(), indent=2, ensure_ascii=False))


_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[str] = None) -> ConfigManager:
    """获取全局配置管理器，首次调用时创建"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(config_file)
    return _config_manager


def get_config() -> Config:
    return get_config_manager().get_config()


def setup_config(config_file: Optional[str] = None) -> Config:
    """重新创建全局配置管理器并返回其配置"""
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager.config
