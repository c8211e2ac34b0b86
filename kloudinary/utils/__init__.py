"""
工具模块

提供日志管理、配置管理和异常处理等基础功能
"""

from .logger import setup_logging, get_logger
from .exceptions import (
    KloudinaryError,
    ConfigError,
    ValidationError,
    UploadError
)

__all__ = [
    'setup_logging',
    'get_logger',
    'KloudinaryError',
    'ConfigError',
    'ValidationError',
    'UploadError'
]
