"""
数据模型

上传输入、上传配置、元数据与上传结果
"""

from .asset import (
    EXTENSION_FOLDERS,
    InputKind,
    LogicalFolder,
    PathInput,
    StreamInput,
    UploadInput,
    default_supported_extensions,
    source_label,
    to_upload_input,
)
from .metadata import Meta
from .upload_config import UploadConfiguration
from .upload_result import BatchSummary, UploadOutcome, UploadResult

__all__ = [
    'EXTENSION_FOLDERS',
    'InputKind',
    'LogicalFolder',
    'PathInput',
    'StreamInput',
    'UploadInput',
    'default_supported_extensions',
    'source_label',
    'to_upload_input',
    'Meta',
    'UploadConfiguration',
    'BatchSummary',
    'UploadOutcome',
    'UploadResult',
]
