#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
上传配置数据模型
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .asset import default_supported_extensions

DEFAULT_MAX_ASSET_SIZE = 4 * 1024 * 1024  # 4MB
DEFAULT_UPLOAD_TIMEOUT = 60.0  # 1分钟


class UploadConfiguration(BaseModel):
    """
    上传管理器的可调参数

    构造后仍可修改，赋值时同样会校验；批量上传开始时会复制一份快照
    """

    model_config = ConfigDict(validate_assignment=True)

    supported_extensions: List[str] = Field(
        default_factory=default_supported_extensions,
        description="允许的扩展名，空列表表示全部允许"
    )
    max_asset_size: int = Field(default=DEFAULT_MAX_ASSET_SIZE, description="最大资源大小（字节）")
    max_upload_timeout: float = Field(default=DEFAULT_UPLOAD_TIMEOUT, description="单个上传超时（秒）")
    max_concurrent_uploads: int = Field(default=1, description="最大并发上传数")

    @field_validator('supported_extensions')
    @classmethod
    def validate_supported_extensions(cls, v):
        """验证扩展名列表"""
        return [ext[1:] if ext.startswith('.') else ext for ext in v]

    @field_validator('max_asset_size')
    @classmethod
    def validate_max_asset_size(cls, v):
        """验证最大资源大小"""
        if v <= 0:
            raise ValueError("最大资源大小必须为正整数")
        return v

    @field_validator('max_upload_timeout')
    @classmethod
    def validate_max_upload_timeout(cls, v):
        """验证上传超时"""
        if v <= 0:
            raise ValueError("上传超时时间必须大于0")
        return v

    @field_validator('max_concurrent_uploads')
    @classmethod
    def validate_max_concurrent_uploads(cls, v):
        """验证最大并发上传数"""
        if v < 1:
            raise ValueError("最大并发上传数必须大于0")
        return v
