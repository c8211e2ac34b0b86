#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
上传结果数据模型
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .asset import source_label


class UploadResult(BaseModel):
    """存储后端返回的上传结果"""

    model_config = ConfigDict(frozen=True)

    public_id: Optional[str] = Field(default=None, description="资源公共ID")
    secure_url: Optional[str] = Field(default=None, description="HTTPS访问地址")
    url: Optional[str] = Field(default=None, description="HTTP访问地址")
    folder: Optional[str] = Field(default=None, description="逻辑目录")
    resource_type: Optional[str] = Field(default=None, description="资源类型")
    format: Optional[str] = Field(default=None, description="资源格式")
    size_bytes: Optional[int] = Field(default=None, description="资源大小（字节）")
    error_message: Optional[str] = Field(default=None, description="后端报告的错误信息")

    @property
    def has_error(self) -> bool:
        """后端是否在响应中报告了错误"""
        return bool(self.error_message)

    @classmethod
    def from_response(cls, response: Dict[str, Any]) -> "UploadResult":
        """
        从后端响应字典创建结果

        Args:
            response: 后端原始响应

        Returns:
            UploadResult: 上传结果
        """
        error = response.get("error")
        if isinstance(error, dict):
            error = error.get("message")

        return cls(
            public_id=response.get("public_id"),
            secure_url=response.get("secure_url"),
            url=response.get("url"),
            folder=response.get("folder") or response.get("asset_folder"),
            resource_type=response.get("resource_type"),
            format=response.get("format"),
            size_bytes=response.get("bytes"),
            error_message=str(error) if error else None,
        )


@dataclass(frozen=True)
class UploadOutcome:
    """单个输入的上传记录：结果、错误与耗时"""
    source: Any
    result: Optional[UploadResult] = None
    error: Optional[BaseException] = None
    latency: float = 0.0  # 秒

    @property
    def succeeded(self) -> bool:
        """没有传输错误且后端未报告错误"""
        return self.error is None and self.result is not None and not self.result.has_error

    @property
    def error_text(self) -> Optional[str]:
        """传输错误或后端错误的文本"""
        if self.error is not None:
            return str(self.error)
        if self.result is not None and self.result.has_error:
            return self.result.error_message
        return None

    @property
    def label(self) -> str:
        """输入的简短描述"""
        return source_label(self.source)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "source": self.label,
            "succeeded": self.succeeded,
            "public_id": self.result.public_id if self.result else None,
            "secure_url": self.result.secure_url if self.result else None,
            "error": self.error_text,
            "latency": self.latency,
        }


@dataclass(frozen=True)
class BatchSummary:
    """批量上传统计"""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    duration: float = 0.0
    average_latency: float = 0.0

    @property
    def success_rate(self) -> float:
        """成功率（百分比）"""
        if self.total == 0:
            return 0.0
        return (self.succeeded / self.total) * 100

    @property
    def average_time(self) -> float:
        """按输入数量平均的总耗时"""
        if self.total == 0:
            return 0.0
        return self.duration / self.total

    @classmethod
    def from_outcomes(cls, outcomes: List[UploadOutcome], duration: float = 0.0) -> "BatchSummary":
        """
        根据上传记录统计

        Args:
            outcomes: 上传记录
            duration: 批量上传总耗时（秒）
        """
        total = len(outcomes)
        succeeded = sum(1 for outcome in outcomes if outcome.succeeded)
        average_latency = sum(o.latency for o in outcomes) / total if total else 0.0
        return cls(
            total=total,
            succeeded=succeeded,
            failed=total - succeeded,
            duration=duration,
            average_latency=average_latency,
        )
