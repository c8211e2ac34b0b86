"""
kloudinary - Cloudinary资源并发上传工具

封装Cloudinary上传接口，在限制并发数的前提下批量上传本地文件或内存数据流，
并根据文件类型把资源放入对应的逻辑目录。

主要特性:
- 基于信号量的有界并发上传，每个上传单独超时
- 单个上传失败不影响同批次的其他上传
- 根据扩展名或内容签名自动分类（audio / images / videos / documents / others）
- 扩展名白名单与文件大小限制
- 每个上传记录结果、错误和耗时
"""

__version__ = "1.0.0"
__description__ = "Cloudinary资源并发上传工具"

from .core.upload_manager import AssetUploadManager
from .models import LogicalFolder, Meta, UploadConfiguration, UploadOutcome, UploadResult

__all__ = [
    "AssetUploadManager",
    "LogicalFolder",
    "Meta",
    "UploadConfiguration",
    "UploadOutcome",
    "UploadResult",
    "__version__",
    "__description__"
]
