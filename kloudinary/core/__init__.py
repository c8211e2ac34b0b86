"""
上传核心模块

分类器、单个资源上传器、批量调度器和上传管理器
"""

from .classifier import Classifier, HEADER_SIZE, read_header
from .single_uploader import SingleItemUploader
from .batch_dispatcher import BatchDispatcher
from .upload_manager import AssetUploadManager

__all__ = [
    'Classifier',
    'HEADER_SIZE',
    'read_header',
    'SingleItemUploader',
    'BatchDispatcher',
    'AssetUploadManager'
]
