"""
单个资源上传器

解析目标公共ID、逻辑目录和元数据，并对后端发起一次上传调用
"""

import asyncio
import os
import stat
import uuid
from functools import partial
from typing import Any, Dict, Optional

from ..client.asset_backend import AssetBackend
from ..models.asset import PathInput, StreamInput, UploadInput
from ..models.upload_config import UploadConfiguration
from ..models.upload_result import UploadResult
from ..utils.exceptions import AssetReadError, AssetTooLargeError, UnsupportedTypeError
from ..utils.file_utils import ReplayStream, format_file_size, get_file_extension
from ..utils.logger import get_logger
from .classifier import Classifier, read_header


class SingleItemUploader:
    """单个资源上传器，不做任何重试"""

    def __init__(self, backend: AssetBackend, classifier: Optional[Classifier] = None):
        """
        初始化上传器

        Args:
            backend: 存储后端
            classifier: 分类器
        """
        self.backend = backend
        self.classifier = classifier or Classifier()
        self.logger = get_logger(f"{__name__}.SingleItemUploader")

    @staticmethod
    async def _in_thread(func, *args):
        """在默认线程池中执行可能阻塞的文件系统或流读取，使超时和取消仍然生效"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    async def upload(self, upload_input: UploadInput, config: UploadConfiguration,
                     metadata: Dict[str, Any]) -> UploadResult:
        """
        上传单个输入

        Args:
            upload_input: 路径输入或流输入
            config: 上传配置快照
            metadata: 元数据快照

        Returns:
            UploadResult: 后端返回的结果

        Raises:
            UnsupportedTypeError: 扩展名不在允许列表中
            AssetTooLargeError: 文件超过大小上限
            AssetReadError: 读取文件信息或流头部失败
            BackendError: 传输失败
        """
        if isinstance(upload_input, PathInput):
            return await self._upload_path(upload_input, config, metadata)
        return await self._upload_stream(upload_input, config, metadata)

    async def _upload_path(self, upload_input: PathInput, config: UploadConfiguration,
                           metadata: Dict[str, Any]) -> UploadResult:
        path = upload_input.path
        extension = get_file_extension(path)

        if not self.classifier.is_supported(extension, config.supported_extensions):
            raise UnsupportedTypeError(extension)

        try:
            file_stat = await self._in_thread(os.stat, path)
        except OSError as e:
            raise AssetReadError(f"读取文件信息失败: {e}", file_path=path) from e

        if not stat.S_ISREG(file_stat.st_mode):
            raise AssetReadError(f"不是常规文件: {path}", file_path=path)

        if file_stat.st_size > config.max_asset_size:
            raise AssetTooLargeError(file_stat.st_size, config.max_asset_size)

        public_id = os.path.basename(path)
        folder = self.classifier.classify_extension(extension)

        self.logger.debug(f"上传文件: {path} ({format_file_size(file_stat.st_size)}) -> "
                          f"{folder.value}/{public_id}")

        return await self.backend.upload(
            path,
            public_id=public_id,
            folder=folder.value,
            metadata=metadata,
            timeout=config.max_upload_timeout,
        )

    async def _upload_stream(self, upload_input: StreamInput, config: UploadConfiguration,
                             metadata: Dict[str, Any]) -> UploadResult:
        head = await self._in_thread(read_header, upload_input.stream)
        folder = self.classifier.classify_header(head)
        public_id = str(uuid.uuid4())

        self.logger.debug(f"上传数据流: {upload_input.display_name} -> {folder.value}/{public_id}")

        # 头部字节已被读出，随原始流一起重新发送
        content = ReplayStream(head, upload_input.stream, name=upload_input.name)
        return await self.backend.upload(
            content,
            public_id=public_id,
            folder=folder.value,
            metadata=metadata,
            timeout=config.max_upload_timeout,
        )
