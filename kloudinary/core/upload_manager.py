"""
资源上传管理器

封装Cloudinary上传，提高可同时进行的上传数量，
并根据文件类型把资源上传到对应的逻辑目录
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

from ..client.asset_backend import AssetBackend, create_backend
from ..models.asset import LogicalFolder, source_label, to_upload_input
from ..models.metadata import Meta
from ..models.upload_config import UploadConfiguration
from ..models.upload_result import BatchSummary, UploadOutcome, UploadResult
from ..utils.config import Config
from ..utils.exceptions import UploadTimeoutError, ValidationError
from ..utils.logger import get_logger, log_performance
from .batch_dispatcher import BatchDispatcher
from .classifier import Classifier
from .single_uploader import SingleItemUploader


class AssetUploadManager:
    """资源上传管理器"""

    def __init__(self, cloud_name: str = "", api_key: str = "", api_secret: str = "", *,
                 config: Optional[UploadConfiguration] = None,
                 backend: Optional[AssetBackend] = None,
                 classifier: Optional[Classifier] = None,
                 **backend_options):
        """
        初始化上传管理器

        需要配置 cloud_name、api_key、api_secret，
        详见 https://cloudinary.com/documentation/

        Args:
            cloud_name: 云账户名称
            api_key: API Key
            api_secret: API Secret
            config: 上传配置，默认单并发、4MB、60秒超时
            backend: 自定义存储后端，提供时不再用凭据创建
            classifier: 分类器
            **backend_options: 传给 CloudinaryBackend 的其他参数

        Raises:
            ConfigError: 无法用给定凭据创建后端
        """
        self.logger = get_logger(f"{__name__}.AssetUploadManager")

        self.config = config or UploadConfiguration()
        self.metadata = Meta()
        self.classifier = classifier or Classifier()
        self.backend = backend or create_backend(cloud_name, api_key, api_secret, **backend_options)

        self.uploader = SingleItemUploader(self.backend, self.classifier)
        self.dispatcher = BatchDispatcher()
        self.last_summary: Optional[BatchSummary] = None

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "AssetUploadManager":
        """
        根据应用配置创建管理器

        Args:
            config: 应用配置
        """
        upload_config = UploadConfiguration(
            max_asset_size=config.upload.max_asset_size,
            max_upload_timeout=config.upload.max_upload_timeout,
            max_concurrent_uploads=config.upload.max_concurrent_uploads,
        )
        if config.upload.supported_extensions is not None:
            upload_config.supported_extensions = config.upload.supported_extensions

        return cls(
            config.cloudinary.cloud_name,
            config.cloudinary.api_key,
            config.cloudinary.api_secret,
            config=upload_config,
            secure=config.cloudinary.secure,
            executor_workers=config.cloudinary.executor_workers,
            **kwargs
        )

    async def __aenter__(self) -> "AssetUploadManager":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """释放后端资源"""
        await self.backend.close()

    def is_file_supported(self, extension: str) -> bool:
        """扩展名是否被允许上传"""
        return self.classifier.is_supported(extension, self.config.supported_extensions)

    def get_logical_folder(self, extension: str) -> LogicalFolder:
        """根据扩展名获取逻辑目录"""
        return self.classifier.classify_extension(extension)

    async def _upload(self, file: Any, config: UploadConfiguration) -> UploadResult:
        upload_input = to_upload_input(file)
        return await self.uploader.upload(upload_input, config, self.metadata.snapshot())

    async def upload_single_file(self, file: Any) -> UploadResult:
        """
        上传单个文件，文件可以是路径、bytes 或可读流

        Args:
            file: 待上传的资源

        Returns:
            UploadResult: 上传结果；后端报告的错误在 error_message 中

        Raises:
            KloudinaryError: 校验、读取或传输失败
        """
        config = self.config.model_copy(deep=True)
        self.backend.reserve_workers(1)
        try:
            return await asyncio.wait_for(self._upload(file, config),
                                          timeout=config.max_upload_timeout)
        except asyncio.TimeoutError as e:
            raise UploadTimeoutError(f"上传超时 ({config.max_upload_timeout}秒)",
                                     file_path=source_label(file), error_code="UPLOAD_TIMEOUT") from e
        finally:
            self.backend.release_workers(1)

    @log_performance("AssetUploadManager.upload_multiple_files")
    async def upload_multiple_files(self, *files: Any,
                                    timeout: Optional[float] = None) -> List[UploadOutcome]:
        """
        并发上传多个文件

        每个文件单独超时，失败不会影响其他文件；所有错误都记录在对应的结果中

        Args:
            *files: 待上传的资源
            timeout: 整批的超时时间（秒），为空时不限制

        Returns:
            List[UploadOutcome]: 每个输入一条记录，按完成顺序排列
        """
        if not files:
            self.last_summary = BatchSummary()
            return []

        # 批量上传期间使用配置快照
        config = self.config.model_copy(deep=True)
        deadline = asyncio.get_running_loop().time() + timeout if timeout is not None else None

        self.logger.info(f"开始批量上传 {len(files)} 个文件，最大并发: {config.max_concurrent_uploads}")
        start_time = time.perf_counter()

        async def worker(file: Any) -> UploadResult:
            return await self._upload(file, config)

        # 每个已准入的上传都要能立即得到执行资源，否则排队时间会计入超时
        workers = min(config.max_concurrent_uploads, len(files))
        self.backend.reserve_workers(workers)
        try:
            outcomes = await self.dispatcher.dispatch(
                files,
                worker,
                max_concurrency=config.max_concurrent_uploads,
                timeout=config.max_upload_timeout,
                deadline=deadline,
            )
        finally:
            self.backend.release_workers(workers)

        summary = BatchSummary.from_outcomes(outcomes, time.perf_counter() - start_time)
        self.last_summary = summary
        self.logger.info(f"批量上传完成: {summary.succeeded}/{summary.total} 成功 "
                         f"(成功率: {summary.success_rate:.1f}%, 耗时: {summary.duration:.1f}秒)")
        return outcomes

    def transform_image(self, public_id: str, transformation: str) -> str:
        """
        生成带图片转换参数的访问地址

        Args:
            public_id: 资源公共ID
            transformation: 转换描述，例如 "c_fill,w_300,h_200"

        Returns:
            str: 访问地址
        """
        if not public_id:
            raise ValidationError("公共ID不能为空", field_name="public_id", field_value=public_id)
        return self.backend.build_url(public_id, transformation)

    async def destroy_asset(self, public_id: str) -> Dict[str, Any]:
        """
        删除存储后端上的资源

        Args:
            public_id: 资源公共ID

        Returns:
            Dict[str, Any]: 后端响应
        """
        if not public_id:
            raise ValidationError("公共ID不能为空", field_name="public_id", field_value=public_id)
        return await self.backend.destroy(public_id)
