"""
存储后端模块

定义上传核心依赖的后端接口，并基于Cloudinary SDK实现
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

import cloudinary.uploader
import cloudinary.utils
from cloudinary import exceptions as cloudinary_exceptions

from ..models.upload_result import UploadResult
from ..utils.exceptions import (
    TRANSPORT_EXCEPTIONS,
    ConfigError,
    handle_backend_exception,
    is_backend_rejection,
)
from ..utils.logger import get_logger

FileLike = Union[str, Any]


@runtime_checkable
class AssetBackend(Protocol):
    """资源存储后端接口"""

    async def upload(self, file: FileLike, *, public_id: str, folder: str,
                     metadata: Dict[str, Any], timeout: Optional[float] = None) -> UploadResult:
        ...

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        ...

    def build_url(self, public_id: str, transformation: str) -> str:
        ...

    def reserve_workers(self, count: int) -> None:
        """为即将并发执行的 count 个上传预留执行资源"""
        ...

    def release_workers(self, count: int) -> None:
        ...

    async def close(self) -> None:
        ...


class CloudinaryBackend:
    """Cloudinary存储后端"""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str,
                 secure: bool = True, executor_workers: int = 8):
        """
        初始化Cloudinary后端

        凭据随每次请求传递，不修改全局 cloudinary.config

        Args:
            cloud_name: 云账户名称
            api_key: API Key
            api_secret: API Secret
            secure: 是否生成HTTPS地址
            executor_workers: 执行同步SDK调用的最少线程数，并发预留更多时线程池会扩大

        Raises:
            ConfigError: 凭据缺失
        """
        for key, value in (("cloud_name", cloud_name), ("api_key", api_key), ("api_secret", api_secret)):
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"Cloudinary凭据不能为空: {key}", config_key=key,
                                  error_code="MISSING_CREDENTIALS")
        if executor_workers < 1:
            raise ConfigError("线程数必须大于0", config_key="executor_workers",
                              config_value=executor_workers)

        self.cloud_name = cloud_name.strip()
        self.secure = secure
        self._credentials = {
            "cloud_name": self.cloud_name,
            "api_key": api_key.strip(),
            "api_secret": api_secret.strip(),
        }
        self.logger = get_logger(f"{__name__}.CloudinaryBackend")

        # SDK是同步的，放到独立线程池中执行以免阻塞事件循环
        self.executor_workers = executor_workers
        self._reserved = 0
        self._pool_size = executor_workers
        self._executor = self._new_executor(executor_workers)

        self.logger.info(f"Cloudinary后端初始化完成: {self.cloud_name}")

    @staticmethod
    def _new_executor(workers: int) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cloudinary-upload")

    @property
    def pool_size(self) -> int:
        """当前线程池的最大线程数"""
        return self._pool_size

    def reserve_workers(self, count: int) -> None:
        """
        预留线程，保证每个已准入的上传都能立即得到线程

        线程池不足时换成更大的线程池；已提交到旧线程池的调用继续执行
        """
        self._reserved += count
        if self._reserved > self.pool_size:
            old_executor = self._executor
            self._pool_size = self._reserved
            self._executor = self._new_executor(self._reserved)
            old_executor.shutdown(wait=False)
            self.logger.debug(f"线程池扩大到 {self._reserved} 个线程")

    def release_workers(self, count: int) -> None:
        self._reserved = max(0, self._reserved - count)

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, partial(func, *args, **kwargs))

    async def upload(self, file: FileLike, *, public_id: str, folder: str,
                     metadata: Dict[str, Any], timeout: Optional[float] = None) -> UploadResult:
        """
        上传单个资源

        Args:
            file: 文件路径或可读流
            public_id: 资源公共ID
            folder: 逻辑目录
            metadata: 元数据
            timeout: HTTP请求超时（秒）

        Returns:
            UploadResult: 上传结果；后端报告的错误放在 error_message 中

        Raises:
            BackendError: 网络或传输失败
            UploadTimeoutError: 请求超时
        """
        options: Dict[str, Any] = {
            "public_id": public_id,
            "folder": folder,
            "resource_type": "auto",
            **self._credentials,
        }
        if metadata:
            options["metadata"] = metadata
        if timeout is not None:
            options["timeout"] = timeout

        try:
            response = await self._run(cloudinary.uploader.upload, file, **options)
        except cloudinary_exceptions.Error as e:
            if not is_backend_rejection(e):
                raise handle_backend_exception(e, context=f"upload {folder}/{public_id}") from e
            # 后端收到请求后报告的错误（参数错误、认证失败等）
            self.logger.warning(f"后端拒绝上传 {folder}/{public_id}: {e}")
            return UploadResult(public_id=public_id, folder=folder, error_message=str(e))
        except TRANSPORT_EXCEPTIONS as e:
            raise handle_backend_exception(e, context=f"upload {folder}/{public_id}") from e

        self.logger.debug(f"上传完成: {folder}/{public_id}")
        return UploadResult.from_response(response)

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        """
        删除资源

        Args:
            public_id: 资源公共ID

        Returns:
            Dict[str, Any]: 后端响应，例如 {"result": "ok"}

        Raises:
            BackendError: 传输失败或后端拒绝
            ConfigError: 认证失败
        """
        try:
            response = await self._run(cloudinary.uploader.destroy, public_id, **self._credentials)
        except (cloudinary_exceptions.Error, *TRANSPORT_EXCEPTIONS) as e:
            raise handle_backend_exception(e, context=f"destroy {public_id}") from e

        self.logger.info(f"删除资源: {public_id} -> {response.get('result')}")
        return response

    def build_url(self, public_id: str, transformation: str) -> str:
        """
        生成带转换参数的访问地址

        Args:
            public_id: 资源公共ID
            transformation: 转换描述，例如 "w_300,h_200,c_fill"

        Returns:
            str: 访问地址
        """
        options: Dict[str, Any] = {"cloud_name": self.cloud_name, "secure": self.secure}
        if transformation:
            options["raw_transformation"] = transformation
        url, _ = cloudinary.utils.cloudinary_url(public_id, **options)
        return url

    async def close(self) -> None:
        """关闭线程池"""
        self._executor.shutdown(wait=False)
        self.logger.debug("Cloudinary后端已关闭")


def create_backend(cloud_name: str, api_key: str, api_secret: str, **kwargs) -> CloudinaryBackend:
    """
    创建Cloudinary后端

    Raises:
        ConfigError: 无法用给定凭据创建后端
    """
    try:
        return CloudinaryBackend(cloud_name, api_key, api_secret, **kwargs)
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(f"创建存储后端失败: {e}", error_code="BACKEND_CREATION_FAILED") from e
