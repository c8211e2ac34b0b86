"""
异常处理模块

定义项目的自定义异常类，提供详细的错误信息和处理机制
"""

import socket
from typing import Optional, Any, Dict

from cloudinary import exceptions as cloudinary_exceptions
from urllib3 import exceptions as urllib3_exceptions


class KloudinaryError(Exception):
    """项目基础异常类"""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        初始化异常

        Args:
            message: 错误消息
            error_code: 错误代码
            details: 错误详情
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """返回异常的字符串表示"""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigError(KloudinaryError):
    """配置相关异常"""

    def __init__(self, message: str, config_key: Optional[str] = None,
                 config_value: Optional[Any] = None, **kwargs):
        """
        初始化配置异常

        Args:
            message: 错误消息
            config_key: 配置键
            config_value: 配置值
            **kwargs: 其他参数
        """
        kwargs.setdefault("error_code", "CONFIG_ERROR")
        super().__init__(message, **kwargs)
        self.config_key = config_key
        self.config_value = config_value


class ValidationError(KloudinaryError):
    """验证异常"""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 field_value: Optional[Any] = None, **kwargs):
        """
        初始化验证异常

        Args:
            message: 错误消息
            field_name: 字段名称
            field_value: 字段值
            **kwargs: 其他参数
        """
        kwargs.setdefault("error_code", "VALIDATION_ERROR")
        super().__init__(message, **kwargs)
        self.field_name = field_name
        self.field_value = field_value


class UnsupportedTypeError(ValidationError):
    """文件扩展名不在允许列表中"""

    def __init__(self, extension: str, **kwargs):
        kwargs.setdefault("error_code", "UNSUPPORTED_TYPE")
        super().__init__(f"不支持的文件类型: '{extension}'",
                         field_name="extension", field_value=extension, **kwargs)
        self.extension = extension


class AssetTooLargeError(ValidationError):
    """资源大小超过上限"""

    def __init__(self, size: int, max_size: int, **kwargs):
        kwargs.setdefault("error_code", "ASSET_TOO_LARGE")
        super().__init__(f"资源大小超过上限: {size} > {max_size} 字节",
                         field_name="size", field_value=size, **kwargs)
        self.size = size
        self.max_size = max_size


class UnsupportedInputError(ValidationError):
    """无法识别的上传输入形式"""

    def __init__(self, value: Any, **kwargs):
        kwargs.setdefault("error_code", "UNSUPPORTED_INPUT")
        super().__init__(f"不支持的上传输入类型: {type(value).__name__}",
                         field_name="input", field_value=value, **kwargs)


class AssetReadError(KloudinaryError):
    """读取文件信息或流头部失败"""

    def __init__(self, message: str, file_path: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", "ASSET_READ_ERROR")
        super().__init__(message, **kwargs)
        self.file_path = file_path


class UploadError(KloudinaryError):
    """上传相关异常"""

    def __init__(self, message: str, file_path: Optional[str] = None,
                 public_id: Optional[str] = None, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        初始化上传异常

        Args:
            message: 错误消息
            file_path: 文件路径
            public_id: 目标公共ID
            error_code: 错误代码
            details: 错误详情
        """
        super().__init__(message, error_code, details)
        self.file_path = file_path
        self.public_id = public_id


class BackendError(UploadError):
    """存储后端传输失败"""
    pass


class UploadTimeoutError(UploadError):
    """上传超时异常"""
    pass


# 后端按HTTP状态码返回的拒绝（400/401/403/404/409/420），请求本身已送达
BACKEND_REJECTIONS = (
    cloudinary_exceptions.BadRequest,
    cloudinary_exceptions.AuthorizationRequired,
    cloudinary_exceptions.NotAllowed,
    cloudinary_exceptions.NotFound,
    cloudinary_exceptions.AlreadyExists,
    cloudinary_exceptions.RateLimited,
)

TRANSPORT_EXCEPTIONS = (urllib3_exceptions.HTTPError, OSError)


def is_backend_rejection(exc: BaseException) -> bool:
    """异常是否表示后端收到请求后报告的错误"""
    return isinstance(exc, BACKEND_REJECTIONS)


def _transport_cause(exc: BaseException) -> Optional[BaseException]:
    """
    找出SDK异常背后的网络异常

    SDK把urllib3和socket异常包装成不带状态码的 Error("Unexpected error - ...")
    或 Error("Socket error: ...")，原始异常保留在异常链上
    """
    if isinstance(exc, TRANSPORT_EXCEPTIONS):
        return exc
    if isinstance(exc, cloudinary_exceptions.Error) and not is_backend_rejection(exc):
        cause = exc.__cause__ or exc.__context__
        if isinstance(cause, TRANSPORT_EXCEPTIONS):
            return cause
    return None


def handle_backend_exception(exc: Exception, context: Optional[str] = None) -> KloudinaryError:
    """
    处理Cloudinary SDK及网络异常，转换为项目异常

    Args:
        exc: 原始异常
        context: 上下文信息

    Returns:
        项目异常对象
    """
    if isinstance(exc, KloudinaryError):
        return exc

    exc_message = str(exc)
    details = {"original_exception": exc.__class__.__name__, "context": context}

    cause = _transport_cause(exc)
    if cause is not None:
        details["transport_exception"] = cause.__class__.__name__

        if isinstance(cause, (socket.timeout, TimeoutError, urllib3_exceptions.TimeoutError)):
            return UploadTimeoutError(
                f"请求超时: {exc_message}",
                error_code="UPLOAD_TIMEOUT",
                details=details
            )

        return BackendError(
            f"网络连接异常: {exc_message}",
            error_code="NETWORK_ERROR",
            details=details
        )

    if isinstance(exc, cloudinary_exceptions.AuthorizationRequired):
        return ConfigError(
            f"认证异常: {exc_message}",
            error_code="AUTH_ERROR",
            details=details
        )

    if is_backend_rejection(exc):
        return BackendError(
            f"存储后端拒绝请求: {exc_message}",
            error_code="BACKEND_REJECTED",
            details=details
        )

    # GeneralError（非预期状态码、500）及无法解析的响应
    if isinstance(exc, cloudinary_exceptions.Error):
        return BackendError(
            f"存储后端异常: {exc_message}",
            error_code="BACKEND_ERROR",
            details=details
        )

    return KloudinaryError(
        f"未知异常: {exc_message}",
        error_code="UNKNOWN_ERROR",
        details=details
    )
