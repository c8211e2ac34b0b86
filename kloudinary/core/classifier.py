"""
资源分类器

根据扩展名或内容头部确定资源的逻辑目录，并校验扩展名是否在允许列表中
"""

from typing import BinaryIO, Iterable, Mapping, Optional, Union

import filetype

from ..models.asset import EXTENSION_FOLDERS, LogicalFolder
from ..utils.exceptions import AssetReadError
from ..utils.file_utils import get_file_extension

# filetype 识别所有已知格式需要的头部长度
HEADER_SIZE = 261


class Classifier:
    """扩展名 / 内容类型分类器"""

    def __init__(self, extension_folders: Mapping[str, LogicalFolder] = EXTENSION_FOLDERS):
        """
        初始化分类器

        Args:
            extension_folders: 扩展名到逻辑目录的只读映射
        """
        self.extension_folders = extension_folders

    def classify(self, value: Union[str, bytes, bytearray]) -> LogicalFolder:
        """
        分类扩展名或内容头部

        Args:
            value: 扩展名（str）或头部字节（bytes）

        Returns:
            LogicalFolder: 逻辑目录
        """
        if isinstance(value, (bytes, bytearray)):
            return self.classify_header(bytes(value))
        return self.classify_extension(value)

    def classify_extension(self, extension: Optional[str]) -> LogicalFolder:
        """按扩展名查表，未知扩展名归入 others"""
        if not extension:
            return LogicalFolder.OTHERS
        if extension.startswith('.'):
            extension = extension[1:]
        return self.extension_folders.get(extension, LogicalFolder.OTHERS)

    def classify_header(self, header: bytes) -> LogicalFolder:
        """嗅探头部字节后按扩展名查表"""
        return self.classify_extension(self.sniff_extension(header))

    def classify_path(self, path: str) -> LogicalFolder:
        """按文件名扩展名分类"""
        return self.classify_extension(get_file_extension(path))

    @staticmethod
    def sniff_extension(header: bytes) -> Optional[str]:
        """
        通过内容签名识别扩展名

        Args:
            header: 内容头部字节

        Returns:
            Optional[str]: 识别出的扩展名，无法识别时返回None
        """
        if not header:
            return None
        kind = filetype.guess(bytes(header[:HEADER_SIZE]))
        return kind.extension if kind is not None else None

    @staticmethod
    def is_supported(extension: str, allow_list: Iterable[str]) -> bool:
        """允许列表为空时全部允许，否则区分大小写精确匹配"""
        allowed = list(allow_list)
        return len(allowed) == 0 or extension in allowed


def read_header(stream: BinaryIO, size: int = HEADER_SIZE) -> bytes:
    """
    读取流的头部字节

    Args:
        stream: 可读流
        size: 读取长度

    Returns:
        bytes: 头部字节

    Raises:
        AssetReadError: 读取失败或流为空
    """
    try:
        head = stream.read(size)
    except (OSError, ValueError) as e:
        raise AssetReadError(f"读取流头部失败: {e}") from e

    if head is None:
        head = b""
    if isinstance(head, str):
        raise AssetReadError("流必须以二进制模式打开")
    if not head:
        raise AssetReadError("流为空，没有可上传的内容")
    return bytes(head)
