#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
上传输入数据模型
"""

import io
import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, BinaryIO, List, Mapping, Optional, Union

from ..utils.exceptions import UnsupportedInputError


class LogicalFolder(str, Enum):
    """逻辑目录枚举"""
    AUDIO = "audio"  # 音频
    IMAGES = "images"  # 图片
    VIDEOS = "videos"  # 视频
    DOCUMENTS = "documents"  # 文档
    OTHERS = "others"  # 其他


IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "svg", "ico")
VIDEO_EXTENSIONS = ("mp4", "webm", "ogg", "ogv", "avi", "mov")
AUDIO_EXTENSIONS = ("mp3", "wav", "ogg", "oga", "m4a")
DOCUMENT_EXTENSIONS = (
    "pdf", "doc", "docx", "xls", "xlsx", "odf", "ppt", "pptx",
    "txt", "rtf", "csv", "odt", "html", "htm", "xml", "json", "yaml", "js", "yml",
    "md", "markdown", "tsv", "css", "less", "scss", "sass", "styl", "stylus",
)

# 扩展名 -> 逻辑目录（只读）；ogg 同时出现在音频和视频列表中，归入音频
EXTENSION_FOLDERS: Mapping[str, LogicalFolder] = MappingProxyType({
    **{ext: LogicalFolder.DOCUMENTS for ext in DOCUMENT_EXTENSIONS},
    **{ext: LogicalFolder.VIDEOS for ext in VIDEO_EXTENSIONS},
    **{ext: LogicalFolder.IMAGES for ext in IMAGE_EXTENSIONS},
    **{ext: LogicalFolder.AUDIO for ext in AUDIO_EXTENSIONS},
})


def default_supported_extensions() -> List[str]:
    """默认允许的扩展名列表（去重，保持顺序）"""
    extensions: List[str] = []
    for group in (IMAGE_EXTENSIONS, AUDIO_EXTENSIONS, VIDEO_EXTENSIONS, DOCUMENT_EXTENSIONS):
        for ext in group:
            if ext not in extensions:
                extensions.append(ext)
    return extensions


class InputKind(str, Enum):
    """输入形式枚举"""
    PATH = "path"
    STREAM = "stream"


@dataclass(frozen=True)
class PathInput:
    """文件系统路径输入"""
    path: str
    kind: InputKind = field(default=InputKind.PATH, init=False)

    @property
    def display_name(self) -> str:
        return self.path


@dataclass(frozen=True)
class StreamInput:
    """字节流输入"""
    stream: BinaryIO
    name: Optional[str] = None
    kind: InputKind = field(default=InputKind.STREAM, init=False)

    @property
    def display_name(self) -> str:
        return self.name or "<stream>"


UploadInput = Union[PathInput, StreamInput]


def to_upload_input(value: Any) -> UploadInput:
    """
    在入口处一次性确定输入形式

    Args:
        value: 路径（str / PathLike）、bytes 或可读流

    Returns:
        UploadInput: 路径输入或流输入

    Raises:
        UnsupportedInputError: 无法识别的输入
    """
    if isinstance(value, (PathInput, StreamInput)):
        return value

    if isinstance(value, (str, os.PathLike)):
        path = os.fspath(value)
        if isinstance(path, str) and path:
            return PathInput(path=path)
        raise UnsupportedInputError(value)

    if isinstance(value, (bytes, bytearray)):
        return StreamInput(stream=io.BytesIO(bytes(value)))

    read = getattr(value, "read", None)
    if callable(read):
        name = getattr(value, "name", None)
        return StreamInput(stream=value, name=name if isinstance(name, str) else None)

    raise UnsupportedInputError(value)


def source_label(value: Any) -> str:
    """
    用于日志和错误信息的简短输入描述，不展开 bytes 内容

    Args:
        value: 原始输入或已解析的输入
    """
    if isinstance(value, (PathInput, StreamInput)):
        return value.display_name
    if isinstance(value, (str, os.PathLike)):
        return str(os.fspath(value))
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"

    name = getattr(value, "name", None)
    if isinstance(name, str) and name:
        return name
    if callable(getattr(value, "read", None)):
        return "<stream>"
    return f"<{type(value).__name__}>"
