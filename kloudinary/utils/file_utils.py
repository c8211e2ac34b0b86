#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
文件处理工具
"""

import os
from pathlib import Path
from typing import BinaryIO, List, Optional, Union


def get_file_extension(file_path: Union[str, os.PathLike]) -> str:
    """
    获取文件扩展名

    保留原始大小写，去掉开头的点；没有扩展名时返回空字符串

    Args:
        file_path: 文件路径

    Returns:
        str: 文件扩展名（不含点）
    """
    _, ext = os.path.splitext(os.fspath(file_path))
    return ext[1:] if ext.startswith('.') else ext


def format_file_size(size_bytes: int) -> str:
    """
    格式化文件大小

    Args:
        size_bytes: 文件大小（字节）

    Returns:
        str: 格式化的文件大小
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    else:
        return f"{size:.2f} {units[unit_index]}"


def collect_file_paths(paths: List[str], recursive: bool = True) -> List[str]:
    """
    展开路径列表，目录会被替换为其中的文件

    Args:
        paths: 文件或目录路径
        recursive: 是否递归子目录

    Returns:
        List[str]: 文件路径列表（按目录内名称排序）
    """
    files: List[str] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            pattern = "**/*" if recursive else "*"
            files.extend(str(p) for p in sorted(path.glob(pattern)) if p.is_file())
        else:
            files.append(str(path))
    return files


class ReplayStream:
    """
    在原始流之前重放已读取的头部字节

    类型嗅探会消耗流的前若干字节，上传时必须把这些字节放回去
    """

    def __init__(self, head: bytes, stream: BinaryIO, name: Optional[str] = None):
        self._head = head
        self._stream = stream
        self.name = name or getattr(stream, "name", None) or "file"

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            data = self._head + self._stream.read()
            self._head = b""
            return data

        if self._head:
            data = self._head[:size]
            self._head = self._head[size:]
            if len(data) < size:
                data += self._stream.read(size - len(data))
            return data

        return self._stream.read(size)

    def close(self) -> None:
        self._head = b""
        close = getattr(self._stream, "close", None)
        if callable(close):
            close()
