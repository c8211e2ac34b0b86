#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
上传元数据存储
"""

from typing import Any, Dict


def _normalize(key: Any) -> Any:
    return key.lower() if isinstance(key, str) else key


class Meta(dict):
    """
    大小写不敏感的元数据映射（键统一转为小写）

    批量上传开始后应视为只读：每个上传任务在启动时复制一份快照，
    之后的修改只影响尚未启动的任务，并发修改由调用方负责。
    """

    def __init__(self, *args, **kwargs):
        super().__init__()
        self.update(*args, **kwargs)

    def __setitem__(self, key: str, value: Any) -> None:
        super().__setitem__(_normalize(key), value)

    def __getitem__(self, key: str) -> Any:
        return super().__getitem__(_normalize(key))

    def __delitem__(self, key: str) -> None:
        super().__delitem__(_normalize(key))

    def __contains__(self, key: object) -> bool:
        return super().__contains__(_normalize(key))

    def get(self, key: str, default: Any = None) -> Any:
        return super().get(_normalize(key), default)

    def pop(self, key: str, *default: Any) -> Any:
        return super().pop(_normalize(key), *default)

    def setdefault(self, key: str, default: Any = None) -> Any:
        return super().setdefault(_normalize(key), default)

    def update(self, *args, **kwargs) -> None:
        for key, value in dict(*args, **kwargs).items():
            self[key] = value

    def has(self, key: str) -> bool:
        """检查键是否存在"""
        return key in self

    def add(self, key: str, value: Any) -> None:
        """添加或覆盖元数据"""
        self[key] = value

    def remove(self, key: str) -> None:
        """删除元数据，键不存在时忽略"""
        self.pop(key, None)

    def snapshot(self) -> Dict[str, Any]:
        """返回当前内容的普通字典副本"""
        return dict(self.items())
