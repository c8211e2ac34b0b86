"""
pytest配置文件

提供测试环境的全局配置和fixtures
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from kloudinary.core.upload_manager import AssetUploadManager
from kloudinary.models.upload_config import UploadConfiguration
from kloudinary.models.upload_result import UploadResult
from kloudinary.utils.exceptions import BackendError

PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 300
PDF_HEADER = b"%PDF-1.4\n" + b"0" * 300


class StubBackend:
    """
    测试用存储后端

    记录每次调用和并发峰值；按 public_id 中的关键字模拟延迟、挂起和失败
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []
        self.destroyed: List[str] = []
        self.active = 0
        self.max_active = 0
        self.closed = False
        self.reserved = 0
        self.reservations: List[int] = []

    async def upload(self, file, *, public_id: str, folder: str,
                     metadata: Dict[str, Any], timeout: Optional[float] = None) -> UploadResult:
        content = file.read() if hasattr(file, "read") else None
        self.calls.append({
            "file": file,
            "content": content,
            "public_id": public_id,
            "folder": folder,
            "metadata": metadata,
            "timeout": timeout,
        })

        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if "hang" in public_id:
                await asyncio.Event().wait()
            if "slow" in public_id:
                await asyncio.sleep(0.3)
            elif self.delay:
                await asyncio.sleep(self.delay)
            if "broken" in public_id:
                raise BackendError("connection reset", public_id=public_id, error_code="NETWORK_ERROR")
            if "rejected" in public_id:
                return UploadResult(public_id=public_id, folder=folder, error_message="Invalid image file")
        finally:
            self.active -= 1

        return UploadResult(
            public_id=f"{folder}/{public_id}",
            folder=folder,
            secure_url=f"https://res.cloudinary.com/demo/{folder}/{public_id}",
        )

    async def destroy(self, public_id: str) -> Dict[str, Any]:
        self.destroyed.append(public_id)
        return {"result": "ok"}

    def build_url(self, public_id: str, transformation: str) -> str:
        return f"https://res.cloudinary.com/demo/image/upload/{transformation}/{public_id}"

    def reserve_workers(self, count: int) -> None:
        self.reserved += count
        self.reservations.append(count)

    def release_workers(self, count: int) -> None:
        self.reserved -= count

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_backend() -> StubBackend:
    """测试后端"""
    return StubBackend()


@pytest.fixture
def manager(stub_backend: StubBackend) -> AssetUploadManager:
    """使用测试后端的上传管理器"""
    return AssetUploadManager(
        config=UploadConfiguration(max_concurrent_uploads=2, max_upload_timeout=5.0),
        backend=stub_backend,
    )


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """临时上传目录"""
    directory = tmp_path / "upload"
    directory.mkdir(exist_ok=True)
    return directory


@pytest.fixture
def make_file(upload_dir: Path):
    """在临时上传目录中创建文件"""
    def _make(name: str, content: bytes = b"data") -> str:
        path = upload_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return os.fspath(path)
    return _make
