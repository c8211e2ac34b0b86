"""
批量上传调度器

有界并发地执行上传任务：每个输入一个任务，通过信号量限制同时进行的上传数，
每个上传单独计时、单独超时，结果按完成顺序汇总
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from ..models.asset import source_label
from ..models.upload_result import UploadOutcome, UploadResult
from ..utils.exceptions import ConfigError, UploadTimeoutError
from ..utils.logger import get_logger

UploadWorker = Callable[[Any], Awaitable[UploadResult]]


class BatchDispatcher:
    """有界并发调度器"""

    def __init__(self):
        self.logger = get_logger(f"{__name__}.BatchDispatcher")

    async def dispatch(self, items: Sequence[Any], worker: UploadWorker, *,
                       max_concurrency: int, timeout: float,
                       deadline: Optional[float] = None) -> List[UploadOutcome]:
        """
        并发执行上传

        Args:
            items: 输入列表
            worker: 上传单个输入的协程函数
            max_concurrency: 最大并发数
            timeout: 单个上传的超时（秒）
            deadline: 整批的截止时间（事件循环时钟），与单个超时取先到者

        Returns:
            List[UploadOutcome]: 每个输入一条记录，按完成顺序排列
        """
        if not items:
            return []

        if max_concurrency < 1:
            raise ConfigError("最大并发上传数必须大于0", config_key="max_concurrent_uploads",
                              config_value=max_concurrency)

        semaphore = asyncio.Semaphore(max_concurrency)
        outcomes: asyncio.Queue = asyncio.Queue()

        tasks = [
            asyncio.create_task(self._run_one(item, worker, semaphore, outcomes, timeout, deadline))
            for item in items
        ]

        try:
            # 单一收集者按到达顺序汇总
            results = [await outcomes.get() for _ in range(len(tasks))]
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        await asyncio.gather(*tasks)
        return results

    async def _run_one(self, item: Any, worker: UploadWorker, semaphore: asyncio.Semaphore,
                       outcomes: asyncio.Queue, timeout: float,
                       deadline: Optional[float]) -> None:
        """执行单个上传并写入一条记录"""
        loop = asyncio.get_running_loop()

        async with semaphore:
            start = time.perf_counter()
            result: Optional[UploadResult] = None
            error: Optional[BaseException] = None

            budget = timeout
            if deadline is not None:
                budget = min(timeout, deadline - loop.time())

            try:
                if budget <= 0:
                    raise asyncio.TimeoutError()
                result = await asyncio.wait_for(worker(item), timeout=budget)
            except asyncio.TimeoutError:
                error = UploadTimeoutError(f"上传超时 ({budget:.2f}秒)",
                                           file_path=source_label(item), error_code="UPLOAD_TIMEOUT")
            except Exception as e:
                error = e

            latency = time.perf_counter() - start

        label = source_label(item)

        if error is not None:
            self.logger.warning(f"上传失败: {label} -> {error} ({latency:.2f}s)")
        elif result is not None and result.has_error:
            self.logger.warning(f"后端报告错误: {label} -> {result.error_message} ({latency:.2f}s)")
        else:
            self.logger.debug(f"上传成功: {label} ({latency:.2f}s)")

        outcomes.put_nowait(UploadOutcome(source=item, result=result, error=error, latency=latency))
