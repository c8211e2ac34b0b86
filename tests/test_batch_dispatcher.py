#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
批量调度器测试
"""

import asyncio

import pytest

from kloudinary.core.batch_dispatcher import BatchDispatcher
from kloudinary.models.upload_result import UploadResult
from kloudinary.utils.exceptions import ConfigError, UploadTimeoutError


async def echo(item):
    await asyncio.sleep(0)
    return UploadResult(public_id=str(item))


class TestDispatch:
    """调度测试"""

    async def test_one_outcome_per_item(self):
        outcomes = await BatchDispatcher().dispatch(range(5), echo, max_concurrency=2, timeout=1.0)
        assert len(outcomes) == 5
        assert sorted(o.source for o in outcomes) == [0, 1, 2, 3, 4]
        assert all(o.succeeded for o in outcomes)
        assert all(o.latency >= 0 for o in outcomes)

    async def test_empty_items(self):
        called = []

        async def worker(item):
            called.append(item)

        assert await BatchDispatcher().dispatch([], worker, max_concurrency=1, timeout=1.0) == []
        assert called == []

    async def test_duplicate_items(self):
        outcomes = await BatchDispatcher().dispatch(["a.png", "a.png"], echo,
                                                    max_concurrency=2, timeout=1.0)
        assert [o.source for o in outcomes] == ["a.png", "a.png"]

    @pytest.mark.parametrize("concurrency", [0, -3])
    async def test_invalid_concurrency(self, concurrency):
        with pytest.raises(ConfigError):
            await BatchDispatcher().dispatch(["a"], echo, max_concurrency=concurrency, timeout=1.0)

    @pytest.mark.parametrize("concurrency", [1, 2, 3])
    async def test_concurrency_limit(self, concurrency):
        state = {"active": 0, "peak": 0}

        async def worker(item):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.02)
            state["active"] -= 1
            return UploadResult(public_id=str(item))

        outcomes = await BatchDispatcher().dispatch(range(8), worker,
                                                    max_concurrency=concurrency, timeout=1.0)
        assert len(outcomes) == 8
        assert state["peak"] == concurrency

    async def test_failure_is_isolated(self):
        async def worker(item):
            if item == "bad":
                raise ValueError("boom")
            return UploadResult(public_id=item)

        outcomes = await BatchDispatcher().dispatch(["ok1", "bad", "ok2"], worker,
                                                    max_concurrency=1, timeout=1.0)
        by_source = {o.source: o for o in outcomes}
        assert isinstance(by_source["bad"].error, ValueError)
        assert by_source["bad"].result is None
        assert by_source["ok1"].succeeded
        assert by_source["ok2"].succeeded

    async def test_backend_reported_error_is_kept(self):
        async def worker(item):
            return UploadResult(error_message="Invalid image file")

        outcomes = await BatchDispatcher().dispatch(["a"], worker, max_concurrency=1, timeout=1.0)
        assert outcomes[0].error is None
        assert outcomes[0].error_text == "Invalid image file"
        assert not outcomes[0].succeeded


class TestTimeouts:
    """超时测试"""

    async def test_per_item_timeout(self):
        async def worker(item):
            if item == "hang":
                await asyncio.Event().wait()
            return UploadResult(public_id=item)

        outcomes = await BatchDispatcher().dispatch(["hang", "fast"], worker,
                                                    max_concurrency=2, timeout=0.1)
        # 按完成顺序
        assert [o.source for o in outcomes] == ["fast", "hang"]
        assert outcomes[0].succeeded
        assert isinstance(outcomes[1].error, UploadTimeoutError)
        assert outcomes[1].error.error_code == "UPLOAD_TIMEOUT"

    async def test_timeout_reports_bytes_by_length(self):
        payload = b"\x00" * 4096

        async def worker(item):
            await asyncio.Event().wait()

        outcomes = await BatchDispatcher().dispatch([payload], worker, max_concurrency=1, timeout=0.05)
        error = outcomes[0].error
        assert isinstance(error, UploadTimeoutError)
        assert error.file_path == "<4096 bytes>"
        assert outcomes[0].to_dict()["source"] == "<4096 bytes>"

    async def test_timeout_frees_slot(self):
        """超时的上传释放并发名额，后续输入继续执行"""
        async def worker(item):
            if item == "hang":
                await asyncio.Event().wait()
            return UploadResult(public_id=item)

        outcomes = await BatchDispatcher().dispatch(["hang", "next"], worker,
                                                    max_concurrency=1, timeout=0.1)
        by_source = {o.source: o for o in outcomes}
        assert isinstance(by_source["hang"].error, UploadTimeoutError)
        assert by_source["next"].succeeded

    async def test_batch_deadline(self):
        async def worker(item):
            await asyncio.sleep(1.0)
            return UploadResult(public_id=item)

        loop = asyncio.get_running_loop()
        outcomes = await BatchDispatcher().dispatch(["a", "b"], worker, max_concurrency=2,
                                                    timeout=10.0, deadline=loop.time() + 0.1)
        assert all(isinstance(o.error, UploadTimeoutError) for o in outcomes)

    async def test_expired_deadline_skips_worker(self):
        called = []

        async def worker(item):
            called.append(item)
            return UploadResult(public_id=item)

        loop = asyncio.get_running_loop()
        outcomes = await BatchDispatcher().dispatch(["a"], worker, max_concurrency=1,
                                                    timeout=10.0, deadline=loop.time() - 1)
        assert isinstance(outcomes[0].error, UploadTimeoutError)
        assert called == []


class TestCancellation:
    """取消测试"""

    async def test_cancel_stops_workers(self):
        started = asyncio.Event()
        cancelled = []

        async def worker(item):
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(item)
                raise

        task = asyncio.create_task(
            BatchDispatcher().dispatch(["a", "b", "c"], worker, max_concurrency=2, timeout=10.0)
        )
        await started.wait()
        await asyncio.sleep(0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert sorted(cancelled) == ["a", "b"]
