"""爬取队列模块。

在 asyncio.Queue 之上维护未完成任务计数，作为一次爬取运行的完成判据：
每次 ``put`` 都会在入队时增加计数，``task_done`` 时减少，
``join`` 在计数归零（没有排队中也没有处理中的任务）时返回。

可选按 URL 去重：开启后，同一次运行中出现过的 URL 不会再次入队。
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ..core.metrics import JOBS_ENQUEUED, QUEUE_SIZE

if TYPE_CHECKING:
    from .tasks import CrawlJob


class CrawlQueue:
    """爬取任务队列。

    队列不设上限，避免 Worker 在追加分页任务时因队列已满而互相阻塞。

    Attributes:
        dedupe: 是否按 URL 去重。
        _seen: 本次运行已入队过的 URL 集合，仅在去重模式下使用。
        _q: 内部 asyncio.Queue
    """

    def __init__(self, dedupe: bool = False):
        self.dedupe = dedupe
        self._q: asyncio.Queue[CrawlJob] = asyncio.Queue()
        self._seen: set[str] = set()

    def qsize(self) -> int:
        return self._q.qsize()

    def put_nowait(self, job: CrawlJob) -> bool:
        """非阻塞入队，返回任务是否真正入队。"""
        if self.dedupe:
            if job.url in self._seen:
                return False
            self._seen.add(job.url)

        self._q.put_nowait(job)
        QUEUE_SIZE.inc()
        JOBS_ENQUEUED.labels(kind="seed" if job.is_seed else "followup").inc()
        return True

    async def put(self, job: CrawlJob) -> bool:
        return self.put_nowait(job)

    async def get(self) -> CrawlJob:
        job = await self._q.get()
        QUEUE_SIZE.dec()
        return job

    def task_done(self) -> None:
        self._q.task_done()

    async def join(self) -> None:
        await self._q.join()
