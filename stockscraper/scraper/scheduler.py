"""爬取调度器模块。

一次运行的流程：
1. 为每个分支生成首页任务并放入队列
2. 启动多个 Worker 并发处理队列中的任务，Worker 会在处理过程中追加分页任务
3. 队列中既没有排队中也没有处理中的任务时，运行结束
4. 若某个 Worker 按 abort 策略退出，取消其余 Worker 并抛出原始异常
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

from .queue import CrawlQueue
from .tasks import CrawlJob
from .worker import RunStats, SearchPageHandler, Worker

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..core.client import Fetcher
    from ..core.sink import BatchSink
    from .pagination import PaginationPlanner
    from .urls import UrlBuilder
    from .worker import FailurePolicy


class Scheduler:
    """爬取调度器主类。

    Attributes:
        client: 页面抓取客户端。
        urls: 地址构造器。
        planner: 分页规划器。
        sink: 批次输出。
        workers: 并发 Worker 数量。
        on_error: 任务失败时的处理策略。
        dedupe: 是否按 URL 对任务去重。
    """

    def __init__(
        self,
        client: Fetcher,
        urls: UrlBuilder,
        planner: PaginationPlanner,
        sink: BatchSink,
        *,
        workers: int = 5,
        on_error: FailurePolicy = "abort",
        dedupe: bool = False,
    ):
        if workers <= 0:
            raise ValueError("workers must be greater than 0")

        self.client = client
        self.urls = urls
        self.planner = planner
        self.sink = sink
        self.workers = workers
        self.on_error = on_error
        self.dedupe = dedupe

    async def run(self, branch_ids: Sequence[int]) -> RunStats:
        """爬取指定分支的全部搜索结果页。

        Args:
            branch_ids: 分支ID列表，为空时不做任何请求直接返回。

        Returns:
            RunStats: 本次运行的统计。
        """
        stats = RunStats()
        if not branch_ids:
            logger.warning("No branches to crawl. Nothing to do.")
            return stats

        self.sink.prepare()

        queue = CrawlQueue(dedupe=self.dedupe)
        for branch_id in branch_ids:
            queue.put_nowait(CrawlJob(url=self.urls.search_url(branch_id), branch_id=branch_id))
        logger.info("Scheduled {} branch search tasks with {} workers.", queue.qsize(), self.workers)

        workers = [
            Worker(
                i,
                queue,
                SearchPageHandler(i, self.client, self.planner, self.sink, queue, stats),
                on_error=self.on_error,
            )
            for i in range(self.workers)
        ]
        worker_tasks = [asyncio.create_task(w.run(), name=f"worker-{w.worker_id}") for w in workers]
        drain_task = asyncio.create_task(queue.join(), name="drain")

        try:
            done, _ = await asyncio.wait([drain_task, *worker_tasks], return_when=asyncio.FIRST_COMPLETED)
            for t in done:
                if t is not drain_task and not t.cancelled() and t.exception() is not None:
                    raise t.exception()  # type: ignore[misc]
        finally:
            for t in (drain_task, *worker_tasks):
                if not t.done():
                    t.cancel()
            await asyncio.gather(drain_task, *worker_tasks, return_exceptions=True)

        logger.info(
            "Crawl finished: {} jobs, {} batches, {} ISINs, {} follow-up pages, {} failed.",
            stats.jobs,
            stats.batches,
            stats.items,
            stats.followups,
            stats.failed,
        )
        return stats
