"""工作器模块。

该模块实现了搜索结果页的处理器和工作器，负责执行爬虫的具体工作。

主要组件：
- SearchPageHandler: 抓取并解析单个搜索结果页，写出结果批次并追加分页任务
- Worker: 工作器主类，从队列中获取任务并交给处理器，按失败策略处理异常
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import TYPE_CHECKING, Literal, TypeAlias

from ..core.metrics import ACTIVE_WORKERS, PAGES_FETCHED, SCRAPED_ITEMS, WORKER_ERRORS
from .page import ResultPage
from .tasks import CrawlJob, OutputBatch

if TYPE_CHECKING:
    from ..core.client import Fetcher
    from ..core.sink import BatchSink
    from .pagination import PaginationPlanner
    from .queue import CrawlQueue

FailurePolicy: TypeAlias = Literal["abort", "skip"]


@dataclasses.dataclass(slots=True)
class RunStats:
    """一次爬取运行的统计。

    Attributes:
        jobs: 已完成（含失败）的任务数
        batches: 写出的批次数
        items: 写出的 ISIN 总数
        followups: 追加的分页任务数
        failed: 失败并被跳过的任务数
    """

    jobs: int = 0
    batches: int = 0
    items: int = 0
    followups: int = 0
    failed: int = 0


class SearchPageHandler:
    """处理单个搜索结果页任务。

    主要流程：
    1. 抓取页面并解析为 ResultPage
    2. 提取 ISIN，非空时立即写出一个批次
    3. 首页请求按计数字段规划后续分页，并追加到同一个队列

    Attributes:
        client: 页面抓取客户端。
        planner: 分页规划器。
        sink: 批次输出。
        queue: 爬取队列，用于追加分页任务。
        stats: 本次运行的统计，由所有处理器共享。
    """

    def __init__(
        self,
        worker_id: int,
        client: Fetcher,
        planner: PaginationPlanner,
        sink: BatchSink,
        queue: CrawlQueue,
        stats: RunStats,
    ):
        self.worker_id = worker_id
        self.client = client
        self.planner = planner
        self.sink = sink
        self.queue = queue
        self.stats = stats
        self.log = logging.getLogger(f"Handler-{worker_id}")

    async def handle(self, job: CrawlJob) -> None:
        try:
            result = await self.client.fetch(job.url)
        except Exception:
            PAGES_FETCHED.labels(status="error").inc()
            raise
        PAGES_FETCHED.labels(status="success").inc()

        page = ResultPage.from_html(job.url, result.body)
        isins = page.isins

        if isins:
            path = self.sink.write(OutputBatch(url=job.url, isins=tuple(isins)))
            SCRAPED_ITEMS.inc(len(isins))
            self.stats.batches += 1
            self.stats.items += len(isins)
            self.log.debug(f"branch={job.branch_id} pageoffset={job.pageoffset}: wrote {len(isins)} ISINs to {path}")
        else:
            self.log.debug(f"branch={job.branch_id} pageoffset={job.pageoffset}: no items found.")

        if not self.planner.should_consider_pagination(job.url):
            return

        followups = self.planner.plan(page, job.url, branch_id=job.branch_id)
        for followup in followups:
            if await self.queue.put(followup):
                self.stats.followups += 1

        if followups:
            self.log.info(
                f"branch={job.branch_id}: amount={page.amount}, total={page.amount_total}, "
                f"scheduled {len(followups)} follow-up pages."
            )


class Worker:
    """工作器类，负责处理爬取队列中的任务。

    分页任务在当前任务的 ``task_done()`` 之前入队，
    因此队列的 ``join()`` 不会在已发现但尚未入队的任务存在时返回。

    失败策略：
    - abort: 记录错误后重新抛出，工作器退出，由调度器终止整次运行
    - skip: 记录错误并计入统计，继续处理下一个任务

    Attributes:
        worker_id: 工作器的唯一标识ID。
        queue: 爬取队列。
        handler: 搜索结果页处理器。
        on_error: 失败策略。
        log: 日志记录器。
    """

    def __init__(
        self,
        worker_id: int,
        queue: CrawlQueue,
        handler: SearchPageHandler,
        on_error: FailurePolicy = "abort",
    ):
        self.worker_id = worker_id
        self.queue = queue
        self.handler = handler
        self.on_error = on_error
        self.log = logging.getLogger(f"Worker-{worker_id}")

    async def run(self):
        """工作器主循环，持续从队列中获取并处理任务，直到被取消。"""
        self.log.debug("Starting...")

        while True:
            try:
                job = await self.queue.get()
            except asyncio.CancelledError:
                self.log.debug("Cancelled. Exiting.")
                break

            ACTIVE_WORKERS.inc()
            try:
                await self.handler.handle(job)
            except asyncio.CancelledError:
                self.log.debug("Cancelled while processing a job. Exiting.")
                break
            except Exception as e:
                WORKER_ERRORS.labels(policy=self.on_error).inc()
                if self.on_error == "abort":
                    self.log.error(f"Job failed for {job.url}, aborting run: {e!r}")
                    raise
                self.handler.stats.failed += 1
                self.log.exception(f"Job failed for {job.url}, skipping: {e}")
            finally:
                ACTIVE_WORKERS.dec()
                self.handler.stats.jobs += 1
                self.queue.task_done()
