"""依赖注入容器模块。

该模块实现了应用程序的依赖注入容器，负责统一管理和初始化
各种外部资源和服务，包括HTTP客户端、限流器、结果输出和指标服务等。
"""

from __future__ import annotations

from asyncio import Semaphore
from typing import TYPE_CHECKING

from aiolimiter import AsyncLimiter
from loguru import logger
from prometheus_client import start_http_server

from ..scraper.branches import BranchLister
from ..scraper.pagination import PaginationPlanner, make_follow_policy
from ..scraper.scheduler import Scheduler
from ..scraper.urls import UrlBuilder
from .client import HttpClient
from .sink import DropBoxSink, uuid_factory

if TYPE_CHECKING:
    from collections.abc import Callable

    from .config import Config
    from .sink import BatchSink


class Container:
    """依赖注入容器。

    负责管理应用程序的所有外部依赖，提供统一的资源初始化和清理接口。

    Attributes:
        config (Config): 应用程序配置对象
        urls (UrlBuilder): 请求地址构造器
        planner (PaginationPlanner): 分页规划器
        limiter (AsyncLimiter): 漏桶算法实现的异步限流器
        semaphore (Semaphore): 并发请求数控制
        client (HttpClient): 带速率与并发限制的HTTP客户端
        sink (BatchSink): 批次输出
    """

    def __init__(self, config: Config, *, id_factory: Callable[[], str] = uuid_factory):
        """初始化容器。

        Args:
            config: 应用程序的配置对象。
            id_factory: 运行ID与批次ID的生成器。
        """
        self.config = config
        self.id_factory = id_factory

        self.urls = UrlBuilder(
            base_url=config.base_url,
            api_path=config.api_path,
            per_page=config.per_page,
            year=config.year,
        )
        self.planner = PaginationPlanner(
            self.urls,
            make_follow_policy(config.follow_policy, config.follow_max_url_length),
        )

        self.limiter: AsyncLimiter | None = None
        self.semaphore: Semaphore | None = None
        self.client: HttpClient | None = None
        self.sink: BatchSink | None = None

    async def setup(self):
        """异步初始化容器资源。

        依次初始化以下资源：
        1. AsyncLimiter - 用于请求限流
        2. Semaphore - 用于控制并发请求数
        3. HttpClient - 带速率与并发限制的HTTP客户端
        4. DropBoxSink - 本次运行的结果输出目录
        5. Prometheus 指标服务（若启用）

        如果任何步骤失败，会自动调用teardown()清理已初始化的资源。
        """
        logger.info("Initializing container resources...")
        try:
            self.limiter = AsyncLimiter(1, time_period=1 / self.config.rps_limit)
            self.semaphore = Semaphore(self.config.concurrency_limit)
            logger.info("AioLimiter initialized with a rate of {} RPS.", self.config.rps_limit)

            self.client = await HttpClient(
                limiter=self.limiter,
                semaphore=self.semaphore,
                timeout_seconds=self.config.timeout_seconds,
                user_agent=self.config.user_agent,
                retry_attempts=self.config.retry_attempts,
            ).__aenter__()
            logger.info("HTTP client started.")

            self.sink = DropBoxSink(self.config.drop_box, id_factory=self.id_factory)
            logger.info("Run {} will write to {}.", self.sink.run_id, self.sink.run_dir)

            if self.config.metrics_enabled:
                start_http_server(self.config.metrics_port)
                logger.info("Prometheus metrics exposed on port {}.", self.config.metrics_port)

            logger.info("Container resources initialized successfully.")

        except Exception as e:
            logger.exception(f"Failed to initialize container resources: {e}")
            await self.teardown()
            raise

    def branch_lister(self) -> BranchLister:
        if self.client is None:
            raise RuntimeError("Container is not set up properly.")
        return BranchLister(self.client, self.urls)

    def scheduler(self) -> Scheduler:
        if self.client is None or self.sink is None:
            raise RuntimeError("Container is not set up properly.")
        return Scheduler(
            self.client,
            self.urls,
            self.planner,
            self.sink,
            workers=self.config.workers,
            on_error=self.config.on_error,
            dedupe=self.config.dedupe_jobs,
        )

    async def teardown(self):
        """异步关闭并清理所有资源。该方法是幂等的，可以安全地多次调用。"""
        logger.info("Tearing down container resources...")

        if self.client:
            await self.client.__aexit__()
            self.client = None
            logger.info("HTTP client closed.")

        logger.info("Container resources torn down successfully.")
