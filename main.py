"""consorsbank.de 股票列表爬虫主入口模块。

一次运行的流程：
1. 加载配置（config.toml、环境变量与命令行参数）
2. 初始化依赖注入容器
3. 获取分支列表（未指定分支时从 OptionsBranch 页面获取全部分支）
4. 调度器爬取所有分支的搜索结果页，每个非空结果页写出一个批次文件
"""

import asyncio
import logging
import platform
from typing import Any

from stockscraper.core.config import Config
from stockscraper.core.container import Container
from stockscraper.scraper import RunStats
from stockscraper.utils import setup_logging

log = logging.getLogger("main")


async def main(branches: list[int] | None = None, **overrides: Any) -> RunStats:
    """统一入口，完成一次完整的爬取运行。

    Args:
        branches: 指定爬取的分支ID，为空时使用配置中的分支或全部分支。
        **overrides: 按配置分区传入的覆盖值，例如 crawler={"drop_box": "/tmp"}。

    Returns:
        RunStats: 本次运行的统计。
    """
    config = Config(**overrides)
    container = Container(config)
    await container.setup()

    try:
        branch_ids = branches or config.branches
        if not branch_ids:
            branch_ids = await container.branch_lister().list_branches()

        log.info(f"Starting crawl of {len(branch_ids)} branches.")
        return await container.scheduler().run(branch_ids)

    except asyncio.CancelledError:
        log.info("Received cancellation.")
        raise

    finally:
        log.info("Shutting down application...")
        await container.teardown()


def setup_event_loop():
    if platform.system() != "Windows":
        try:
            import uvloop  # type: ignore

            asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())

        except ImportError:
            # 非关键依赖，降低为 info，避免冗长堆栈
            log.info("uvloop not installed; using default asyncio event loop.")

    else:
        log.info("Running on Windows, using the default ProactorEventLoop.")


def _build_overrides(args) -> dict[str, Any]:
    crawler: dict[str, Any] = {}
    if args.drop_box is not None:
        crawler["drop_box"] = args.drop_box
    if args.per_page is not None:
        crawler["per_page"] = args.per_page
    if args.workers is not None:
        crawler["workers"] = args.workers
    if args.on_error is not None:
        crawler["on_error"] = args.on_error
    return {"crawler": crawler} if crawler else {}


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Scrape all stock ISINs listed on consorsbank.de")
    parser.add_argument(
        "--branch",
        dest="branches",
        type=int,
        action="append",
        help="Branch ID to crawl; repeat for several branches. Defaults to all branches.",
    )
    parser.add_argument("--drop-box", help="Directory under which the run directory is created.")
    parser.add_argument("--per-page", type=int, help="Results per search page (site maximum is 50).")
    parser.add_argument("--workers", type=int, help="Number of concurrent workers.")
    parser.add_argument(
        "--on-error",
        choices=["abort", "skip"],
        help="Abort the whole run on the first failed page, or log it and continue.",
    )
    parser.add_argument("--log-level", default=None, help="Log level, defaults to $LOG_LEVEL or INFO.")
    args = parser.parse_args()

    setup_logging(args.log_level)
    setup_event_loop()

    try:
        stats = asyncio.run(main(args.branches, **_build_overrides(args)))
        log.info(f"Done: {stats}")
    except KeyboardInterrupt:
        log.info("Application stopped by user.")
