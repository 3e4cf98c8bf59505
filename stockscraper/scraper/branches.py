"""分支列表模块。"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

from .page import parse_branch_ids

if TYPE_CHECKING:
    from ..core.client import Fetcher
    from .urls import UrlBuilder


class BranchLister:
    """从 OptionsBranch 页面获取全部分支ID。

    Attributes:
        client: 页面抓取客户端。
        urls: 地址构造器。
    """

    def __init__(self, client: Fetcher, urls: UrlBuilder):
        self.client = client
        self.urls = urls

    async def list_branches(self) -> list[int]:
        """获取分支ID列表。

        请求超时时返回空列表而不是抛出异常，其他错误照常抛出。

        Returns:
            list[int]: 按页面顺序排列的分支ID。
        """
        url = self.urls.listing_url()
        try:
            result = await self.client.fetch(url)
        except asyncio.TimeoutError:
            logger.warning("Timed out fetching branch list from {}; no branches will be crawled.", url)
            return []

        branch_ids = parse_branch_ids(result.body)
        logger.info("Found {} branches.", len(branch_ids))
        return branch_ids
