"""分页规划模块。

搜索结果分页时，首页响应中包含 ``amount``（本页条目数）和 ``amount_total``（总条目数），
据此生成后续分页的任务。只有首页请求才需要规划分页，判断是否为首页的策略可替换：

- LengthFollowPolicy: 按 URL 长度判断，带 pageoffset 参数的地址明显更长。
  阈值与分支ID和参数宽度绑定，地址格式变化后需要重新评估。
- PageOffsetFollowPolicy: 按 URL 查询参数中是否包含 pageoffset 判断。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol
from urllib.parse import parse_qs, urlparse

from .tasks import CrawlJob

if TYPE_CHECKING:
    from .page import ResultPage
    from .urls import UrlBuilder


class FollowPolicy(Protocol):
    def should_follow(self, url: str) -> bool: ...


class LengthFollowPolicy:
    """URL 长度不超过阈值时视为首页请求。"""

    def __init__(self, max_length: int = 149):
        self.max_length = max_length

    def should_follow(self, url: str) -> bool:
        return len(url) <= self.max_length


class PageOffsetFollowPolicy:
    """URL 中不含 pageoffset 参数时视为首页请求。"""

    def should_follow(self, url: str) -> bool:
        return "pageoffset" not in parse_qs(urlparse(url).query)


def make_follow_policy(name: Literal["length", "pageoffset"], max_length: int = 149) -> FollowPolicy:
    if name == "length":
        return LengthFollowPolicy(max_length)
    if name == "pageoffset":
        return PageOffsetFollowPolicy()
    raise ValueError(f"Unknown follow policy: {name}")


class PaginationPlanner:
    """根据首页响应规划后续分页任务。

    Attributes:
        urls: 地址构造器，用于拼接 pageoffset 参数。
        policy: 判断请求是否需要规划分页的策略。
    """

    def __init__(self, urls: UrlBuilder, policy: FollowPolicy | None = None):
        self.urls = urls
        self.policy = policy or LengthFollowPolicy()

    def should_consider_pagination(self, url: str) -> bool:
        """判断该请求完成后是否需要规划分页。"""
        return self.policy.should_follow(url)

    def plan(self, page: ResultPage, origin_url: str, branch_id: int | None = None) -> list[CrawlJob]:
        """生成后续分页任务。

        计数字段缺失、本页为空或本页已包含全部条目时不再分页；
        否则按 ``amount_total // amount`` 生成 pageoffset 为 1..n 的任务。

        Args:
            page: 已解析的首页响应。
            origin_url: 首页请求地址。
            branch_id: 所属分支ID，透传给生成的任务。

        Returns:
            list[CrawlJob]: 后续分页任务，无需分页时为空列表。
        """
        amount, total = page.amount, page.amount_total
        if amount is None or total is None:
            return []

        if amount == 0 or amount >= total:
            return []

        return [
            CrawlJob(url=self.urls.page_url(origin_url, offset), branch_id=branch_id, pageoffset=offset)
            for offset in range(1, total // amount + 1)
        ]
