"""任务定义模块。

该模块定义了爬虫系统中流转的数据对象：
- CrawlJob: 放入爬取队列的任务，以 URL 作为唯一标识
- OutputBatch: 单个任务产出的 ISIN 列表，对应一个结果文件
"""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(slots=True, frozen=True)
class CrawlJob:
    """放入爬取队列的任务对象。

    任务的相等性与哈希只取决于 URL，branch_id 和 pageoffset 仅用于日志与指标。

    Attributes:
        url: 搜索结果页的绝对地址
        branch_id: 所属分支ID，未知时为None
        pageoffset: 地址中携带的 pageoffset 参数值，首页请求不带该参数时为None
    """

    url: str
    branch_id: int | None = dataclasses.field(default=None, compare=False)
    pageoffset: int | None = dataclasses.field(default=None, compare=False)

    @property
    def is_seed(self) -> bool:
        return self.pageoffset is None


@dataclasses.dataclass(slots=True, frozen=True)
class OutputBatch:
    """单个已完成任务的结果批次。

    Attributes:
        url: 结果来源页面的 URL
        isins: 按文档顺序排列的 ISIN 列表
    """

    url: str
    isins: tuple[str, ...]

    def render(self) -> str:
        """渲染为文件内容：首行为 URL，随后每行一个 ISIN。"""
        return "\n".join((self.url, *self.isins))
