"""请求地址构造模块。

consorsbank.de 的分支列表与股票搜索共用同一个 ajax 接口，通过 ``page`` 参数区分：

- 分支列表: ``financeinfos_ajax?page=OptionsBranch&version=2``
- 股票搜索: ``financeinfos_ajax?page=StocksFinder&version=2&...&branch=<id>&blocksize=<n>``

分页时在搜索地址后追加 ``&pageoffset=<n>``。
"""

from __future__ import annotations

import logging

log = logging.getLogger("urls")

MAX_PER_PAGE = 50


class UrlBuilder:
    """构造绝对请求地址。

    Attributes:
        base_url: 站点根地址，相对地址会拼接在其后。
        api_path: ajax 接口的相对路径。
        per_page: 每页条目数量，负数会被截断为0。
        year: 估值数据年份（YEAR0 参数）。
    """

    def __init__(
        self,
        base_url: str = "https://www.consorsbank.de/",
        api_path: str = "euroWebDe/servlets/financeinfos_ajax",
        per_page: int = 20,
        year: int = 2016,
    ):
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.api_path = api_path.strip("/")
        self.per_page = max(0, int(per_page))
        self.year = year

        if self.per_page > MAX_PER_PAGE:
            log.warning(f"per_page={self.per_page} exceeds the site limit of {MAX_PER_PAGE}; the site will cap it.")

    def abs_url(self, url: str) -> str:
        """为相对地址补全协议与主机，已是绝对地址时原样返回。"""
        return url if url.startswith("http") else f"{self.base_url}{url}"

    def listing_url(self) -> str:
        return self.abs_url(f"{self.api_path}?page=OptionsBranch&version=2")

    def search_url(self, branch_id: int, pageoffset: int | None = None) -> str:
        """获取指定分支的搜索结果页地址。

        Args:
            branch_id: 分支ID。
            pageoffset: 页码偏移，仅当大于1时才会追加到地址中。

        Returns:
            str: 绝对地址。
        """
        url = (
            f"{self.api_path}?page=StocksFinder&version=2&FIGURE0=PER.EVALUATION&YEAR0={self.year}"
            f"&branch={int(branch_id)}&blocksize={self.per_page}"
        )
        if pageoffset is not None and pageoffset > 1:
            url += f"&pageoffset={pageoffset}"

        return self.abs_url(url)

    def page_url(self, url: str, offset: int) -> str:
        """在已有地址后追加页码偏移参数。"""
        return self.abs_url(f"{url}&pageoffset={offset}")
