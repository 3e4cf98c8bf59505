"""响应解析模块。

搜索接口返回的是一段类 XML 的标记，结构大致如下::

    <amount>20</amount>
    <amount_total>45</amount_total>
    <row><link_target>https://www.consorsbank.de/ev/aktie/sixt-se-DE0007231326</link_target></row>
    ...

分支列表接口的第一行为表头，其后每行的 ``key`` 字段即分支ID。
"""

from __future__ import annotations

import dataclasses
import logging

from bs4 import BeautifulSoup

log = logging.getLogger("page")

ISIN_LENGTH = 12


def _parse_int(soup: BeautifulSoup, selector: str) -> int | None:
    node = soup.select_one(selector)
    if node is None:
        return None
    try:
        return int(node.get_text(strip=True))
    except ValueError:
        return None


@dataclasses.dataclass(slots=True, frozen=True)
class ResultPage:
    """解析后的搜索结果页。

    Attributes:
        url: 请求地址
        links: 按文档顺序排列的 link_target 文本
        amount: 本页条目数，缺失或无法解析时为None
        amount_total: 所有分页的条目总数，缺失或无法解析时为None
    """

    url: str
    links: tuple[str, ...]
    amount: int | None = None
    amount_total: int | None = None

    @classmethod
    def from_html(cls, url: str, body: str) -> ResultPage:
        soup = BeautifulSoup(body, "html.parser")
        links = tuple(
            text for node in soup.select("row link_target") if (text := node.get_text(strip=True))
        )
        return cls(
            url=url,
            links=links,
            amount=_parse_int(soup, "amount"),
            amount_total=_parse_int(soup, "amount_total"),
        )

    @property
    def isins(self) -> list[str]:
        """取每个链接末尾的12个字符作为 ISIN。"""
        return [link[-ISIN_LENGTH:] for link in self.links]


def parse_branch_ids(body: str) -> list[int]:
    """从分支列表页中提取分支ID，跳过表头行。

    Args:
        body: 分支列表接口的响应内容。

    Returns:
        list[int]: 按文档顺序排列的分支ID。
    """
    soup = BeautifulSoup(body, "html.parser")

    branch_ids: list[int] = []
    for node in soup.select("row:not(:first-child) key"):
        text = node.get_text(strip=True)
        try:
            branch_ids.append(int(text))
        except ValueError:
            log.debug(f"Skipping non-numeric branch key {text!r}.")

    return branch_ids
