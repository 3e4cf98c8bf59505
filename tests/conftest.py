"""Pytest 配置和共享 fixtures。"""
# ruff: noqa: E402

import sys
from pathlib import Path

# Add the project root to sys.path so `import main` works alongside the package
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


import asyncio
from collections.abc import Iterable

import pytest

from stockscraper.core.client import FetchResult
from stockscraper.core.config import TomlConfigSettingsSource
from stockscraper.scraper.urls import UrlBuilder

# ==================== 响应构造 ====================


def isin(n: int, country: str = "DE") -> str:
    """生成测试用的12位 ISIN"""
    return f"{country}{n:010d}"


def stock_link(code: str) -> str:
    return f"https://www.consorsbank.de/ev/aktie/stock-{code}"


def search_body(links: Iterable[str], amount: int | None = None, total: int | None = None) -> str:
    """构造搜索接口的响应内容"""
    parts = ["<?xml version='1.0' encoding='UTF-8'?>", "<response>"]
    if amount is not None:
        parts.append(f"<amount>{amount}</amount>")
    if total is not None:
        parts.append(f"<amount_total>{total}</amount_total>")
    parts.append("<rows>")
    parts.extend(f"<row><name>Stock</name><link_target>{link}</link_target></row>" for link in links)
    parts.append("</rows>")
    parts.append("</response>")
    return "\n".join(parts)


def listing_body(keys: Iterable[str]) -> str:
    """构造分支列表接口的响应内容，第一行为表头"""
    rows = ["<row><key>key</key><value>Branche</value></row>"]
    rows.extend(f"<row><key>{k}</key><value>Branch {k}</value></row>" for k in keys)
    return "<response><rows>" + "".join(rows) + "</rows></response>"


# ==================== Fake 客户端 ====================


class FakeFetcher:
    """按 URL 返回预设响应的抓取客户端。

    未预设的 URL 返回空结果页；预设值为异常实例时抛出该异常。
    """

    def __init__(self, pages: dict[str, str | BaseException] | None = None, delay: float = 0.0):
        self.pages = dict(pages or {})
        self.delay = delay
        self.calls: list[str] = []

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        await asyncio.sleep(self.delay)
        page = self.pages.get(url, search_body([]))
        if isinstance(page, BaseException):
            raise page
        return FetchResult(url=url, final_url=url, status=200, body=page)


class CountingIds:
    """确定性的ID生成器：run-0, batch-1, batch-2 ..."""

    def __init__(self, prefix: str = "batch"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        value = "run-0" if self.count == 0 else f"{self.prefix}-{self.count}"
        self.count += 1
        return value


@pytest.fixture
def urls() -> UrlBuilder:
    return UrlBuilder()


@pytest.fixture(autouse=True)
def no_config_file(monkeypatch, tmp_path):
    """测试中不读取项目根目录下的 config.toml"""
    monkeypatch.setattr(TomlConfigSettingsSource, "CONFIG_FILE", tmp_path / "missing-config.toml")
