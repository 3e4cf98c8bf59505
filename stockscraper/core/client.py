from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Protocol

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from .metrics import API_REQUEST_DURATION

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from aiolimiter import AsyncLimiter

logger = logging.getLogger(__name__)


@dataclasses.dataclass(slots=True, frozen=True)
class FetchResult:
    """一次 GET 请求的结果。

    Attributes:
        url: 请求地址
        final_url: 跟随重定向后的实际地址
        status: HTTP 状态码
        body: 解码后的响应内容
    """

    url: str
    final_url: str
    status: int
    body: str


class Fetcher(Protocol):
    async def fetch(self, url: str) -> FetchResult: ...


def _is_retryable(exc: BaseException) -> bool:
    """超时、连接错误、429 和 5xx 可以重试，其余错误直接抛出。"""
    if isinstance(exc, aiohttp.ClientResponseError):
        return exc.status == 429 or exc.status >= 500
    return isinstance(exc, (asyncio.TimeoutError, aiohttp.ClientConnectionError))


class HttpClient:
    """基于aiohttp的异步HTTP客户端，添加了请求限流和并发控制功能。

    通过上下文管理器为每次请求统一施加速率限制和并发控制，
    并按配置对可重试的错误进行指数退避重试。

    Attributes:
        limiter (AsyncLimiter): 用于控制每秒请求数的限流器。
        semaphore (asyncio.Semaphore): 用于控制最大并发数的信号量。
    """

    def __init__(
        self,
        *,
        limiter: AsyncLimiter,
        semaphore: asyncio.Semaphore,
        timeout_seconds: float = 30.0,
        user_agent: str = "stockscraper/0.1",
        retry_attempts: int = 1,
    ):
        """初始化HTTP客户端。

        Args:
            limiter: 速率限制器，用于控制每秒请求数。
            semaphore: 信号量，用于控制最大并发数。
            timeout_seconds: 单次请求的总超时时间（秒）。
            user_agent: 请求头中的 User-Agent。
            retry_attempts: 单次请求的最大尝试次数，1 表示不重试。
        """
        self._limiter = limiter
        self._semaphore = semaphore
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._headers = {"User-Agent": user_agent, "Accept": "*/*"}
        self._retry_attempts = retry_attempts
        self._session: aiohttp.ClientSession | None = None

    @property
    def limiter(self) -> AsyncLimiter:
        """获取速率限制器。"""
        return self._limiter

    @property
    def semaphore(self) -> asyncio.Semaphore:
        """获取信号量。"""
        return self._semaphore

    @asynccontextmanager
    async def rate_limiter(self) -> AsyncGenerator[None, None]:
        """获取速率限制和并发控制的上下文管理器。"""
        async with self.limiter:
            async with self.semaphore:
                yield

    async def fetch(self, url: str) -> FetchResult:
        """发送 GET 请求并返回响应内容。

        Raises:
            asyncio.TimeoutError: 请求超时。
            aiohttp.ClientResponseError: 响应状态码不低于400。
            aiohttp.ClientError: 其他网络错误。
        """
        if self._session is None:
            raise RuntimeError("HttpClient is not started; use 'async with HttpClient(...)'.")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential_jitter(initial=0.5, max=5.0),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        return await retrying(self._limited_get, url)

    async def _limited_get(self, url: str) -> FetchResult:
        async with self.rate_limiter():
            return await self._get(url)

    async def _get(self, url: str) -> FetchResult:
        assert self._session is not None
        start = time.monotonic()
        status = "error"
        try:
            async with self._session.get(url) as resp:
                status = str(resp.status)
                resp.raise_for_status()
                body = await resp.text(errors="replace")
                logger.debug("GET %s -> %s (%d bytes)", url, resp.status, len(body))
                return FetchResult(url=url, final_url=str(resp.url), status=resp.status, body=body)
        finally:
            API_REQUEST_DURATION.labels(status=status).observe(time.monotonic() - start)

    async def __aenter__(self) -> HttpClient:
        self._session = aiohttp.ClientSession(timeout=self._timeout, headers=self._headers)
        return self

    async def __aexit__(self, exc_type=None, exc_val=None, exc_tb=None):
        if self._session is not None:
            await self._session.close()
            self._session = None
