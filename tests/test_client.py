"""HttpClient 测试，使用本地 aiohttp 服务器。"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager

import aiohttp
import pytest
from aiohttp import web
from aiolimiter import AsyncLimiter

from stockscraper.core.client import HttpClient, _is_retryable


@asynccontextmanager
async def serve(routes: list[web.RouteDef]):
    app = web.Application()
    app.add_routes(routes)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        await runner.cleanup()


def make_client(**kwargs) -> HttpClient:
    return HttpClient(limiter=AsyncLimiter(100, 1), semaphore=asyncio.Semaphore(4), **kwargs)


@pytest.mark.asyncio
async def test_fetch_returns_body_and_final_url():
    async def search(request: web.Request) -> web.Response:
        assert request.headers["User-Agent"] == "test-agent"
        return web.Response(text=f"<amount>{request.query['branch']}</amount>", content_type="text/xml")

    async def moved(request: web.Request) -> web.Response:
        raise web.HTTPFound("/search?branch=4")

    async with serve([web.get("/search", search), web.get("/moved", moved)]) as base:
        async with make_client(user_agent="test-agent") as client:
            result = await client.fetch(f"{base}/search?branch=4")
            assert result.status == 200
            assert result.body == "<amount>4</amount>"
            assert result.url == result.final_url

            redirected = await client.fetch(f"{base}/moved")
            assert redirected.url == f"{base}/moved"
            assert redirected.final_url == f"{base}/search?branch=4"


@pytest.mark.asyncio
async def test_fetch_raises_on_http_error():
    async def missing(request: web.Request) -> web.Response:
        return web.Response(status=404)

    async with serve([web.get("/missing", missing)]) as base:
        async with make_client(retry_attempts=3) as client:
            with pytest.raises(aiohttp.ClientResponseError) as exc_info:
                await client.fetch(f"{base}/missing")
            assert exc_info.value.status == 404


@pytest.mark.asyncio
async def test_fetch_retries_server_errors():
    calls = {"cnt": 0}

    async def flaky(request: web.Request) -> web.Response:
        calls["cnt"] += 1
        if calls["cnt"] == 1:
            return web.Response(status=503)
        return web.Response(text="ok")

    async with serve([web.get("/flaky", flaky)]) as base:
        async with make_client(retry_attempts=2) as client:
            result = await client.fetch(f"{base}/flaky")

    assert result.body == "ok"
    assert calls["cnt"] == 2


@pytest.mark.asyncio
async def test_fetch_without_retry_by_default():
    calls = {"cnt": 0}

    async def broken(request: web.Request) -> web.Response:
        calls["cnt"] += 1
        return web.Response(status=500)

    async with serve([web.get("/broken", broken)]) as base:
        async with make_client() as client:
            with pytest.raises(aiohttp.ClientResponseError):
                await client.fetch(f"{base}/broken")

    assert calls["cnt"] == 1


@pytest.mark.asyncio
async def test_fetch_timeout():
    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.Response(text="late")

    async with serve([web.get("/slow", slow)]) as base:
        async with make_client(timeout_seconds=0.05) as client:
            with pytest.raises(asyncio.TimeoutError):
                await client.fetch(f"{base}/slow")


@pytest.mark.asyncio
async def test_fetch_requires_started_client():
    with pytest.raises(RuntimeError):
        await make_client().fetch("http://127.0.0.1:1/")


def test_is_retryable():
    def response_error(status: int) -> aiohttp.ClientResponseError:
        return aiohttp.ClientResponseError(request_info=None, history=(), status=status)  # type: ignore[arg-type]

    assert _is_retryable(asyncio.TimeoutError())
    assert _is_retryable(aiohttp.ClientConnectionError())
    assert _is_retryable(response_error(429))
    assert _is_retryable(response_error(502))
    assert not _is_retryable(response_error(404))
    assert not _is_retryable(ValueError())
