"""测试辅助：可推进的时钟、上游 HTTP 模拟、手动调度器。"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from finboard.modules.widgets.application.scheduler import RefreshScheduler

AV_HOST = "www.alphavantage.co"
FINNHUB_HOST = "finnhub.io"
INDIAN_HOST = "stock.indianapi.in"


class FakeClock:
    """可手动推进的单调时钟。"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Reply = httpx.Response | dict | list | Exception | Callable[..., Any]


@dataclass
class _Route:
    host: str
    path: str
    params: dict[str, str]
    replies: list[Reply]
    calls: int = 0


@dataclass
class UpstreamStub:
    """按 host + path (+ 查询参数子集) 匹配请求的上游模拟。

    replies 依次返回，最后一个会被重复使用；dict/list 视为 200 JSON 响应，
    Exception 会被抛出，callable 接收 request 并返回（可 await 的）响应。
    """

    routes: list[_Route] = field(default_factory=list)
    requests: list[httpx.Request] = field(default_factory=list)

    def on(self, host: str, path: str, *replies: Reply, **params: str) -> _Route:
        route = _Route(host=host, path=path, params=params, replies=list(replies))
        self.routes.append(route)
        return route

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def count(self, host: str, path: str | None = None) -> int:
        return sum(
            1
            for r in self.requests
            if r.url.host == host and (path is None or r.url.path == path)
        )

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for route in self.routes:
            if route.host != request.url.host or route.path != request.url.path:
                continue
            if any(request.url.params.get(k) != v for k, v in route.params.items()):
                continue
            reply = route.replies[min(route.calls, len(route.replies) - 1)]
            route.calls += 1
            return await _materialize(reply, request)
        return httpx.Response(404, json={"error": "no stub route"})


async def _materialize(reply: Reply, request: httpx.Request) -> httpx.Response:
    if isinstance(reply, Exception):
        raise reply
    if isinstance(reply, httpx.Response):
        return reply
    if isinstance(reply, dict | list):
        return httpx.Response(200, content=json.dumps(reply).encode())
    result = reply(request)
    if isinstance(result, Awaitable):
        result = await result
    return await _materialize(result, request)


async def settle(rounds: int = 10) -> None:
    """让已调度的任务运行几轮。"""
    for _ in range(rounds):
        await asyncio.sleep(0)


class ManualScheduler(RefreshScheduler):
    """只记录调度请求、不创建计时任务的调度器；测试中手动调用 tick。"""

    def __init__(self, tick):
        super().__init__(tick)
        self.scheduled: list[tuple[str, float, bool]] = []

    def __contains__(self, widget_id: object) -> bool:
        return widget_id in self._intervals

    def __len__(self) -> int:
        return len(self._intervals)

    def schedule(
        self, widget_id: str, interval_sec: float, *, immediate: bool = True
    ) -> None:
        self.cancel(widget_id)
        self._intervals[widget_id] = interval_sec
        self.scheduled.append((widget_id, interval_sec, immediate))
