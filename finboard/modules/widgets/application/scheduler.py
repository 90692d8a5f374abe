"""Per-widget refresh timers.

每个 widget 一个独立的 asyncio.Task，互不同步；schedule 会先取消旧任务，
所以同一 widget 永远只有一个计时器。
"""

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

# tick 返回下一次的延迟（秒）；None 表示按配置的间隔
TickFunc = Callable[[str], Awaitable[float | None]]


class RefreshScheduler:
    def __init__(self, tick: TickFunc):
        self._tick = tick
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._intervals: dict[str, float] = {}

    def __contains__(self, widget_id: object) -> bool:
        return widget_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def interval_of(self, widget_id: str) -> float | None:
        return self._intervals.get(widget_id)

    def schedule(
        self, widget_id: str, interval_sec: float, *, immediate: bool = True
    ) -> None:
        """Start (or restart) the widget's timer."""
        self.cancel(widget_id)
        self._intervals[widget_id] = interval_sec
        self._tasks[widget_id] = asyncio.create_task(
            self._run(widget_id, interval_sec, 0.0 if immediate else interval_sec),
            name=f"refresh:{widget_id}",
        )

    def reschedule(self, widget_id: str, interval_sec: float) -> None:
        """Reset the timer with a new interval; the next tick is one interval away."""
        self.schedule(widget_id, interval_sec, immediate=False)

    def cancel(self, widget_id: str) -> bool:
        self._intervals.pop(widget_id, None)
        task = self._tasks.pop(widget_id, None)
        if task is None:
            return False
        task.cancel()
        return True

    async def cancel_all(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        self._intervals.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, widget_id: str, interval_sec: float, delay: float) -> None:
        loop = asyncio.get_running_loop()
        while True:
            await asyncio.sleep(delay)
            started = loop.time()
            next_delay: float | None = None
            try:
                next_delay = await self._tick(widget_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                # 单个 widget 的异常不能终止它自己的循环或其他 widget
                logger.exception(f"Refresh tick failed for widget {widget_id}")

            target = interval_sec if next_delay is None else next_delay
            delay = max(0.0, target - (loop.time() - started))
