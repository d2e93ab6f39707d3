from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

from ..errors import QueueFullError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Handler = Callable[[str, Any], Awaitable[T]]


@dataclass
class _Lane:
    queue: "asyncio.Queue[Tuple[Any, asyncio.Future]]"
    task: Optional[asyncio.Task] = field(default=None)


class BoardWorker(Generic[T]):
    """
    Per-key FIFO queue: events with the same key run one at a time, in
    submission order, each to completion before the next one starts. Keys
    are independent and drain concurrently.

    A drain task is created when a key gets work and exits once its queue
    is empty. A failed event only fails its own submitter.
    """

    def __init__(self, handler: Handler, queue_maxsize: int = 1000):
        self._handler = handler
        self._queue_maxsize = queue_maxsize
        self._lanes: Dict[str, _Lane] = {}

    @property
    def active_keys(self) -> list[str]:
        return list(self._lanes)

    async def submit(self, key: str, payload: Any) -> T:
        """Queue ``payload`` behind earlier events for ``key`` and await its result."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        lane = self._lanes.get(key)
        if lane is None:
            lane = _Lane(queue=asyncio.Queue(maxsize=self._queue_maxsize))
            self._lanes[key] = lane

        try:
            lane.queue.put_nowait((payload, future))
        except asyncio.QueueFull:
            logger.warning("board queue full for key=%s, rejecting event", key)
            raise QueueFullError(key, self._queue_maxsize)

        if lane.task is None or lane.task.done():
            lane.task = loop.create_task(self._run(key, lane), name=f"board-worker-{key}")

        return await future

    async def _run(self, key: str, lane: _Lane) -> None:
        """Drain one key's queue, then retire the lane."""
        while True:
            try:
                payload, future = lane.queue.get_nowait()
            except asyncio.QueueEmpty:
                # no await between the empty check and removal, so submit() cannot slip in
                if self._lanes.get(key) is lane:
                    del self._lanes[key]
                return

            try:
                result = await self._handler(key, payload)
            except asyncio.CancelledError:
                if not future.done():
                    future.cancel()
                raise
            except Exception as exc:
                logger.exception("board event failed for key=%s", key)
                if not future.done():
                    future.set_exception(exc)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                lane.queue.task_done()

    async def aclose(self) -> None:
        """Cancel running drains; queued events are cancelled with them."""
        lanes = list(self._lanes.values())
        self._lanes.clear()
        for lane in lanes:
            if lane.task and not lane.task.done():
                lane.task.cancel()
            while not lane.queue.empty():
                _, future = lane.queue.get_nowait()
                if not future.done():
                    future.cancel()
        for lane in lanes:
            if lane.task:
                try:
                    await lane.task
                except asyncio.CancelledError:
                    pass
