"""
Notification hub - fans JSON-RPC notifications out to connected executors
"""

import asyncio
import logging
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)


def make_notification(method: str, params: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "method": method, "params": params}


class NotificationHub:
    """
    One queue per subscriber, each bound to the event loop that created it.

    ``notify`` is safe to call from any thread; delivery is scheduled on the
    subscriber's loop.
    """

    def __init__(self, max_queue_size: int = 1000):
        self._max_queue_size = max_queue_size
        self._subscribers: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.append((loop, queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers = [(loop, q) for loop, q in self._subscribers if q is not queue]

    def notify(self, method: str, params: Dict[str, Any]) -> None:
        message = make_notification(method, params)
        if not self._subscribers:
            logger.debug(f"No channel subscribers for {method}")
            return
        for loop, queue in list(self._subscribers):
            if loop.is_closed():
                self.unsubscribe(queue)
                continue
            loop.call_soon_threadsafe(self._deliver, queue, message)

    @staticmethod
    def _deliver(queue: asyncio.Queue, message: Dict[str, Any]) -> None:
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning(f"Channel subscriber queue full, dropping {message['method']}")
