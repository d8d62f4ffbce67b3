"""
Correlator - matches asynchronous tool-execution requests to their results

Requests leave through a one-way ``notify(method, params)`` channel; results come
back later through :meth:`Correlator.complete`. Every pending entry is removed
before its future is resolved or failed, so each request settles exactly once.
All mutation happens on the event loop thread.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

Notify = Callable[[str, Dict[str, Any]], None]

DEFAULT_TIMEOUT_MS = 30_000


class CorrelationTimeout(TimeoutError):
    """No result arrived for a request within its timeout."""

    def __init__(self, request_id: str, timeout_ms: int):
        self.request_id = request_id
        self.timeout_ms = timeout_ms
        super().__init__(f"Agent request timeout ({request_id}) after {timeout_ms}ms")


@dataclass
class _Pending:
    future: asyncio.Future
    timer: asyncio.TimerHandle


class Correlator:
    def __init__(self, notify: Notify, default_timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self._notify = notify
        self._default_timeout_ms = default_timeout_ms
        self._pending: Dict[str, _Pending] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, request_id: str) -> bool:
        return request_id in self._pending

    async def request(
        self,
        descriptor: Mapping[str, Any],
        timeout_ms: Optional[int] = None,
        method: str = "agentRequest",
    ) -> Dict[str, Any]:
        """
        Send ``descriptor`` to the external executor and wait for its result.

        Args:
            descriptor: capability/action/params/destructive (or command/args/cwd);
                may carry its own ``requestId``
            timeout_ms: how long to wait before failing with CorrelationTimeout
            method: notification method name used on the channel

        Returns:
            The result mapping delivered to :meth:`complete`
            (``requestId``, ``ok``, ``data``, ``error``)
        """
        timeout_ms = self._default_timeout_ms if timeout_ms is None else timeout_ms
        request_id = str(descriptor.get("requestId") or uuid4())
        if request_id in self._pending:
            raise ValueError(f"Request {request_id} is already pending")

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        timer = loop.call_later(timeout_ms / 1000, self._expire, request_id, timeout_ms)
        self._pending[request_id] = _Pending(future=future, timer=timer)

        payload = {k: v for k, v in descriptor.items() if k != "requestId"}
        payload["requestId"] = request_id
        logger.info(
            f"Sending {method}: reqId={request_id} capability={payload.get('capability')} "
            f"action={payload.get('action')} timeoutMs={timeout_ms}"
        )
        try:
            self._notify(method, payload)
        except Exception:
            self._discard(request_id)
            raise

        try:
            return await future
        finally:
            # Covers cancellation of the awaiting task
            self._discard(request_id)

    def complete(self, result: Mapping[str, Any]) -> bool:
        """
        Deliver a result. Unknown, late or duplicate ids are ignored.

        Returns True when a pending request was resolved.
        """
        request_id = result.get("requestId") if isinstance(result, Mapping) else None
        if not request_id:
            logger.warning("Dropped result without requestId")
            return False

        pending = self._pending.pop(request_id, None)
        if pending is None:
            logger.debug(f"No pending request for reqId={request_id} (ok={result.get('ok')})")
            return False

        pending.timer.cancel()
        if not pending.future.done():
            pending.future.set_result(dict(result))
        logger.info(f"Resolved reqId={request_id} ok={result.get('ok')}")
        return True

    def close(self) -> None:
        """Cancel every outstanding request, e.g. on shutdown."""
        for request_id in list(self._pending):
            pending = self._pending.pop(request_id)
            pending.timer.cancel()
            if not pending.future.done():
                pending.future.cancel()

    def _expire(self, request_id: str, timeout_ms: int) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return
        logger.warning(
            f"Request {request_id} timed out after {timeout_ms}ms, "
            f"{len(self._pending)} still pending"
        )
        if not pending.future.done():
            pending.future.set_exception(CorrelationTimeout(request_id, timeout_ms))

    def _discard(self, request_id: str) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is not None:
            pending.timer.cancel()
