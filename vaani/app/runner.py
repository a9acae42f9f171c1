from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Awaitable, Callable, Optional

from vaani.app.diagnostics import describe_failure
from vaani.conversation.session import SessionSnapshot
from vaani.errors import ConversationError
from vaani.ui.bridge import Notice, SessionBus


def notice_for(exc: BaseException) -> Notice:
    if isinstance(exc, ConversationError):
        return Notice(title=exc.title, message=str(exc) or exc.title)
    return Notice(title="Unexpected error", message=describe_failure(exc), level="error")


class SessionRunner:
    """
    Runs every session operation on one asyncio loop thread.

    Results and failures never cross back as return values the UI waits on:
    snapshots and notices are pushed onto the bus, which the UI drains.
    """

    def __init__(self, bus: SessionBus, *, logger: logging.Logger | None = None) -> None:
        self.bus = bus
        self.loop = asyncio.new_event_loop()
        self._logger = logger
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(target=self._run_loop, name="vaani-session-loop", daemon=True)
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_forever()
        finally:
            pending = asyncio.all_tasks(self.loop)
            for task in pending:
                task.cancel()
            if pending:
                self.loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            self.loop.run_until_complete(self.loop.shutdown_default_executor())
            self.loop.close()

    def stop(self, timeout: float = 2.0) -> None:
        thread = self._thread
        if thread is None:
            return
        if not self.loop.is_closed():
            self.loop.call_soon_threadsafe(self.loop.stop)
        thread.join(timeout)
        self._thread = None

    def dispatch(self, fn: Callable[[], None]) -> None:
        """Hop a callback onto the loop thread; dropped once the loop is closed."""
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(fn)

    def publish(self, snapshot: SessionSnapshot) -> None:
        self.bus.push(snapshot)

    def report(self, exc: BaseException) -> None:
        if not isinstance(exc, ConversationError) and self._logger is not None:
            self._logger.error(
                "operation_crashed",
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        self.bus.push(notice_for(exc))

    def submit(
        self,
        coro_fn: Callable[..., Awaitable[Any]],
        *args: Any,
        on_result: Optional[Callable[[Any], None]] = None,
    ) -> concurrent.futures.Future:
        return asyncio.run_coroutine_threadsafe(self._guarded(coro_fn, args, on_result), self.loop)

    def call(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_result: Optional[Callable[[Any], None]] = None,
    ) -> concurrent.futures.Future:
        async def _sync() -> Any:
            return fn(*args)

        return self.submit(_sync, on_result=on_result)

    async def _guarded(
        self,
        coro_fn: Callable[..., Awaitable[Any]],
        args: tuple[Any, ...],
        on_result: Optional[Callable[[Any], None]],
    ) -> Any:
        try:
            result = await coro_fn(*args)
        except Exception as e:
            self.report(e)
            raise
        if on_result is not None:
            on_result(result)
        return result
