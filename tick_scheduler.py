"""
Tick Schedulers
Repeating callbacks that drive the trial countdown.

A scheduler exposes start(interval, callback) -> handle and cancel(handle).
cancel() is idempotent and never blocks on a running callback; the caller
is expected to ignore ticks from handles it already cancelled.
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

from asyncio_manager import AsyncioEventLoopManager, asyncio_manager

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickScheduler:
    def start(self, interval: float, callback: TickCallback):
        raise NotImplementedError

    def cancel(self, handle) -> None:
        raise NotImplementedError


class _ThreadTick:
    def __init__(self, interval: float, callback: TickCallback):
        self.interval = interval
        self.callback = callback
        self.stopped = threading.Event()
        self.thread = threading.Thread(target=self._run, daemon=True, name="BetaTrialTick")

    def _run(self):
        while not self.stopped.wait(self.interval):
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Error in trial tick callback: {e}", exc_info=True)


class ThreadingTickScheduler(TickScheduler):
    """One daemon thread per active tick, stopped through a threading.Event."""

    def start(self, interval: float, callback: TickCallback) -> _ThreadTick:
        tick = _ThreadTick(interval, callback)
        tick.thread.start()
        logger.debug(f"Started tick thread with {interval}s interval")
        return tick

    def cancel(self, handle: Optional[_ThreadTick]) -> None:
        if handle is None or handle.stopped.is_set():
            return
        handle.stopped.set()
        logger.debug("Tick thread cancelled")


class AsyncioTickScheduler(TickScheduler):
    """Runs each tick as a coroutine on an AsyncioEventLoopManager."""

    def __init__(self, loop_manager: Optional[AsyncioEventLoopManager] = None):
        self.loop_manager = loop_manager or asyncio_manager

    async def _tick_loop(self, interval: float, callback: TickCallback):
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    callback()
                except Exception as e:
                    logger.error(f"Error in trial tick callback: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.debug("Tick coroutine was cancelled")
            raise

    def start(self, interval: float, callback: TickCallback):
        self.loop_manager.start()
        return self.loop_manager.submit_coroutine(self._tick_loop(interval, callback))

    def cancel(self, handle) -> None:
        if handle is not None and not handle.done():
            handle.cancel()
