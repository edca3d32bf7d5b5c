import asyncio
import threading
import logging
from concurrent.futures import Future
from typing import Coroutine, Optional

logger = logging.getLogger(__name__)


class AsyncioEventLoopManager:
    """
    Runs one asyncio event loop in a dedicated daemon thread so that
    synchronous code (tick callbacks, Tk handlers) can hand coroutines to it.
    """

    def __init__(self, name: str = "BetaTrialLoopThread"):
        self.name = name
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.thread: Optional[threading.Thread] = None
        self.is_running = False
        self.lock = threading.Lock()
        self._started = threading.Event()

    def _run_loop(self):
        """The target function for the background thread."""
        try:
            self.loop = asyncio.new_event_loop()
            asyncio.set_event_loop(self.loop)
            self.is_running = True
            self._started.set()
            logger.info(f"Asyncio event loop started in thread {self.name}.")
            self.loop.run_forever()
        except Exception as e:
            logger.error(f"Exception in asyncio event loop: {e}", exc_info=True)
        finally:
            self.is_running = False
            self._started.set()
            logger.info("Asyncio event loop has been stopped.")

    def start(self, timeout: float = 5.0) -> bool:
        """Start the loop thread if needed and wait until the loop accepts work."""
        with self.lock:
            if self.thread is None or not self.thread.is_alive():
                self._started.clear()
                self.thread = threading.Thread(target=self._run_loop, daemon=True, name=self.name)
                self.thread.start()
        self._started.wait(timeout)
        return self.is_running

    def stop(self):
        """Cancel pending tasks, stop the loop and join the thread."""
        with self.lock:
            if not (self.loop and self.is_running):
                return
            logger.info("Requesting asyncio event loop to stop.")
            loop = self.loop

            async def _cancel_and_stop():
                tasks = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                loop.stop()

            asyncio.run_coroutine_threadsafe(_cancel_and_stop(), loop)

            if self.thread:
                self.thread.join(timeout=5)
                if self.thread.is_alive():
                    logger.warning("Asyncio thread did not terminate cleanly.")
                self.thread = None

            if not loop.is_running():
                loop.close()
                logger.info("Asyncio event loop has been closed.")

    def submit_coroutine(self, coro: Coroutine) -> Optional[Future]:
        """
        Submit a coroutine to the loop. Thread-safe.

        Returns:
            A concurrent.futures.Future, or None when the loop is not running.
        """
        if not self.loop or not self.is_running:
            logger.error("Cannot submit coroutine: Event loop is not running.")
            coro.close()
            return None
        return asyncio.run_coroutine_threadsafe(coro, self.loop)


# Shared instance for hosts that do not run their own loop
asyncio_manager = AsyncioEventLoopManager()
