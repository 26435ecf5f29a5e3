import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, Set, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _cancel_pending_tasks() -> None:
    """Cancel every other task on the running loop and wait for them to unwind."""
    current = asyncio.current_task()
    tasks = [task for task in asyncio.all_tasks() if task is not current]
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class AsyncRunner:
    """Run coroutines to completion from synchronous code on one shared event loop.

    The loop lives in a daemon thread and is created lazily on the first call to
    run(). Every S3 client is opened on this loop, so all requests for those
    clients must be driven through the same runner.

    Not reentrant: a coroutine running on the loop must not call run() again.
    """

    def __init__(self, name: str = "s3bridge-loop") -> None:
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._futures: Set[concurrent.futures.Future] = set()
        self._lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def _start_loop(self) -> asyncio.AbstractEventLoop:
        """Create the loop and its thread on first use. Caller holds self._lock."""
        if self._loop is not None:
            return self._loop

        loop = asyncio.new_event_loop()
        started = threading.Event()

        def serve() -> None:
            asyncio.set_event_loop(loop)
            loop.call_soon(started.set)
            loop.run_forever()

        thread = threading.Thread(target=serve, name=self.name, daemon=True)
        thread.start()
        started.wait()

        self._thread = thread
        self._loop = loop
        logger.info(f"Event loop started in thread '{self.name}'")
        return loop

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Block the calling thread until coro finishes and return its result.

        Exceptions raised by coro propagate unchanged.

        Raises:
            RuntimeError: If called from the runner's own loop thread
            concurrent.futures.CancelledError: If close() runs while coro is in flight
        """
        if self._thread is not None and threading.current_thread() is self._thread:
            coro.close()
            raise RuntimeError("AsyncRunner.run() cannot be called from its own event loop")

        with self._lock:
            loop = self._start_loop()
            future = asyncio.run_coroutine_threadsafe(coro, loop)
            self._futures.add(future)

        try:
            return future.result()
        finally:
            with self._lock:
                self._futures.discard(future)

    def close(self) -> None:
        """Cancel in-flight calls, stop the loop and join its thread.

        A later run() starts a fresh loop.
        """
        with self._lock:
            loop, thread = self._loop, self._thread
            futures = list(self._futures)
            self._loop = None
            self._thread = None
            self._futures.clear()

        if loop is None:
            return

        for future in futures:
            future.cancel()
        if futures:
            logger.warning(f"Cancelled {len(futures)} in-flight calls on '{self.name}'")

        if thread is threading.current_thread():
            loop.call_soon(loop.stop)
            return

        asyncio.run_coroutine_threadsafe(_cancel_pending_tasks(), loop).result()
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join()
        loop.close()
        logger.info(f"Event loop in thread '{self.name}' stopped")

    def __enter__(self) -> "AsyncRunner":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
