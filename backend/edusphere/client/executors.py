"""Repeating timers and executors used by the client components."""
import logging
import threading
from concurrent.futures import Future
from typing import Callable

logger = logging.getLogger(__name__)

class RepeatingTimer:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread until cancelled."""
    
    def __init__(self, interval: float, callback: Callable[[], None], name: str = None):
        self.interval = interval
        self.callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
    
    def start(self) -> 'RepeatingTimer':
        self._thread.start()
        return self
    
    def _run(self) -> None:
        while not self._stopped.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Timer %s callback failed", self._thread.name)
    
    def cancel(self) -> None:
        self._stopped.set()

    def join(self, timeout: float = None) -> None:
        """Wait for an in-flight callback to finish. No-op from the timer's own thread."""
        if self._thread is threading.current_thread() or not self._thread.is_alive():
            return
        self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._stopped.is_set()

class InlineExecutor:
    """Executor that runs work immediately on the calling thread."""
    
    def submit(self, fn, *args, **kwargs) -> Future:
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future
    
    def shutdown(self, wait: bool = True) -> None:
        pass
