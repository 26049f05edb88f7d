"""In-process hourly scheduler for the notification sweep."""
import logging
import threading
import time
from typing import List, Optional

from notifier.models import SweepResult

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60 * 60


class SweepScheduler:
    """
    Runs a NotificationSweep on a fixed interval for the life of the process.

    The timer thread only dispatches ticks; each tick runs on its own worker
    thread. At most one tick runs at a time: a tick that comes due while the
    previous one is still running is skipped.
    """

    def __init__(self, sweep, interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
                 run_immediately: bool = False):
        """
        Args:
            sweep: NotificationSweep to run
            interval_seconds: Seconds between ticks (default: one hour)
            run_immediately: Dispatch a tick as soon as the scheduler starts
        """
        self.sweep = sweep
        self.interval_seconds = interval_seconds
        self.run_immediately = run_immediately
        self._tick_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None
        self._workers: List[threading.Thread] = []

    @property
    def tick_in_progress(self) -> bool:
        return self._tick_lock.locked()

    def start(self) -> None:
        """Start the timer thread."""
        if self._timer_thread and self._timer_thread.is_alive():
            logger.warning("Sweep scheduler already running")
            return

        self._stop_event.clear()
        self._timer_thread = threading.Thread(
            target=self._timer_loop, name='sweep-timer', daemon=True
        )
        self._timer_thread.start()
        logger.info(f"Sweep scheduler started, interval {self.interval_seconds}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop dispatching ticks and wait for a tick already running.

        Args:
            timeout: Seconds to wait for the timer and the running tick
                (default: wait indefinitely)
        """
        self._stop_event.set()
        deadline = None if timeout is None else time.monotonic() + timeout
        if self._timer_thread:
            self._timer_thread.join(_remaining(deadline))
        for worker in list(self._workers):
            worker.join(_remaining(deadline))
        self._workers = [worker for worker in self._workers if worker.is_alive()]
        if self.tick_in_progress:
            logger.warning("Sweep scheduler stopped with a notification sweep still running")
        else:
            logger.info("Sweep scheduler stopped")

    def run_tick(self) -> Optional[SweepResult]:
        """
        Run one sweep tick unless another is in progress.

        Returns:
            SweepResult, or None if the tick was skipped or failed
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Previous notification sweep still running, skipping tick")
            return None

        try:
            result = self.sweep.run_once()
            if result.errors:
                logger.warning(
                    f"Notification sweep completed with {len(result.errors)} errors",
                    extra={'errors': result.errors}
                )
            return result
        except Exception as e:
            logger.error(f"Notification sweep failed: {e}", exc_info=True)
            return None
        finally:
            self._tick_lock.release()

    def dispatch_tick(self) -> threading.Thread:
        """Run a tick on a new worker thread and return the thread."""
        worker = threading.Thread(target=self.run_tick, name='sweep-tick', daemon=True)
        self._workers = [thread for thread in self._workers if thread.is_alive()]
        self._workers.append(worker)
        worker.start()
        return worker

    def _timer_loop(self) -> None:
        logger.info("Sweep timer thread started")
        if self.run_immediately:
            self.dispatch_tick()
        while not self._stop_event.wait(self.interval_seconds):
            self.dispatch_tick()


def _remaining(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())
