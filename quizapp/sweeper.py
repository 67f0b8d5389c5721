import logging
import os
import threading
from typing import Optional

from quizapp.errors import AttemptConflictError

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = float(os.getenv("SWEEP_INTERVAL_SECONDS", "60"))


class ExpirySweeper:
    """Force-completes attempts whose deadline has passed.

    Each expired attempt is submitted with the answers saved so far, through
    the same path a user submission takes. One failing attempt never stops
    the rest of the sweep.
    """

    def __init__(self, service, interval: Optional[float] = None):
        self.service = service
        self.interval = max(0.01, float(interval if interval is not None else DEFAULT_INTERVAL))
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def run_once(self) -> int:
        expired = self.service.find_expired_attempts()
        if expired:
            logger.info("Found %d expired attempts", len(expired))

        completed = 0
        for attempt in expired:
            try:
                self.service.submit(attempt.id, attempt.get_answers())
                completed += 1
            except AttemptConflictError:
                # a user submission got there first
                logger.info("Attempt %s was completed before the sweep reached it", attempt.id)
            except Exception:
                logger.exception("Failed to auto-submit attempt %s", attempt.id)
        return completed

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("Expiry sweep failed")

    def start(self) -> None:
        if self.is_running():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="ExpirySweeper", daemon=True)
        self._thread.start()
        logger.info("Expiry sweeper started (every %.0fs)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout if timeout is not None else self.interval + 1.0)
        self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
