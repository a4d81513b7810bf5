"""One-shot rollback on exit: restore the profile photo and clear the status."""
import logging
import signal
import threading
from typing import Iterable, Optional

from .photo import PhotoManager
from .reconciler import CLEAR_AND_FORGET, Reconciler

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """Runs the rollback at most once, however many signals arrive.

    Signal handlers only set ``stop_event``; the poll loop notices it between
    cycles and then calls ``run()`` from the main thread.
    """

    def __init__(self, reconciler: Reconciler, photo: Optional[PhotoManager],
                 clear_on_pause: bool = True, stop_event: Optional[threading.Event] = None):
        self.reconciler = reconciler
        self.photo = photo
        self.clear_on_pause = clear_on_pause
        self.stop_event = stop_event or threading.Event()
        self._done = False
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self._done

    def request_stop(self, signum=None, frame=None) -> None:
        # Set first: logging below may fail if the signal interrupted a write.
        repeated = self.stop_event.is_set()
        self.stop_event.set()
        if repeated:
            logger.info("[Exit] Already shutting down")
            return
        name = signal.Signals(signum).name if signum else "request"
        logger.info("[Exit] Stop requested (%s); finishing current cycle", name)

    def install(self, signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM)) -> None:
        for signum in signals:
            signal.signal(signum, self.request_stop)

    def run(self) -> bool:
        """Roll back remote state. Returns False if already run."""
        with self._lock:
            if self._done:
                return False
            self._done = True

        logger.info("[Exit] Exiting slack-nowplaying")

        photo = self.photo
        if photo is not None and photo.enabled and (photo.active or photo.has_cached_original()):
            try:
                photo.restore()
            except Exception:
                logger.exception("[Exit] Photo restore failed")

        published = self.reconciler.state.last_published
        if self.clear_on_pause and published is not None and not published.is_cleared:
            try:
                if self.reconciler.apply(CLEAR_AND_FORGET):
                    logger.info("[Exit] Cleared Slack status")
            except Exception:
                logger.exception("[Exit] Clearing status failed")
        return True
