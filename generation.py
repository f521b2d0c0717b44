"""
Background card generation.

``GenerationScheduler`` runs at most one generation at a time on a
``QThreadPool``. Every input change bumps a revision counter; a finished
generation is only published if no change happened while it ran. A request
that arrives mid-run is remembered and exactly one follow-up generation is
started when the current one finishes.
"""

from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal

from card_logging import get_logger

logger = get_logger("generation")


class Debouncer(QObject):
    """Single-shot timer that restarts on every trigger."""

    def __init__(self, interval_ms: int, callback: Callable[[], None], parent: Optional[QObject] = None):
        super().__init__(parent)
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(int(interval_ms))
        self._timer.timeout.connect(callback)

    def trigger(self):
        # Restart - only fires once input has settled
        self._timer.stop()
        self._timer.start()

    def cancel(self):
        self._timer.stop()

    def is_pending(self) -> bool:
        return self._timer.isActive()


class _GenerationSignals(QObject):
    """Signals for ``_GenerationWorker``; kept apart so slots run on the GUI thread."""

    finished = Signal(int, object)
    failed = Signal(int, str)


class _GenerationWorker(QRunnable):
    """Runs one generation job off the UI thread."""

    def __init__(self, job: Callable[[Any], Any], payload: Any, revision: int):
        super().__init__()
        self._job = job
        self._payload = payload
        self._revision = revision
        self.signals = _GenerationSignals()

    def run(self):
        try:
            result = self._job(self._payload)
        except Exception as e:
            logger.exception("Card generation failed (revision %d)", self._revision)
            self.signals.failed.emit(self._revision, str(e))
            return
        self.signals.finished.emit(self._revision, result)


class GenerationScheduler(QObject):
    """Single-slot scheduler for card generation.

    ``request_provider`` is called on the GUI thread when a generation starts
    and captures everything the job needs; ``job`` then runs on the pool with
    that payload and returns the result (PNG bytes for the tab).
    """

    started = Signal()
    generated = Signal(object)
    failed = Signal(str)

    def __init__(self, job: Callable[[Any], Any], request_provider: Callable[[], Any],
                 pool: Optional[QThreadPool] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._job = job
        self._request_provider = request_provider
        self._pool = pool if pool is not None else QThreadPool.globalInstance()

        self._revision = 0
        self._running = False
        self._pending = False
        self._suppressed = False
        self._worker: Optional[_GenerationWorker] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def revision(self) -> int:
        return self._revision

    def is_running(self) -> bool:
        return self._running

    def has_pending(self) -> bool:
        return self._pending

    def is_suppressed(self) -> bool:
        return self._suppressed

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def invalidate(self):
        """Mark the inputs as changed; any in-flight result becomes stale."""
        self._revision += 1

    def request(self) -> bool:
        """Ask for a generation. Returns True if one was started right away."""
        if self._suppressed:
            logger.debug("Generation suppressed while positioning")
            return False
        if self._running:
            self._pending = True
            return False
        self._start()
        return True

    def set_suppressed(self, suppressed: bool):
        """Hold back generation (positioning mode). Lifting it requests one."""
        suppressed = bool(suppressed)
        if suppressed == self._suppressed:
            return
        self._suppressed = suppressed
        if not suppressed:
            self.request()

    def _start(self):
        self._running = True
        self._pending = False
        payload = self._request_provider()
        worker = _GenerationWorker(self._job, payload, self._revision)
        worker.signals.finished.connect(self._handle_finished)
        worker.signals.failed.connect(self._handle_failed)
        self._worker = worker
        logger.debug("Starting generation (revision %d)", self._revision)
        self.started.emit()
        self._pool.start(worker)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------
    def _handle_finished(self, revision: int, result: Any):
        self._running = False
        self._worker = None
        if revision == self._revision:
            self.generated.emit(result)
        else:
            logger.debug("Discarding stale generation (revision %d, current %d)", revision, self._revision)
        self._start_follow_up()

    def _handle_failed(self, revision: int, message: str):
        self._running = False
        self._worker = None
        if revision == self._revision:
            self.failed.emit(message)
        self._start_follow_up()

    def _start_follow_up(self):
        if self._pending and not self._suppressed:
            self._start()
        else:
            self._pending = False
