from PySide6.QtCore import QTimer
from turntimer.common.logger import log

DEFAULT_INTERVAL_MS = 100


# Repeating tick on the Qt event loop. The session starts it when play begins and stops it as soon as play
# ends. QTimer delivers timeouts one at a time on the owning thread, so ticks never overlap.
class QtTicker:

    def __init__(self, interval_ms=DEFAULT_INTERVAL_MS, parent=None):
        self._callback = None
        self._timer = QTimer(parent)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._fire)

    @property
    def interval_ms(self):
        return self._timer.interval()

    @property
    def is_active(self):
        return self._timer.isActive()

    def start(self, callback):
        self._callback = callback
        if not self._timer.isActive():
            self._timer.start()
            log.debug(f"Ticker started at {self._timer.interval()}ms")

    # Safe to call any number of times. Dropping the callback means a timeout already queued can't reach it.
    def stop(self):
        self._callback = None
        if self._timer.isActive():
            self._timer.stop()
            log.debug("Ticker stopped")

    def _fire(self):
        if self._callback is not None:
            self._callback()
