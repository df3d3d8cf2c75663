"""Qt-facing wrapper that re-publishes session changes as signals."""

from PySide6.QtCore import QObject, Signal
from turntimer.common.logger import log, set_level
from turntimer.core import config
from turntimer.core.session import ACTIVE_INDEX, PHASE, PLAYERS, Session
from turntimer.core.ticker import QtTicker


class SessionModel(QObject):
    """Owns a Session plus the QTimer-backed ticker that drives it.

    Commands go straight to ``model.session``; views connect to the signals
    and re-read whatever they display.
    """

    playersChanged = Signal(object)
    phaseChanged = Signal(object)
    activeIndexChanged = Signal(int)

    def __init__(self, store=None, settings=None, clock=None, parent=None):
        super().__init__(parent)
        self.store = store if store is not None else config.JsonFileStore()
        self.settings = config.load_settings(self.store) if settings is None else config.validate_settings(settings)
        set_level(self.settings["log_level"])

        self.ticker = QtTicker(self.settings["tick_interval_ms"], parent=self)
        self.session = Session(store=self.store, clock=clock, ticker=self.ticker)
        self._unsubscribe = self.session.subscribe(self._on_session_changed)
        log.debug(f"SessionModel ready, ticking every {self.ticker.interval_ms}ms")

    def _on_session_changed(self, session, changes):
        if PLAYERS in changes:
            self.playersChanged.emit(session.players)
        if PHASE in changes:
            self.phaseChanged.emit(session.phase)
        if ACTIVE_INDEX in changes:
            self.activeIndexChanged.emit(session.active_index)

    def close(self):
        self.ticker.stop()
        self._unsubscribe()
