"""
Cancellable periodic task for animated overlays
"""

from typing import Callable

from PySide6.QtCore import QElapsedTimer, QObject, QTimer
from loguru import logger


class AnimationTask(QObject):
    """Runs ``callback(elapsed_ms)`` every ``interval_ms`` until stopped.

    The feature that starts the task owns it and must stop it on teardown.
    """

    def __init__(self, callback: Callable[[int], None], interval_ms: int = 16,
                 name: str = "animation", parent=None):
        super().__init__(parent)
        self.name = name
        self._callback = callback
        self._clock = QElapsedTimer()
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._tick)

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    def start(self):
        if self.is_running:
            return
        self._clock.start()
        self._timer.start()
        logger.debug(f"Animation '{self.name}' started")

    def stop(self):
        if not self.is_running:
            return
        self._timer.stop()
        logger.debug(f"Animation '{self.name}' stopped")

    def tick(self):
        """Run one frame immediately"""
        self._tick()

    def _tick(self):
        elapsed = self._clock.elapsed() if self._clock.isValid() else 0
        self._callback(int(elapsed))
