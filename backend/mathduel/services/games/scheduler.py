import logging
import threading
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellation token for one scheduled callback.

    Background tasks cannot be killed, so the worker checks the token after
    every sleep and simply returns once it has been cancelled.
    """

    def __init__(self, name: str = ''):
        self.name = name
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def __repr__(self):
        return f"<TimerHandle {self.name} cancelled={self.cancelled}>"


class BackgroundScheduler:
    """Runs room timers as Socket.IO background tasks.

    - ``call_later`` fires once after ``delay`` seconds
    - ``call_every`` fires every ``interval`` seconds until cancelled or the
      callback returns ``False``
    - callbacks receive their own handle and run inside the Flask app
      context when an app is given
    """

    def __init__(self, socketio, app=None):
        self.socketio = socketio
        self.app = app

    def call_later(self, delay: float, callback: Callable[[TimerHandle], object], name: str = '') -> TimerHandle:
        handle = TimerHandle(name)
        self.socketio.start_background_task(self._run_once, handle, delay, callback)
        return handle

    def call_every(self, interval: float, callback: Callable[[TimerHandle], object], name: str = '') -> TimerHandle:
        handle = TimerHandle(name)
        self.socketio.start_background_task(self._run_repeating, handle, interval, callback)
        return handle

    def _run_once(self, handle: TimerHandle, delay: float, callback) -> None:
        self.socketio.sleep(delay)
        if handle.cancelled:
            return
        self._invoke(handle, callback)

    def _run_repeating(self, handle: TimerHandle, interval: float, callback) -> None:
        while not handle.cancelled:
            self.socketio.sleep(interval)
            if handle.cancelled:
                return
            if self._invoke(handle, callback) is False:
                return

    def _invoke(self, handle: TimerHandle, callback) -> Optional[object]:
        try:
            if self.app is not None:
                with self.app.app_context():
                    return callback(handle)
            return callback(handle)
        except Exception:
            # A broken callback stops its own timer; the process keeps serving.
            logger.exception(f"[timer-error] timer={handle.name} stopped")
            handle.cancel()
            return False
