import itertools
import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


def spawn_thread(fn: Callable[..., Any], *args: Any) -> threading.Thread:
    worker = threading.Thread(target=fn, args=args, daemon=True)
    worker.start()
    return worker


class TimerScheduler:
    """Fire-once deferred callbacks keyed by an arbitrary hashable.

    Scheduling a key again replaces the previous timer; ``cancel`` discards
    it. A worker only runs its callback if its token is still the current one
    for the key when it wakes, so cancelled or superseded timers are no-ops.

    ``spawn(fn, *args)`` starts the worker (``socketio.start_background_task``
    in the app, a daemon thread by default). ``inline`` must be asked for
    explicitly and runs the worker synchronously in the caller.
    """

    def __init__(self, spawn: Optional[Callable[..., Any]] = None,
                 sleep: Callable[[float], Any] = time.sleep,
                 heartbeat_sec: int = 0,
                 inline: bool = False):
        self._spawn = spawn or spawn_thread
        self._sleep = sleep
        self._heartbeat_sec = heartbeat_sec
        self._inline = inline
        self._tokens: Dict[Hashable, int] = {}
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def schedule(self, key: Hashable, delay: float, callback: Callable[[], Any]) -> int:
        with self._lock:
            token = next(self._counter)
            self._tokens[key] = token
        logger.info(f"[timer-set] key={key} delay={delay}s token={token}")
        if self._inline:
            self._worker(key, token, delay, callback)
        else:
            self._spawn(self._worker, key, token, delay, callback)
        return token

    def cancel(self, key: Hashable) -> bool:
        with self._lock:
            cancelled = self._tokens.pop(key, None) is not None
        if cancelled:
            logger.info(f"[timer-cancel] key={key}")
        return cancelled

    def is_pending(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._tokens

    def _wait(self, key: Hashable, delay: float) -> None:
        hb = self._heartbeat_sec
        if hb and hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                self._sleep(step)
                slept += step
                logger.info(f"[timer-heartbeat] key={key} remaining={max(0.0, delay - slept)}s")
        elif delay > 0:
            self._sleep(delay)

    def _worker(self, key: Hashable, token: int, delay: float, callback: Callable[[], Any]) -> None:
        self._wait(key, delay)
        with self._lock:
            if self._tokens.get(key) != token:
                logger.info(f"[timer-abort] key={key} token={token} superseded or cancelled")
                return
            del self._tokens[key]
        logger.info(f"[timer-fire] key={key} token={token}")
        try:
            callback()
        except Exception:
            logger.exception(f"[timer-error] key={key}")
