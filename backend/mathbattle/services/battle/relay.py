import logging
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)

Emitter = Callable[[str, Dict[str, Any], str], None]


class DeliveryHandle:
    """Revocable channel to one connection.

    ``emitter`` is called as ``emitter(event, payload, sid)``. Sends after
    ``revoke()`` are dropped and emitter failures are logged, never raised.
    """

    def __init__(self, emitter: Emitter, sid: str):
        self._emitter = emitter
        self.sid = sid
        self.revoked = False

    def revoke(self) -> None:
        self.revoked = True

    def send(self, event: str, payload: Dict[str, Any]) -> bool:
        if self.revoked:
            return False
        try:
            self._emitter(event, payload, self.sid)
        except Exception as exc:
            logger.warning(f"[relay-drop] sid={self.sid} event={event} error={exc}")
            return False
        return True
