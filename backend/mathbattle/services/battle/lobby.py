import logging
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from mathbattle.models import Participant
from .errors import SessionFullError
from .scheduler import TimerScheduler
from .session import BattleSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Session id -> session, plus the participant id -> session id index."""

    def __init__(self):
        self._sessions: Dict[str, BattleSession] = {}
        self._by_participant: Dict[str, str] = {}

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, session_id):
        return session_id in self._sessions

    def add(self, session: BattleSession) -> None:
        self._sessions[session.id] = session
        for player in session.players:
            self._by_participant[player.id] = session.id

    def get(self, session_id: Optional[str]) -> Optional[BattleSession]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def find_by_participant(self, participant_id: str) -> Optional[BattleSession]:
        return self._sessions.get(self._by_participant.get(participant_id, ''))

    def forget_participant(self, participant_id: str) -> None:
        self._by_participant.pop(participant_id, None)

    def delete(self, session_id: str) -> Optional[BattleSession]:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            for pid in [p for p, sid in self._by_participant.items() if sid == session_id]:
                del self._by_participant[pid]
        return session

    def sessions(self) -> List[BattleSession]:
        return list(self._sessions.values())


class Matchmaker:
    """FIFO pairing of waiting participants."""

    def __init__(self, registry: SessionRegistry, session_factory: Callable[[], BattleSession]):
        self.registry = registry
        self.session_factory = session_factory
        self.queue: Deque[Participant] = deque()

    def __len__(self):
        return len(self.queue)

    def is_waiting(self, participant_id: str) -> bool:
        return any(p.id == participant_id for p in self.queue)

    def enqueue(self, participant: Participant) -> Tuple[bool, Optional[BattleSession]]:
        """Pair ``participant`` with the oldest waiting one, or queue it.

        Returns ``(accepted, session)``. ``accepted`` is False when the
        participant was already queued or seated, and nothing changed.
        ``session`` is the new session when a pair was made. Callers hold the
        lobby lock; notifications are left to the caller.
        """
        if self.is_waiting(participant.id) or self.registry.find_by_participant(participant.id):
            return False, None
        if not self.queue:
            self.queue.append(participant)
            return True, None
        waiting = self.queue.popleft()
        session = self.session_factory()
        session.add_participant(waiting)
        session.add_participant(participant)
        self.registry.add(session)
        return True, session

    def remove(self, participant_id: str) -> bool:
        for p in list(self.queue):
            if p.id == participant_id:
                self.queue.remove(p)
                return True
        return False


class Lobby:
    """Process-wide coordinator owning the matchmaking queue and session registry.

    Connection handlers only go through these methods. Malformed intents
    (unknown session, not a member, wrong turn, unknown card) are ignored.
    """

    def __init__(self, scheduler: Optional[TimerScheduler] = None,
                 session_factory: Optional[Callable[[], BattleSession]] = None,
                 turn_delay: float = 2.0,
                 disconnect_teardown: float = 0.0,
                 game_over_teardown: float = 30.0):
        self.scheduler = scheduler or TimerScheduler()
        self.registry = SessionRegistry()
        self.matchmaker = Matchmaker(self.registry, session_factory or BattleSession)
        self.turn_delay = turn_delay
        self.disconnect_teardown = disconnect_teardown
        self.game_over_teardown = game_over_teardown
        self._lock = threading.RLock()

    @property
    def waiting_count(self) -> int:
        return len(self.matchmaker)

    @property
    def active_count(self) -> int:
        return len(self.registry)

    def get_session(self, session_id: Optional[str]) -> Optional[BattleSession]:
        with self._lock:
            return self.registry.get(session_id)

    def _member_session(self, participant_id: str, session_id: Optional[str]) -> Optional[BattleSession]:
        session = self.get_session(session_id)
        if session is None or not session.has_participant(participant_id):
            logger.debug(f"[intent-ignored] participant={participant_id} session={session_id}")
            return None
        return session

    # ---- matchmaking ----

    def join_queue(self, participant: Participant) -> Optional[BattleSession]:
        try:
            with self._lock:
                accepted, session = self.matchmaker.enqueue(participant)
        except SessionFullError as exc:
            participant.send('error', {'message': str(exc)})
            return None

        if not accepted:
            return None
        if session is None:
            logger.info(f"[queue-wait] participant={participant.id} name={participant.name}")
            participant.send('waiting', {'position': self.waiting_count})
            return None

        logger.info(f"[match] session={session.id} players={[p.id for p in session.players]}")
        roster = [p.to_dict() for p in session.players]
        for player in session.players:
            opponent = session.get_opponent(player.id)
            player.send('matched', {
                'sessionId': session.id,
                'opponentName': opponent.name if opponent else None,
                'slot': player.slot,
                'players': roster,
            })
        return session

    def leave_queue(self, participant_id: str) -> bool:
        with self._lock:
            return self.matchmaker.remove(participant_id)

    # ---- game intents ----

    def set_branch(self, participant_id: str, session_id: str, branch: str) -> Optional[Dict[str, Any]]:
        session = self._member_session(participant_id, session_id)
        if session is None:
            return None
        return session.set_branch(participant_id, branch)

    def play_card(self, participant_id: str, session_id: str, card_id: str) -> Optional[Dict[str, Any]]:
        session = self._member_session(participant_id, session_id)
        if session is None:
            return None
        outcome = session.play_card(participant_id, card_id)
        if not outcome['success']:
            logger.debug(f"[play-rejected] session={session.id} participant={participant_id} reason={outcome['message']}")
            return outcome
        if session.is_over:
            self.schedule_teardown(session.id, self.game_over_teardown, reason='game-over')
        else:
            self.scheduler.schedule(('turn', session.id), self.turn_delay,
                                    lambda: self._advance_turn(session.id))
        return outcome

    def _advance_turn(self, session_id: str) -> None:
        session = self.get_session(session_id)
        if session is None:
            logger.info(f"[turn-skip] session={session_id} gone")
            return
        session.next_turn()

    def chat(self, participant_id: str, session_id: str, message: str) -> bool:
        session = self._member_session(participant_id, session_id)
        if session is None:
            return False
        sender = session.get_participant(participant_id)
        session.broadcast('chat', {
            'sender': sender.name if sender else participant_id,
            'senderId': participant_id,
            'message': message,
            'timestamp': time.time(),
        })
        return True

    # ---- departures ----

    def disconnect(self, participant_id: str) -> Optional[BattleSession]:
        """Forget a participant everywhere and tear down its session."""
        with self._lock:
            self.matchmaker.remove(participant_id)
            session = self.registry.find_by_participant(participant_id)
            if session is None:
                return None
            self.registry.forget_participant(participant_id)

        player = session.get_participant(participant_id)
        if player is not None and player.handle is not None:
            player.handle.revoke()
        empty = session.remove_participant(participant_id)
        logger.info(f"[disconnect] session={session.id} participant={participant_id} empty={empty}")
        if empty:
            self.teardown(session.id, reason='empty')
        else:
            self.schedule_teardown(session.id, self.disconnect_teardown, reason='opponent-disconnected')
        return session

    def schedule_teardown(self, session_id: str, delay: float, reason: str) -> None:
        if delay <= 0:
            self.teardown(session_id, reason)
            return
        self.scheduler.schedule(('teardown', session_id), delay,
                                lambda: self.teardown(session_id, reason))

    def teardown(self, session_id: str, reason: str = 'closed') -> bool:
        with self._lock:
            session = self.registry.delete(session_id)
        self.scheduler.cancel(('turn', session_id))
        self.scheduler.cancel(('teardown', session_id))
        if session is None:
            return False
        session.close(reason)
        logger.info(f"[session-end] session={session_id} reason={reason}")
        return True
