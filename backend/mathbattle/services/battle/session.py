import logging
import random
import threading
from typing import Any, Dict, Iterable, List, Optional

from mathbattle.models import Card, Participant, PlayerState, generate_id
from .branches import get_branch_effects, extra_draws
from .catalog import DEFAULT_CATALOG, DEFAULT_COPIES, CardTemplate, build_deck
from .deck import Deck
from .errors import SessionFullError
from .rules import resolve_card, evaluate_winner

logger = logging.getLogger(__name__)

MAX_PLAYERS = 2
HAND_SIZE = 5


class BattleSession:
    """Authoritative state of one duel.

    Every public mutator holds the session lock, so plays, turn advances and
    departures arriving from different connections are applied one at a time.
    The full snapshot is broadcast to both participants after each mutation.
    """

    def __init__(self, session_id: Optional[str] = None,
                 catalog: Iterable[CardTemplate] = DEFAULT_CATALOG,
                 copies: int = DEFAULT_COPIES,
                 hand_size: int = HAND_SIZE,
                 rng: Optional[random.Random] = None):
        self.id = session_id or generate_id()
        self.players: List[Participant] = []
        self.player_states: Dict[str, PlayerState] = {}
        self.current_turn = 0
        self.game_started = False
        self.winner: Optional[str] = None
        self.closed = False
        # Set between a successful play and the turn handover
        self.awaiting_turn_advance = False
        self.catalog = tuple(catalog)
        self.copies = copies
        self.hand_size = hand_size
        self.deck = Deck(rng=rng)
        self.lock = threading.RLock()

    # ---- membership ----

    def add_participant(self, participant: Participant) -> Participant:
        with self.lock:
            if self.has_participant(participant.id):
                return participant
            if len(self.players) >= MAX_PLAYERS:
                raise SessionFullError(self.id)
            participant.player_number = len(self.players) + 1
            self.players.append(participant)
            self.player_states[participant.id] = PlayerState()
            return participant

    def remove_participant(self, participant_id: str) -> bool:
        """Drop a participant. Returns True when the session is now empty."""
        with self.lock:
            self.players = [p for p in self.players if p.id != participant_id]
            self.player_states.pop(participant_id, None)
            if not self.players:
                return True
            if len(self.players) == 1:
                self.players[0].send('opponent-disconnected', {'sessionId': self.id})
            return False

    def has_participant(self, participant_id: str) -> bool:
        return any(p.id == participant_id for p in self.players)

    def get_participant(self, participant_id: str) -> Optional[Participant]:
        for p in self.players:
            if p.id == participant_id:
                return p
        return None

    def get_opponent(self, participant_id: str) -> Optional[Participant]:
        for p in self.players:
            if p.id != participant_id:
                return p
        return None

    @property
    def active_participant(self) -> Optional[Participant]:
        if 0 <= self.current_turn < len(self.players):
            return self.players[self.current_turn]
        return None

    @property
    def is_over(self) -> bool:
        return self.winner is not None

    # ---- lifecycle ----

    def set_branch(self, participant_id: str, branch: str) -> Optional[Dict[str, Any]]:
        """Record a branch choice and apply its one-time bonus.

        Auto-starts the game once both participants have chosen.
        """
        with self.lock:
            state = self.player_states.get(participant_id)
            if state is None or self.closed or self.game_started:
                return None
            effects = get_branch_effects(branch)
            state.branch = branch
            state.branch_effects = effects
            bonus = effects.get('initialBonus')
            if bonus:
                state.ip += bonus.get('ip', 0)
                state.blocks += bonus.get('blocks', 0)
            self.broadcast('branch-set', {
                'participantId': participant_id,
                'branch': branch,
                'effects': effects,
                'state': self.to_dict(),
            })
            logger.info(f"[branch-set] session={self.id} participant={participant_id} branch={branch}")

            if (len(self.players) == MAX_PLAYERS
                    and all(self.player_states[p.id].branch is not None for p in self.players)):
                self.start()
            return effects

    def start(self) -> bool:
        with self.lock:
            if len(self.players) != MAX_PLAYERS or self.game_started or self.closed:
                return False
            self.deck = Deck(build_deck(self.catalog, self.copies), rng=self.deck.rng)
            self.deck.shuffle()
            for player in self.players:
                for _ in range(self.hand_size):
                    self.draw(player.id)
            self.current_turn = 0
            self.game_started = True
            logger.info(f"[session-start] session={self.id} players={[p.id for p in self.players]}")
            self.broadcast('game-started', {'state': self.to_dict()})
            return True

    def draw(self, participant_id: str) -> Optional[Card]:
        with self.lock:
            state = self.player_states.get(participant_id)
            if state is None:
                return None
            card = self.deck.draw(state)
            if card is None:
                logger.debug(f"[draw-empty] session={self.id} participant={participant_id}")
            return card

    def play_card(self, participant_id: str, card_id: str) -> Dict[str, Any]:
        with self.lock:
            if self.closed or not self.game_started:
                return {'success': False, 'message': 'Game not in progress'}
            if self.winner is not None:
                return {'success': False, 'message': 'Game is over'}
            active = self.active_participant
            if active is None or active.id != participant_id:
                return {'success': False, 'message': 'Not your turn'}
            if self.awaiting_turn_advance:
                return {'success': False, 'message': 'Turn already played'}

            state = self.player_states[participant_id]
            card = state.find_card(card_id)
            if card is None:
                return {'success': False, 'message': 'Card not found in hand'}

            opponent = self.get_opponent(participant_id)
            if opponent is None:
                return {'success': False, 'message': 'No opponent found'}

            state.hand.remove(card)
            self.awaiting_turn_advance = True
            result = resolve_card(card, state, self.player_states[opponent.id])
            self.deck.discard(card)
            self._check_win_condition()

            self.broadcast('card-played', {
                'participantId': participant_id,
                'card': card.to_dict(),
                'result': result,
                'state': self.to_dict(),
            })
            if self.winner is not None:
                logger.info(f"[session-won] session={self.id} winner={self.winner}")
                self.broadcast('game-ended', {'winner': self.winner, 'state': self.to_dict()})
            return {'success': True, 'result': result}

    def _check_win_condition(self) -> None:
        seats = [(p.id, self.player_states[p.id]) for p in self.players]
        self.winner = evaluate_winner(seats, self.winner)

    def next_turn(self) -> bool:
        with self.lock:
            if self.closed or not self.game_started or self.winner is not None:
                return False
            if len(self.players) != MAX_PLAYERS:
                return False
            self.awaiting_turn_advance = False
            self.current_turn = 1 - self.current_turn
            current = self.players[self.current_turn]
            self.draw(current.id)
            for _ in range(extra_draws(self.player_states[current.id].branch_effects)):
                self.draw(current.id)

            for state in self.player_states.values():
                state.blocks = max(0, state.blocks - 1)

            self.broadcast('turn-changed', {
                'turnIndex': self.current_turn,
                'activeParticipantId': current.id,
                'state': self.to_dict(),
            })
            return True

    def close(self, reason: str = 'closed') -> None:
        with self.lock:
            if self.closed:
                return
            self.closed = True
            self.broadcast('session-ended', {'sessionId': self.id, 'reason': reason})

    # ---- relay ----

    def broadcast(self, event: str, payload: Dict[str, Any]) -> None:
        for player in list(self.players):
            player.send(event, payload)

    def send_to(self, participant_id: str, event: str, payload: Dict[str, Any]) -> None:
        player = self.get_participant(participant_id)
        if player:
            player.send(event, payload)

    # ---- snapshots ----

    def card_count(self) -> int:
        with self.lock:
            hands = sum(len(s.hand) for s in self.player_states.values())
            return len(self.deck.draw_pile) + len(self.deck.discard_pile) + hands

    def to_dict(self):
        return {
            'sessionId': self.id,
            'gameState': {
                'currentTurn': self.current_turn,
                'gameStarted': self.game_started,
                'winner': self.winner,
                'deckSize': len(self.deck.draw_pile),
                'discardSize': len(self.deck.discard_pile),
                'awaitingTurnAdvance': self.awaiting_turn_advance,
            },
            'playerStates': {pid: s.to_dict() for pid, s in self.player_states.items()},
            'players': [p.to_dict() for p in self.players],
        }
