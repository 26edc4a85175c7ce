from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import uuid

STARTING_IP = 100
MAX_IP = 100

EFFECT_DAMAGE = 'damage'
EFFECT_BLOCK = 'block'
EFFECT_HEAL = 'heal'
EFFECT_DRAIN = 'drain'
EFFECT_KINDS = (EFFECT_DAMAGE, EFFECT_BLOCK, EFFECT_HEAL, EFFECT_DRAIN)


def generate_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Card:
    """A single card instance. Copies of the same named card differ by id."""
    name: str
    effect: str
    value: int
    description: str
    id: str = field(default_factory=generate_id)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'effect': self.effect,
            'value': self.value,
            'description': self.description,
        }


@dataclass
class PlayerState:
    ip: int = STARTING_IP
    hand: List[Card] = field(default_factory=list)
    branch: Optional[str] = None
    branch_effects: Dict[str, Any] = field(default_factory=dict)
    blocks: int = 0
    grace_period: bool = False
    grace_turns: int = 0

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def to_dict(self):
        return {
            'ip': self.ip,
            'hand': [c.to_dict() for c in self.hand],
            'branch': self.branch,
            'branchEffects': self.branch_effects,
            'blocks': self.blocks,
            'gracePeriod': self.grace_period,
            'graceTurns': self.grace_turns,
        }


@dataclass
class Participant:
    """A connected player. ``handle`` is only a delivery channel, never owned."""
    id: str
    name: str
    handle: Any = None
    player_number: int = 0

    @property
    def slot(self) -> int:
        return self.player_number - 1

    def send(self, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        if self.handle is not None:
            self.handle.send(event, payload or {})

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'playerNumber': self.player_number,
        }
