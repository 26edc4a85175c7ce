from typing import Any, Dict, List, Optional, Tuple

from mathbattle.models import (
    Card,
    PlayerState,
    MAX_IP,
    EFFECT_DAMAGE,
    EFFECT_BLOCK,
    EFFECT_HEAL,
    EFFECT_DRAIN,
)
from .branches import damage_bonus, block_bonus

GRACE_TURNS = 3


def resolve_card(card: Card, player: PlayerState, opponent: PlayerState) -> Dict[str, Any]:
    """Apply ``card`` played by ``player`` against ``opponent``.

    Damage is absorbed by the opponent's block first and may push ip below
    zero. Heal and the gaining side of drain are capped at MAX_IP.
    Branch bonuses raise the value of damage and block cards.
    """
    value = card.value
    if card.effect == EFFECT_DAMAGE:
        value += damage_bonus(player.branch_effects)
    elif card.effect == EFFECT_BLOCK:
        value += block_bonus(player.branch_effects)

    result: Dict[str, Any] = {'effect': card.effect, 'value': value, 'description': card.description}

    if card.effect == EFFECT_DAMAGE:
        damage = value
        blocked = 0
        if opponent.blocks > 0:
            blocked = min(damage, opponent.blocks)
            damage -= blocked
            opponent.blocks -= blocked
        opponent.ip -= damage
        result['blocked'] = blocked
        result['actualDamage'] = damage
    elif card.effect == EFFECT_HEAL:
        player.ip = min(MAX_IP, player.ip + value)
    elif card.effect == EFFECT_BLOCK:
        player.blocks += value
    elif card.effect == EFFECT_DRAIN:
        amount = max(0, min(value, opponent.ip))
        opponent.ip -= amount
        player.ip = min(MAX_IP, player.ip + amount)
        result['actualDrain'] = amount

    return result


def evaluate_winner(seats: List[Tuple[str, PlayerState]], winner: Optional[str] = None) -> Optional[str]:
    """Advance grace counters and return the winner, if any.

    ``seats`` is ordered by slot. A participant whose ip first reaches zero
    enters a grace period of GRACE_TURNS evaluations; once it runs out the
    opponent wins. An existing ``winner`` is returned unchanged.
    """
    if len(seats) != 2:
        return winner

    for index, (_, state) in enumerate(seats):
        if state.ip <= 0 and not state.grace_period:
            state.grace_period = True
            state.grace_turns = GRACE_TURNS
        elif state.grace_period:
            state.grace_turns -= 1
            if state.grace_turns <= 0 and winner is None:
                winner = seats[1 - index][0]

    if winner is None:
        (first_id, first), (second_id, second) = seats
        if first.ip > 0 and second.grace_period and second.grace_turns <= 0:
            winner = first_id
        elif second.ip > 0 and first.grace_period and first.grace_turns <= 0:
            winner = second_id

    return winner
