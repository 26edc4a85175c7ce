from copy import deepcopy
from typing import Any, Dict

BRANCH_EFFECTS: Dict[str, Dict[str, Any]] = {
    'algebra': {
        'initialBonus': {'ip': 15, 'blocks': 5},
        'description': 'Start with +15 IP and +5 Block',
    },
    'calculus': {
        'cardBonus': {'damage': 2},
        'description': 'All damage cards deal +2 extra damage',
    },
    'geometry': {
        'blockBonus': 3,
        'description': 'All block effects are increased by 3',
    },
    'probability': {
        # Recorded only; no rule consumes it yet
        'risk': True,
        'description': 'Higher risk, higher reward mechanics',
    },
    'statistics': {
        'cardDraw': 1,
        'description': 'Draw an extra card each turn',
    },
}


def get_branch_effects(branch: str) -> Dict[str, Any]:
    """Effects for ``branch``; unknown branches have none."""
    return deepcopy(BRANCH_EFFECTS.get(branch, {}))


def damage_bonus(effects: Dict[str, Any]) -> int:
    return int((effects.get('cardBonus') or {}).get('damage', 0))


def block_bonus(effects: Dict[str, Any]) -> int:
    return int(effects.get('blockBonus', 0))


def extra_draws(effects: Dict[str, Any]) -> int:
    return int(effects.get('cardDraw', 0))
