from typing import Dict, Iterable, List, NamedTuple

from mathbattle.models import Card


class CardTemplate(NamedTuple):
    name: str
    effect: str
    value: int
    description: str


DEFAULT_CATALOG = (
    CardTemplate('Logic Bomb', 'damage', 15, 'Deal 15 damage to opponent'),
    CardTemplate('Probability Shield', 'block', 10, 'Gain 10 block'),
    CardTemplate('Calculus Heal', 'heal', 12, 'Restore 12 IP'),
    CardTemplate('Algebra Strike', 'damage', 10, 'Deal 10 damage'),
    CardTemplate('Geometry Defense', 'block', 8, 'Gain 8 block'),
    CardTemplate('Statistics Drain', 'drain', 5, 'Steal 5 IP from opponent'),
)

DEFAULT_COPIES = 4


def build_deck(catalog: Iterable[CardTemplate] = DEFAULT_CATALOG, copies: int = DEFAULT_COPIES) -> List[Card]:
    """Instantiate ``copies`` cards per catalog entry, each with a fresh id."""
    cards = []
    for template in catalog:
        for _ in range(copies):
            cards.append(Card(
                name=template.name,
                effect=template.effect,
                value=template.value,
                description=template.description,
            ))
    return cards


def catalog_to_dicts(catalog: Iterable[CardTemplate] = DEFAULT_CATALOG) -> List[Dict]:
    return [template._asdict() for template in catalog]
