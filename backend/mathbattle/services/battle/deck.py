import random
from typing import List, Optional

from mathbattle.models import Card, PlayerState


class Deck:
    """Draw pile plus discard pile for one session.

    The top of the draw pile is the end of the list.
    """

    def __init__(self, cards: Optional[List[Card]] = None, rng: Optional[random.Random] = None):
        self.draw_pile: List[Card] = list(cards or [])
        self.discard_pile: List[Card] = []
        self.rng = rng or random.Random()

    def __len__(self):
        return len(self.draw_pile)

    def shuffle(self) -> None:
        # Fisher-Yates
        pile = self.draw_pile
        for i in range(len(pile) - 1, 0, -1):
            j = self.rng.randint(0, i)
            pile[i], pile[j] = pile[j], pile[i]

    def discard(self, card: Card) -> None:
        self.discard_pile.append(card)

    def replenish(self) -> None:
        """Move the whole discard pile back into the draw pile and reshuffle."""
        self.draw_pile.extend(self.discard_pile)
        self.discard_pile = []
        self.shuffle()

    def draw(self, player_state: PlayerState) -> Optional[Card]:
        if not self.draw_pile:
            self.replenish()
        if not self.draw_pile:
            return None
        card = self.draw_pile.pop()
        player_state.hand.append(card)
        return card
