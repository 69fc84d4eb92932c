"""
Deck creation, shuffling and dealing.
"""

import random
import uuid
from typing import List, Optional

from .constants import DECK_SIZE, RANKS, SUITS
from .errors import ErrorCode, raise_error
from .models import Card, GameState


def _card_id(suit: str, rank: str, rng: random.Random) -> str:
    suffix = uuid.UUID(int=rng.getrandbits(128)).hex[:9]
    return f"{suit}-{rank}-{suffix}"


def create_cards(rng: Optional[random.Random] = None) -> List[Card]:
    """Create the 40-card Spanish-suited deck in suit/rank order."""
    rng = rng or random.Random()
    return [
        Card(suit=suit, rank=rank, id=_card_id(suit, rank, rng))
        for suit in SUITS
        for rank in RANKS
    ]


class Deck:
    """A shuffled pile of cards that is consumed from the front."""

    def __init__(self, seed: Optional[int] = None):
        # Seeded decks are fully deterministic, ids included
        self._rng = random.Random(seed) if seed is not None else random.Random()
        self.cards: List[Card] = create_cards(self._rng)

    def shuffle(self) -> None:
        self._rng.shuffle(self.cards)

    def deal(self, count: int) -> List[Card]:
        """Remove and return the first count cards."""
        if count > len(self.cards):
            raise_error(
                ErrorCode.INSUFFICIENT_CARDS,
                f"Cannot deal {count} cards, only {len(self.cards)} remain"
            )
        dealt = self.cards[:count]
        del self.cards[:count]
        return dealt

    def draw(self) -> Optional[Card]:
        if not self.cards:
            return None
        return self.cards.pop(0)

    def remaining(self) -> int:
        return len(self.cards)

    def __len__(self) -> int:
        return len(self.cards)


def all_cards(state: GameState) -> List[Card]:
    """Every card reachable from the state: hands, piles and melds."""
    cards: List[Card] = []
    for player in state.players:
        cards.extend(player.hand)
    cards.extend(state.draw_pile)
    cards.extend(state.discard_pile)
    for meld in state.melds:
        cards.extend(meld.cards)
    return cards


def validate_card_conservation(state: GameState) -> bool:
    """
    Validate that all cards are accounted for and no duplicates exist.

    Only meaningful once the game has been dealt; a waiting table holds no cards.
    """
    cards = all_cards(state)
    if len(cards) != DECK_SIZE:
        return False

    ids = {card.id for card in cards}
    pairs = {(card.suit, card.rank) for card in cards}
    expected_pairs = {(suit, rank) for suit in SUITS for rank in RANKS}
    return len(ids) == DECK_SIZE and pairs == expected_pairs
