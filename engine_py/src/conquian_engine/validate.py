"""
Meld validation and win detection.
"""

from typing import List, Optional

from .cards import (
    are_consecutive, can_extend_sequence, can_extend_set, card_value, sort_cards
)
from .constants import MELD_SEQUENCE, MELD_SET, WIN_THRESHOLD
from .models import Card, Meld


def is_valid_set(cards: List[Card]) -> bool:
    """3 or 4 cards of the same rank."""
    if len(cards) < 3 or len(cards) > 4:
        return False
    rank = cards[0].rank
    return all(card.rank == rank for card in cards)


def is_valid_sequence(cards: List[Card]) -> bool:
    """
    3 or more cards of one suit with consecutive rank values.

    6-7-J is consecutive; K-A-2 is never a sequence.
    """
    if len(cards) < 3:
        return False

    suit = cards[0].suit
    if not all(card.suit == suit for card in cards):
        return False

    values = [card_value(card.rank) for card in sort_cards(cards)]
    for previous, current in zip(values, values[1:]):
        if not are_consecutive(previous, current):
            return False
    return True


def is_valid_meld(cards: List[Card]) -> bool:
    return is_valid_set(cards) or is_valid_sequence(cards)


def meld_type(cards: List[Card]) -> str:
    """Classify a valid meld. All-same-rank groups are sets."""
    if all(card.rank == cards[0].rank for card in cards):
        return MELD_SET
    return MELD_SEQUENCE


def can_extend_meld(card: Card, meld: Meld) -> bool:
    if meld.type == MELD_SET:
        return can_extend_set(card, meld.cards)
    if meld.type == MELD_SEQUENCE:
        return can_extend_sequence(card, meld.cards)
    return False


def find_extendable_meld(card: Card, melds: List[Meld]) -> Optional[Meld]:
    """Return the first meld (in list order) the card can legally extend."""
    for meld in melds:
        if can_extend_meld(card, meld):
            return meld
    return None


def player_melds(melds: List[Meld], player_id: str) -> List[Meld]:
    return [meld for meld in melds if meld.player_id == player_id]


def count_melded_cards(melds: List[Meld], player_id: str) -> int:
    return sum(len(meld.cards) for meld in player_melds(melds, player_id))


def has_won(melds: List[Meld], player_id: str, threshold: int = WIN_THRESHOLD) -> bool:
    """A player wins once their melds hold at least nine cards."""
    return count_melded_cards(melds, player_id) >= threshold
