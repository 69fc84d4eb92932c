"""
Card model: rank values, ordering and meld compatibility checks.
"""

from typing import Iterable, List, Tuple

from .constants import JACK_VALUE, RANK_VALUES, SEVEN_VALUE, SUITS
from .models import Card

SUIT_SYMBOLS = {
    'hearts': '♥',
    'diamonds': '♦',
    'clubs': '♣',
    'spades': '♠',
}


def card_value(rank: str) -> int:
    """Get the numeric value of a rank (A=1 ... 7=7, J=10, Q=11, K=12)."""
    try:
        return RANK_VALUES[rank]
    except KeyError:
        raise ValueError(f"Invalid rank: {rank}")


def suit_index(suit: str) -> int:
    """Get the index of a suit in display order."""
    try:
        return SUITS.index(suit)
    except ValueError:
        raise ValueError(f"Invalid suit: {suit}")


def sort_key(card: Card) -> Tuple[int, int]:
    return suit_index(card.suit), card_value(card.rank)


def sort_cards(cards: Iterable[Card]) -> List[Card]:
    """Sort cards by suit, then by rank value. Stable for equal keys."""
    return sorted(cards, key=sort_key)


def are_consecutive(lower: int, higher: int) -> bool:
    """
    Check if two rank values sit next to each other in a sequence.

    The deck has no 8, 9 or 10, so 7 connects straight to J. King and Ace
    never connect: K is the highest value and A the lowest.
    """
    return higher == lower + 1 or (lower == SEVEN_VALUE and higher == JACK_VALUE)


def can_extend_set(card: Card, set_cards: List[Card]) -> bool:
    """Check if card shares the rank of every card in the set."""
    return all(c.rank == card.rank for c in set_cards)


def can_extend_sequence(card: Card, sequence_cards: List[Card]) -> bool:
    """Check if card can be added at either end of a same-suit sequence."""
    if not sequence_cards:
        return True

    if any(c.suit != card.suit for c in sequence_cards):
        return False

    values = [card_value(c.rank) for c in sequence_cards]
    value = card_value(card.rank)
    return are_consecutive(value, min(values)) or are_consecutive(max(values), value)


def card_label(card: Card) -> str:
    """Short human-readable label, e.g. '7♥'."""
    return f"{card.rank}{SUIT_SYMBOLS.get(card.suit, card.suit)}"
