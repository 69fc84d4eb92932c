"""
Exchange (cambio) phase: every player passes one card clockwise before play.
"""

import copy
import logging
from typing import Dict

from .constants import STATUS_EXCHANGING, STATUS_PLAYING
from .errors import ErrorCode, raise_error
from .models import GameState
from .engine import seated_players

logger = logging.getLogger(__name__)


def _require_exchanging(state: GameState):
    if state.status != STATUS_EXCHANGING:
        raise_error(
            ErrorCode.NOT_EXCHANGING,
            f"Game is not in exchanging phase (current: {state.status})"
        )


def select_exchange_card(state: GameState, player_id: str, card_id: str) -> GameState:
    """Record the card a player will pass. A later call replaces the choice."""
    _require_exchanging(state)

    player = state.get_player(player_id)
    if player is None:
        raise_error(ErrorCode.PLAYER_NOT_FOUND, f"Player {player_id} not found")
    if not player.has_card(card_id):
        raise_error(ErrorCode.CARD_NOT_IN_HAND, f"Card {card_id} not in hand")

    new_state = copy.deepcopy(state)
    exchange_cards = dict(new_state.exchange_cards or {})
    exchange_cards[player_id] = card_id
    new_state.exchange_cards = exchange_cards
    return new_state


def pending_selections(state: GameState) -> Dict[str, str]:
    """Player id -> name for every player that has not chosen a card yet."""
    chosen = state.exchange_cards or {}
    return {p.id: p.name for p in seated_players(state) if p.id not in chosen}


def all_selections_made(state: GameState) -> bool:
    return state.status == STATUS_EXCHANGING and not pending_selections(state)


def complete_exchange(state: GameState) -> GameState:
    """
    Pass every selected card to the next player in ascending seat order.

    Each player receives the card chosen by the player seated before them
    (the last seat passes to the first). Hand sizes are unchanged.
    """
    _require_exchanging(state)

    exchange_cards = state.exchange_cards or {}
    if pending_selections(state):
        raise_error(
            ErrorCode.INCOMPLETE_SELECTIONS,
            "Not all players have selected a card to exchange"
        )

    new_state = copy.deepcopy(state)
    ordered = seated_players(new_state)

    given = {}
    for player in ordered:
        given[player.id] = player.get_card(exchange_cards[player.id])
        if given[player.id] is None:
            raise_error(
                ErrorCode.CARD_NOT_IN_HAND,
                f"Card {exchange_cards[player.id]} not in hand"
            )

    for index, player in enumerate(ordered):
        giver = ordered[(index - 1 + len(ordered)) % len(ordered)]
        player.hand = [c for c in player.hand if c.id != exchange_cards[player.id]]
        player.hand.append(given[giver.id])

    new_state.status = STATUS_PLAYING
    new_state.exchange_cards = None
    new_state.current_player_index = 0

    logger.debug(f"Exchange complete for game {new_state.game_id}")
    return new_state
