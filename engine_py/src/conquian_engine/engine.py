"""Game state transitions for Conquian.

Every transition takes the current GameState and returns a new one; the input
is deep-copied first and never mutated. Rule violations raise GameError.
"""

import copy
import logging
import time
import uuid
from typing import List, Optional

from .cards import card_label
from .constants import (
    STATUS_EXCHANGING, STATUS_FINISHED, STATUS_PLAYING, STATUS_WAITING
)
from .deck import Deck
from .errors import ErrorCode, raise_error
from .models import Card, GameState, Meld, Player
from .rules import RuleConfig, default_rules
from .validate import (
    can_extend_meld, find_extendable_meld, has_won, is_valid_meld, meld_type,
    player_melds
)

logger = logging.getLogger(__name__)


def create_game(game_id: str, created_at: Optional[float] = None) -> GameState:
    """Create an empty table waiting for players."""
    return GameState(
        game_id=game_id,
        created_at=created_at if created_at is not None else time.time(),
    )


def _require_player(state: GameState, player_id: str) -> Player:
    player = state.get_player(player_id)
    if player is None:
        raise_error(ErrorCode.PLAYER_NOT_FOUND, f"Player {player_id} not found")
    return player


def _require_playing(state: GameState):
    if state.status != STATUS_PLAYING:
        raise_error(
            ErrorCode.NOT_PLAYING,
            f"Game is not in playing state (current: {state.status})"
        )


def _require_turn(state: GameState, player_id: str) -> int:
    player_index = state.player_index(player_id)
    if player_index == -1 or player_index != state.current_player_index:
        raise_error(ErrorCode.NOT_YOUR_TURN, "Not your turn")
    return player_index


def _previous_index(index: int, player_count: int) -> int:
    """Turn order is counter-clockwise: the index decreases and wraps."""
    return (index - 1 + player_count) % player_count


def _declare_winner_if_won(state: GameState, player_id: str, rules: RuleConfig) -> bool:
    if has_won(state.melds, player_id, rules.win_threshold):
        state.winner_id = player_id
        state.status = STATUS_FINISHED
        logger.debug(f"Game {state.game_id} won by {player_id}")
        return True
    return False


def _require_waiting(state: GameState):
    if state.status != STATUS_WAITING:
        raise_error(ErrorCode.ALREADY_STARTED, "Game already started")


# Lobby -------------------------------------------------------------------

def add_player(state: GameState, player_id: str, name: str) -> GameState:
    """
    Add a player to the table. The first player to join hosts the game.

    Players already at the table may rejoin at any time; new players only
    while the game is waiting.
    """
    if state.get_player(player_id) is not None:
        return state
    _require_waiting(state)

    new_state = copy.deepcopy(state)
    new_state.players.append(Player(
        id=player_id,
        name=name,
        is_host=len(new_state.players) == 0,
    ))
    return new_state


def remove_player(state: GameState, player_id: str) -> GameState:
    """
    Remove a player. Host status passes to the first remaining player.

    During play the turn stays with the same player; if the leaver held the
    turn it passes counter-clockwise.
    """
    leaving_index = state.player_index(player_id)
    if leaving_index == -1:
        return state
    leaving = state.players[leaving_index]

    new_state = copy.deepcopy(state)
    new_state.players = [p for p in new_state.players if p.id != player_id]

    if new_state.exchange_cards:
        new_state.exchange_cards.pop(player_id, None)

    remaining = len(new_state.players)
    if not remaining:
        new_state.current_player_index = 0
        return new_state

    if leaving.is_host:
        new_state.players[0].is_host = True

    current = state.current_player_index
    if state.status == STATUS_PLAYING and leaving_index < current:
        new_state.current_player_index = current - 1
    elif state.status == STATUS_PLAYING and leaving_index == current:
        new_state.current_player_index = _previous_index(leaving_index, remaining)
    elif current >= remaining:
        new_state.current_player_index = 0
    return new_state


def seated_players(state: GameState) -> List[Player]:
    """Seated players in ascending seat order."""
    return sorted(
        (p for p in state.players if p.seat is not None),
        key=lambda p: p.seat,
    )


def select_seat(
    state: GameState,
    player_id: str,
    seat: int,
    rules: RuleConfig = default_rules,
) -> GameState:
    """Sit a player at a seat (0..max_seats-1). Changing seat clears ready."""
    _require_waiting(state)
    if seat < 0 or seat >= rules.max_seats:
        raise_error(ErrorCode.INVALID_SEAT, f"Invalid seat number: {seat}")

    player = _require_player(state, player_id)

    taken_by = next(
        (p for p in state.players if p.seat == seat and p.id != player_id), None
    )
    if taken_by is not None:
        raise_error(ErrorCode.SEAT_TAKEN, f"Seat {seat} is already taken")

    seated_others = [p for p in state.players if p.seat is not None and p.id != player_id]
    if player.seat is None and len(seated_others) >= rules.max_seats:
        raise_error(ErrorCode.ALL_SEATS_TAKEN, "All seats are taken")

    new_state = copy.deepcopy(state)
    seated = new_state.get_player(player_id)
    seated.seat = seat
    seated.position = seat
    seated.ready = False
    return new_state


def toggle_ready(state: GameState, player_id: str) -> GameState:
    _require_waiting(state)
    player = _require_player(state, player_id)
    if player.seat is None:
        raise_error(ErrorCode.MUST_SEAT_FIRST, "Must select a seat first")

    new_state = copy.deepcopy(state)
    toggled = new_state.get_player(player_id)
    toggled.ready = not toggled.ready
    return new_state


def can_start_game(state: GameState, rules: RuleConfig = default_rules) -> bool:
    """At least min_players seated and every seated player ready."""
    seated = seated_players(state)
    if not rules.validate_player_count(len(seated)):
        return False
    return all(p.ready for p in seated)


def start_game(
    state: GameState,
    seed: Optional[int] = None,
    rules: RuleConfig = default_rules,
) -> GameState:
    """
    Deal the hands and open the exchange phase.

    Only seated players stay in the game, ordered by seat. Each receives
    cards_per_player cards in seat order; the rest of the deck becomes the
    draw pile.
    """
    if not can_start_game(state, rules):
        raise_error(
            ErrorCode.CANNOT_START,
            f"At least {rules.min_players} players must be seated and ready"
        )
    if state.status != STATUS_WAITING:
        raise_error(ErrorCode.ALREADY_STARTED, "Game already started")

    new_state = copy.deepcopy(state)
    players = seated_players(new_state)

    deck = Deck(seed)
    deck.shuffle()

    for player in players:
        player.hand = deck.deal(rules.cards_per_player)
        player.position = player.seat

    new_state.players = players
    new_state.draw_pile = deck.deal(deck.remaining())
    new_state.discard_pile = []
    new_state.melds = []
    new_state.status = STATUS_EXCHANGING
    new_state.current_player_index = 0
    new_state.exchange_cards = {}
    new_state.winner_id = None

    logger.debug(
        f"Game {new_state.game_id} dealt to {len(players)} players, "
        f"{len(new_state.draw_pile)} cards in draw pile"
    )
    return new_state


# Play --------------------------------------------------------------------

def draw_card(state: GameState, player_id: str, from_discard: bool) -> GameState:
    """
    Draw one card into the acting player's hand.

    From the discard pile the top (last) card is taken; from the draw pile the
    front card. A drawn card that could extend one of the player's melds still
    goes to the hand; see draw_hint.
    """
    _require_playing(state)
    player_index = _require_turn(state, player_id)

    if from_discard and not state.discard_pile:
        raise_error(ErrorCode.PILE_EMPTY, "Discard pile is empty")
    if not from_discard and not state.draw_pile:
        raise_error(ErrorCode.PILE_EMPTY, "Draw pile is empty")

    new_state = copy.deepcopy(state)
    if from_discard:
        card = new_state.discard_pile.pop()
    else:
        card = new_state.draw_pile.pop(0)

    new_state.players[player_index].hand.append(card)
    return new_state


def draw_hint(state: GameState, player_id: str) -> Optional[Meld]:
    """
    The acting player's meld that their most recently drawn card could extend.

    Advisory only; nothing forces the card onto the meld.
    """
    player = state.get_player(player_id)
    if player is None or not player.hand:
        return None
    return find_extendable_meld(player.hand[-1], player_melds(state.melds, player_id))


def discard_card(state: GameState, player_id: str, card_id: str) -> GameState:
    """
    Discard a card and pass the turn counter-clockwise.

    If the next player has a meld the card extends, the card is forced into
    that player's hand instead of the discard pile.
    """
    _require_playing(state)
    player_index = _require_turn(state, player_id)

    player = state.players[player_index]
    card = player.get_card(card_id)
    if card is None:
        raise_error(ErrorCode.CARD_NOT_IN_HAND, f"Card {card_id} not in hand")

    new_state = copy.deepcopy(state)
    player_count = len(new_state.players)
    discarding = new_state.players[player_index]
    discarding.hand = [c for c in discarding.hand if c.id != card_id]

    next_index = _previous_index(player_index, player_count)
    next_player = new_state.players[next_index]
    forced_meld = find_extendable_meld(card, player_melds(new_state.melds, next_player.id))

    if forced_meld is not None:
        next_player.hand.append(card)
        logger.debug(f"Discarded {card_label(card)} forced to {next_player.id} for meld {forced_meld.id}")
    else:
        new_state.discard_pile.append(card)

    new_state.current_player_index = _previous_index(state.current_player_index, player_count)
    return new_state


def create_meld(
    state: GameState,
    player_id: str,
    card_ids: List[str],
    meld_id: Optional[str] = None,
    rules: RuleConfig = default_rules,
) -> GameState:
    """Lay down a new set or sequence from the player's hand."""
    _require_playing(state)
    player = _require_player(state, player_id)

    if len(set(card_ids)) != len(card_ids):
        raise_error(ErrorCode.CARDS_NOT_IN_HAND, "Duplicate cards in meld")

    cards: List[Card] = [c for c in (player.get_card(cid) for cid in card_ids) if c is not None]
    if len(cards) != len(card_ids):
        raise_error(ErrorCode.CARDS_NOT_IN_HAND, "Not all cards are in hand")

    if not is_valid_meld(cards):
        raise_error(ErrorCode.INVALID_MELD, "Invalid meld")

    new_state = copy.deepcopy(state)
    melding = new_state.get_player(player_id)
    melding.hand = [c for c in melding.hand if c.id not in card_ids]

    new_state.melds.append(Meld(
        id=meld_id or f"meld-{uuid.uuid4().hex[:12]}",
        type=meld_type(cards),
        cards=list(cards),
        player_id=player_id,
    ))

    _declare_winner_if_won(new_state, player_id, rules)
    return new_state


def add_card_to_meld(
    state: GameState,
    player_id: str,
    card_id: str,
    meld_id: str,
    rules: RuleConfig = default_rules,
) -> GameState:
    """Extend an existing meld with a card from the player's hand."""
    _require_playing(state)
    player = _require_player(state, player_id)

    card = player.get_card(card_id)
    if card is None:
        raise_error(ErrorCode.CARD_NOT_IN_HAND, f"Card {card_id} not in hand")

    meld = state.get_meld(meld_id)
    if meld is None:
        raise_error(ErrorCode.MELD_NOT_FOUND, f"Meld {meld_id} not found")

    if not can_extend_meld(card, meld):
        raise_error(ErrorCode.CARD_CANNOT_EXTEND_MELD, "Card cannot be added to this meld")

    new_state = copy.deepcopy(state)
    melding = new_state.get_player(player_id)
    melding.hand = [c for c in melding.hand if c.id != card_id]
    new_state.get_meld(meld_id).cards.append(card)

    if not _declare_winner_if_won(new_state, player_id, rules) and meld.player_id != player_id:
        _declare_winner_if_won(new_state, meld.player_id, rules)
    return new_state
